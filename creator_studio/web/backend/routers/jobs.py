"""Job status router."""

from fastapi import APIRouter, HTTPException, status

from ..dependencies import JobManagerDep
from ..models.responses import JobResponse

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=list[JobResponse])
def list_jobs(
    job_manager: JobManagerDep,
    project_id: str | None = None,
) -> list[JobResponse]:
    """List all jobs, optionally filtered by project."""
    return [JobResponse(**job.to_dict()) for job in job_manager.list_jobs(project_id=project_id)]


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: str, job_manager: JobManagerDep) -> JobResponse:
    """Get job status."""
    job = job_manager.get_job(job_id)
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job not found: {job_id}",
        )
    return JobResponse(**job.to_dict())
