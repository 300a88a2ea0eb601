"""Stage router: runs, approvals, item decisions and manual edits."""

from typing import Any

from fastapi import APIRouter, HTTPException, status

from creator_studio.studio import Stage, StageBlockedError

from ..dependencies import StudioServiceDep
from ..models.requests import RunStageRequest, UpdatePromptRequest, UpdateScriptRequest
from ..models.responses import JobStartedResponse, StageResponse

router = APIRouter(prefix="/projects/{project_id}/stages", tags=["stages"])

STUDIO_ERRORS = (StageBlockedError, FileNotFoundError, KeyError, ValueError)


def _http_error(e: Exception) -> HTTPException:
    """Map a studio exception to an HTTP error."""
    if isinstance(e, StageBlockedError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, (FileNotFoundError, KeyError)):
        detail = e.args[0] if e.args else str(e)
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(detail))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=list[StageResponse])
def list_stages(project_id: str, service: StudioServiceDep) -> list[StageResponse]:
    """List every stage in pipeline order."""
    try:
        return service.get_stages(project_id)
    except STUDIO_ERRORS as e:
        raise _http_error(e)


@router.put("/script", response_model=StageResponse)
def update_script(
    project_id: str,
    request: UpdateScriptRequest,
    service: StudioServiceDep,
) -> StageResponse:
    """Replace the script with a hand-edited version. Resets its approval."""
    try:
        return service.set_script(project_id, request.text)
    except STUDIO_ERRORS as e:
        raise _http_error(e)


@router.put("/image_prompts/{prompt_id}", response_model=StageResponse)
def update_prompt(
    project_id: str,
    prompt_id: str,
    request: UpdatePromptRequest,
    service: StudioServiceDep,
) -> StageResponse:
    """Edit one image prompt."""
    try:
        return service.update_prompt(project_id, prompt_id, request.text)
    except STUDIO_ERRORS as e:
        raise _http_error(e)


@router.get("/{stage}", response_model=StageResponse)
def get_stage(project_id: str, stage: Stage, service: StudioServiceDep) -> StageResponse:
    """Get one stage."""
    try:
        return service.get_stage(project_id, stage)
    except STUDIO_ERRORS as e:
        raise _http_error(e)


@router.post("/{stage}/run", response_model=JobStartedResponse, status_code=status.HTTP_202_ACCEPTED)
def run_stage(
    project_id: str,
    stage: Stage,
    service: StudioServiceDep,
    request: RunStageRequest | None = None,
) -> JobStartedResponse:
    """Start a stage run job."""
    options = (request or RunStageRequest()).options()
    try:
        job_id = service.run_stage(project_id, stage, options)
    except STUDIO_ERRORS as e:
        raise _http_error(e)

    return JobStartedResponse(
        job_id=job_id,
        status="pending",
        message=f"Running stage {stage.value}",
    )


@router.post("/{stage}/approve", response_model=StageResponse)
def approve_stage(project_id: str, stage: Stage, service: StudioServiceDep) -> StageResponse:
    """Approve a stage, unlocking the stages downstream of it."""
    try:
        return service.approve(project_id, stage)
    except STUDIO_ERRORS as e:
        raise _http_error(e)


@router.post("/{stage}/reject", response_model=StageResponse)
def reject_stage(project_id: str, stage: Stage, service: StudioServiceDep) -> StageResponse:
    """Reject a stage: clear its artifact and approval."""
    try:
        return service.reject(project_id, stage)
    except STUDIO_ERRORS as e:
        raise _http_error(e)


@router.post("/{stage}/items/{item_id}/approve")
def approve_item(
    project_id: str,
    stage: Stage,
    item_id: str,
    service: StudioServiceDep,
) -> dict[str, Any]:
    """Approve one generated image or video."""
    try:
        return service.approve_item(project_id, stage, item_id)
    except STUDIO_ERRORS as e:
        raise _http_error(e)


@router.post("/{stage}/items/{item_id}/reject")
def reject_item(
    project_id: str,
    stage: Stage,
    item_id: str,
    service: StudioServiceDep,
) -> dict[str, Any]:
    """Reject one generated image or video."""
    try:
        return service.reject_item(project_id, stage, item_id)
    except STUDIO_ERRORS as e:
        raise _http_error(e)


@router.post(
    "/{stage}/items/{item_id}/regenerate",
    response_model=JobStartedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def regenerate_item(
    project_id: str,
    stage: Stage,
    item_id: str,
    service: StudioServiceDep,
) -> JobStartedResponse:
    """Start a job that regenerates one image or video."""
    try:
        job_id = service.regenerate_item(project_id, stage, item_id)
    except STUDIO_ERRORS as e:
        raise _http_error(e)

    return JobStartedResponse(job_id=job_id, status="pending", message=f"Regenerating {item_id}")
