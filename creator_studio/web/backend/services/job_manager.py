"""Background job manager for long-running stage runs.

Stage runs and item regenerations run in a thread pool and report
progress via callbacks. Jobs cannot be cancelled once submitted.
"""

import asyncio
import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Coroutine, TYPE_CHECKING

if TYPE_CHECKING:
    from ..websocket.manager import WebSocketManager

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    """Status of a background job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobType(str, Enum):
    """Type of background job."""

    STAGE_RUN = "stage_run"
    REGENERATE = "regenerate"


@dataclass
class Job:
    """A background job."""

    id: str
    type: JobType
    project_id: str
    stage: str | None = None
    status: JobStatus = JobStatus.PENDING
    progress: float = 0.0
    message: str = ""
    result: dict[str, Any] | None = None
    error: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.id,
            "type": self.type.value,
            "project_id": self.project_id,
            "stage": self.stage,
            "status": self.status.value,
            "progress": self.progress,
            "message": self.message,
            "result": self.result,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class JobManager:
    """Manages background jobs with progress tracking.

    Jobs are executed in a thread pool and can report progress
    updates which are broadcast via WebSocket.
    """

    def __init__(self, max_workers: int = 4):
        """Initialize the job manager.

        Args:
            max_workers: Maximum number of concurrent jobs.
        """
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers)
        self._ws_manager: "WebSocketManager | None" = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def set_websocket_manager(self, ws_manager: "WebSocketManager") -> None:
        self._ws_manager = ws_manager

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Set the event loop that WebSocket broadcasts are scheduled on."""
        self._loop = loop

    def submit_job(
        self,
        job_type: JobType,
        project_id: str,
        task: Callable[["JobManager", str], dict[str, Any]],
        stage: str | None = None,
    ) -> str:
        """Submit a background job.

        Args:
            job_type: Type of job.
            project_id: ID of the project this job belongs to.
            task: Callable that takes (job_manager, job_id) and returns result dict.
            stage: Stage the job works on, if any.

        Returns:
            The job ID.
        """
        job_id = f"job_{uuid.uuid4().hex[:12]}"
        job = Job(
            id=job_id,
            type=job_type,
            project_id=project_id,
            stage=stage,
            message="Job queued",
        )

        with self._lock:
            self._jobs[job_id] = job

        def run_task() -> dict[str, Any]:
            try:
                self.update_status(job_id, JobStatus.RUNNING, "Job started")
                result = task(self, job_id)
                self.update_status(job_id, JobStatus.COMPLETED, "Job completed", result=result)
                return result
            except Exception as e:
                logger.error("Job %s failed: %s", job_id, e)
                self.update_status(job_id, JobStatus.FAILED, str(e), error=str(e))
                raise

        self._executor.submit(run_task)
        return job_id

    def update_progress(self, job_id: str, progress: float, message: str) -> None:
        """Update job progress.

        Args:
            job_id: The job ID.
            progress: Progress from 0.0 to 1.0.
            message: Status message.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job:
                job.progress = min(max(progress, 0.0), 1.0)
                job.message = message
                job.updated_at = datetime.now()
                self._broadcast_update(job)

    def update_status(
        self,
        job_id: str,
        status: JobStatus,
        message: str,
        result: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        """Update job status.

        Args:
            job_id: The job ID.
            status: New status.
            message: Status message.
            result: Optional result dict (for completed jobs).
            error: Optional error message (for failed jobs).
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job:
                job.status = status
                job.message = message
                job.updated_at = datetime.now()
                if result is not None:
                    job.result = result
                    job.progress = 1.0
                if error is not None:
                    job.error = error
                self._broadcast_update(job)

    def notify(self, project_id: str, level: str, message: str) -> None:
        """Send a user-facing notice to the project's subscribers."""
        if self._ws_manager:
            self._schedule(self._ws_manager.broadcast_notice(project_id, level, message))

    def _broadcast_update(self, job: Job) -> None:
        if self._ws_manager:
            self._schedule(self._ws_manager.broadcast_job_update(job))

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        if self._loop is None or self._loop.is_closed():
            coro.close()
            return
        try:
            asyncio.run_coroutine_threadsafe(coro, self._loop)
        except RuntimeError as e:
            # Loop stopped between the check and the call
            coro.close()
            logger.debug("Dropped WebSocket broadcast: %s", e)

    def get_job(self, job_id: str) -> Job | None:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self, project_id: str | None = None) -> list[Job]:
        """List all jobs, newest first, optionally filtered by project."""
        with self._lock:
            jobs = list(self._jobs.values())
            if project_id:
                jobs = [j for j in jobs if j.project_id == project_id]
            return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the job manager.

        Args:
            wait: Whether to wait for running jobs to complete.
        """
        self._executor.shutdown(wait=wait)
