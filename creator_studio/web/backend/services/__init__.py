"""Service layer for the web backend.

Services wrap the studio modules to provide a clean interface for API
endpoints.
"""

from .job_manager import Job, JobManager, JobStatus, JobType
from .project_service import ProjectService, StoreRegistry
from .studio_service import StudioService

__all__ = [
    "Job",
    "JobManager",
    "JobStatus",
    "JobType",
    "ProjectService",
    "StoreRegistry",
    "StudioService",
]
