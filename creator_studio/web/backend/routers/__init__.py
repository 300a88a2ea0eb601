"""API routers for the web backend."""

from .projects import router as projects_router
from .stages import router as stages_router
from .export import router as export_router
from .jobs import router as jobs_router
from .voices import router as voices_router

__all__ = [
    "projects_router",
    "stages_router",
    "export_router",
    "jobs_router",
    "voices_router",
]
