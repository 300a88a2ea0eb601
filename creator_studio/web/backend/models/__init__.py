"""Pydantic models for API requests and responses."""

from .requests import (
    CreateProjectRequest,
    RunStageRequest,
    UpdatePromptRequest,
    UpdateScriptRequest,
)
from .responses import (
    JobResponse,
    JobStartedResponse,
    ProjectDetail,
    ProjectSummary,
    StageResponse,
    VoiceResponse,
)

__all__ = [
    # Requests
    "CreateProjectRequest",
    "RunStageRequest",
    "UpdatePromptRequest",
    "UpdateScriptRequest",
    # Responses
    "JobResponse",
    "JobStartedResponse",
    "ProjectDetail",
    "ProjectSummary",
    "StageResponse",
    "VoiceResponse",
]
