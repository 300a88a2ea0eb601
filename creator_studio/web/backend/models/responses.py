"""Pydantic response models for API endpoints."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class StageResponse(BaseModel):
    """State of one pipeline stage."""

    stage: str
    status: Literal["pending", "generating", "completed", "error"]
    approved: bool
    artifact: dict[str, Any]
    error: str | None = None
    updated_at: datetime
    can_run: bool = Field(description="Whether every upstream stage is approved")
    blocking: list[str] = Field(description="Upstream stages still awaiting approval")


class ProjectSummary(BaseModel):
    """Summary of a project for listing."""

    id: str
    title: str
    description: str
    approved_stages: list[str]
    updated_at: datetime


class ProjectDetail(BaseModel):
    """Detailed project information."""

    id: str
    title: str
    description: str
    created_at: datetime
    updated_at: datetime
    stages: list[StageResponse]


class VoiceResponse(BaseModel):
    """A text-to-speech voice."""

    voice_id: str
    name: str
    category: str | None = None


class JobStartedResponse(BaseModel):
    """Response when a job is started."""

    job_id: str
    status: Literal["pending", "running"] = "pending"
    message: str


class JobResponse(BaseModel):
    """Full job status response."""

    job_id: str
    type: str
    project_id: str
    stage: str | None = None
    status: Literal["pending", "running", "completed", "failed"]
    progress: float = Field(ge=0.0, le=1.0, description="Progress from 0.0 to 1.0")
    message: str
    result: dict[str, Any] | None = None
    error: str | None = None
    created_at: datetime
    updated_at: datetime
