"""Pydantic request models for API endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from creator_studio.studio.project import PROJECT_ID_PATTERN


class CreateProjectRequest(BaseModel):
    """Request to create a new project."""

    id: str = Field(
        ...,
        pattern=PROJECT_ID_PATTERN,
        min_length=1,
        max_length=50,
        description="Project ID (lowercase alphanumeric with hyphens)",
    )
    title: str = Field(..., min_length=1, max_length=200, description="Project title")
    description: str = Field(default="", description="Project description")


class RunStageRequest(BaseModel):
    """Options for a stage run. Each stage reads only the fields it uses."""

    message: str | None = Field(default=None, description="Chat message (script)")
    voice_id: str | None = Field(default=None, description="Voice ID (narration)")
    model: str | None = Field(default=None, description="Model override (images, videos)")
    aspect_ratio: Literal["9:16", "16:9", "1:1"] | None = Field(
        default=None, description="Aspect ratio (images)"
    )
    duration: Literal["5", "10"] | None = Field(default=None, description="Clip seconds (videos)")
    format: Literal["zip", "individual"] = Field(default="zip", description="Bundle format (export)")
    include_narration: bool = Field(default=True, description="Add narration audio (export)")

    def options(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class UpdateScriptRequest(BaseModel):
    """Request to replace the script with a hand-edited version."""

    text: str = Field(..., min_length=1, description="Script text")


class UpdatePromptRequest(BaseModel):
    """Request to edit one image prompt."""

    text: str = Field(..., min_length=1, description="Prompt text")
