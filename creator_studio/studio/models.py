"""
Pipeline stages and the artifacts they hold.

The studio is a fixed chain of six stages. Each stage holds one artifact,
a status and an approval flag; a stage may only run once every upstream
stage in UPSTREAM is approved.

    script -> narration
    script -> image_prompts -> images -> videos -> export
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Stage(str, Enum):
    """Pipeline stages, in execution order."""

    SCRIPT = "script"
    NARRATION = "narration"
    IMAGE_PROMPTS = "image_prompts"
    IMAGES = "images"
    VIDEOS = "videos"
    EXPORT = "export"


class ArtifactStatus(str, Enum):
    """Lifecycle of a stage artifact or a single generated item."""

    PENDING = "pending"        # Empty, nothing generated yet
    GENERATING = "generating"  # Runner in flight
    COMPLETED = "completed"    # Populated, awaiting approval
    ERROR = "error"            # Last run failed, see error message


STAGE_ORDER: list[Stage] = list(Stage)

UPSTREAM: dict[Stage, tuple[Stage, ...]] = {
    Stage.SCRIPT: (),
    Stage.NARRATION: (Stage.SCRIPT,),
    Stage.IMAGE_PROMPTS: (Stage.SCRIPT,),
    Stage.IMAGES: (Stage.IMAGE_PROMPTS,),
    Stage.VIDEOS: (Stage.IMAGES,),
    Stage.EXPORT: (Stage.VIDEOS,),
}

# Stages whose artifact is a list of individually approvable items
ITEM_STAGES = (Stage.IMAGES, Stage.VIDEOS)


@dataclass
class StageState:
    """Artifact, status and approval flag for one stage."""

    stage: Stage
    status: ArtifactStatus = ArtifactStatus.PENDING
    approved: bool = False
    artifact: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def has_artifact(self) -> bool:
        return bool(self.artifact)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "stage": self.stage.value,
            "status": self.status.value,
            "approved": self.approved,
            "artifact": self.artifact,
            "error": self.error,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StageState":
        """Create from dictionary."""
        return cls(
            stage=Stage(data["stage"]),
            status=ArtifactStatus(data.get("status", "pending")),
            approved=data.get("approved", False),
            artifact=data.get("artifact") or {},
            error=data.get("error"),
            updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else datetime.now(),
        )


@dataclass
class ImagePrompt:
    """One text-to-image prompt, editable before approval."""

    id: str
    text: str
    approved: bool = False

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "approved": self.approved}


@dataclass
class GeneratedImage:
    """An image generated from one prompt."""

    id: str
    prompt_id: str
    prompt: str
    url: str | None = None
    status: ArtifactStatus = ArtifactStatus.PENDING
    approved: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "prompt_id": self.prompt_id,
            "prompt": self.prompt,
            "url": self.url,
            "status": self.status.value,
            "approved": self.approved,
            "error": self.error,
        }


@dataclass
class GeneratedVideo:
    """A clip animated from one approved image."""

    id: str
    image_id: str
    image_url: str
    motion_prompt: str
    url: str | None = None
    status: ArtifactStatus = ArtifactStatus.PENDING
    approved: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "image_id": self.image_id,
            "image_url": self.image_url,
            "motion_prompt": self.motion_prompt,
            "url": self.url,
            "status": self.status.value,
            "approved": self.approved,
            "error": self.error,
        }
