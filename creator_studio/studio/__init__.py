"""Creator Studio pipeline: stage store, approval gate, runners and export."""

from .models import (
    ITEM_STAGES,
    STAGE_ORDER,
    UPSTREAM,
    ArtifactStatus,
    GeneratedImage,
    GeneratedVideo,
    ImagePrompt,
    Stage,
    StageState,
)
from .stage_store import StageStore
from .approval_gate import ApprovalGate, StageBlockedError
from .export import ExportAggregator, ExportEntry
from .runners import (
    ExportRunner,
    ImagePromptsRunner,
    ImageRunner,
    NarrationRunner,
    ScriptRunner,
    StageRunner,
    VideoRunner,
    build_motion_prompt,
    extract_narration,
    fetch_voices,
)
from .project import (
    ProjectInfo,
    Studio,
    create_project,
    list_projects,
    load_project,
    resolve_project_dir,
)

__all__ = [
    "ITEM_STAGES",
    "STAGE_ORDER",
    "UPSTREAM",
    "ArtifactStatus",
    "GeneratedImage",
    "GeneratedVideo",
    "ImagePrompt",
    "Stage",
    "StageState",
    "StageStore",
    "ApprovalGate",
    "StageBlockedError",
    "ExportAggregator",
    "ExportEntry",
    "ExportRunner",
    "ImagePromptsRunner",
    "ImageRunner",
    "NarrationRunner",
    "ScriptRunner",
    "StageRunner",
    "VideoRunner",
    "build_motion_prompt",
    "extract_narration",
    "fetch_voices",
    "ProjectInfo",
    "Studio",
    "create_project",
    "list_projects",
    "load_project",
    "resolve_project_dir",
]
