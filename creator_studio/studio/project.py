"""Studio projects.

A project is a self-contained directory:
- project.json: id, title, description, timestamps
- studio_state.json: stage artifacts, statuses and approvals
- files/: generated narration audio
- exports/: export bundles

`Studio` wires a project's store, approval gate and runners together and is
the single entry point used by the CLI and the web backend.
"""

import json
import logging
import random
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ..config import Config
from ..providers import ProviderSet, Voice
from .approval_gate import ApprovalGate
from .export import ExportFormat
from .models import Stage, StageState
from .runners import (
    ExportRunner,
    ImagePromptsRunner,
    ImageRunner,
    ItemStageRunner,
    NarrationRunner,
    Notifier,
    ProgressCallback,
    ScriptRunner,
    StageRunner,
    VideoRunner,
)
from .stage_store import StageStore

logger = logging.getLogger(__name__)

PROJECT_FILE = "project.json"

# Lowercase alphanumerics and inner hyphens; never a path
PROJECT_ID_PATTERN = r"^[a-z0-9][a-z0-9-]*[a-z0-9]$|^[a-z0-9]$"

RUNNERS: dict[Stage, type[StageRunner]] = {
    Stage.SCRIPT: ScriptRunner,
    Stage.NARRATION: NarrationRunner,
    Stage.IMAGE_PROMPTS: ImagePromptsRunner,
    Stage.IMAGES: ImageRunner,
    Stage.VIDEOS: VideoRunner,
    Stage.EXPORT: ExportRunner,
}


@dataclass
class ProjectInfo:
    """Metadata for one studio project."""

    id: str
    title: str
    root_dir: Path
    description: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def save(self) -> None:
        self.updated_at = datetime.now()
        with open(self.root_dir / PROJECT_FILE, "w") as f:
            json.dump(self.to_dict(), f, indent=2)


def is_valid_project_id(project_id: str) -> bool:
    return len(project_id) <= 50 and re.fullmatch(PROJECT_ID_PATTERN, project_id) is not None


def resolve_project_dir(projects_dir: str | Path, project_id: str) -> Path:
    """Map a project ID to its directory under projects_dir.

    Raises:
        FileNotFoundError: If the ID is not a valid project ID, so it can
            never name a directory outside projects_dir.
    """
    if not is_valid_project_id(project_id):
        raise FileNotFoundError(f"Project not found: {project_id}")
    return Path(projects_dir) / project_id


def load_project(project_dir: str | Path) -> ProjectInfo:
    """Load a project from its directory.

    Raises:
        FileNotFoundError: If the directory has no project.json.
    """
    project_dir = Path(project_dir)
    path = project_dir / PROJECT_FILE
    if not path.exists():
        raise FileNotFoundError(f"Project not found: {project_dir.name}")

    with open(path) as f:
        data = json.load(f)

    return ProjectInfo(
        id=data["id"],
        title=data.get("title", data["id"]),
        description=data.get("description", ""),
        root_dir=project_dir,
        created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else datetime.now(),
        updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else datetime.now(),
    )


def list_projects(projects_dir: str | Path = "projects") -> list[ProjectInfo]:
    """List all projects under a directory, sorted by ID."""
    projects_dir = Path(projects_dir)
    if not projects_dir.exists():
        return []

    projects = []
    for subdir in sorted(projects_dir.iterdir()):
        if subdir.is_dir() and (subdir / PROJECT_FILE).exists():
            try:
                projects.append(load_project(subdir))
            except (json.JSONDecodeError, KeyError) as e:
                logger.warning("Failed to load project %s: %s", subdir, e)

    return projects


def create_project(
    project_id: str,
    title: str,
    projects_dir: str | Path = "projects",
    description: str = "",
) -> ProjectInfo:
    """Create a new, empty studio project.

    Raises:
        ValueError: If the ID is invalid or the project already exists.
    """
    if not is_valid_project_id(project_id):
        raise ValueError(f"Invalid project ID: {project_id}")
    project_dir = Path(projects_dir) / project_id
    if project_dir.exists():
        raise ValueError(f"Project already exists: {project_id}")

    project_dir.mkdir(parents=True)
    project = ProjectInfo(id=project_id, title=title, description=description, root_dir=project_dir)
    project.save()
    StageStore(project_dir)

    logger.info("Created project %s at %s", project_id, project_dir)
    return project


class Studio:
    """
    One project's pipeline: store, gate and runners.

    Runners are built per call so that each run can report progress to its
    own callback. Pass `store` to share one StageStore between several
    Studio instances of the same project.
    """

    def __init__(
        self,
        project: ProjectInfo,
        config: Config,
        providers: ProviderSet | None = None,
        notify: Notifier | None = None,
        rng: random.Random | None = None,
        store: StageStore | None = None,
    ):
        self.project = project
        self.config = config
        self.providers = providers or ProviderSet(config)
        self.notify = notify
        self.rng = rng
        self.store = store or StageStore(project.root_dir)
        self.gate = ApprovalGate(self.store)

    @classmethod
    def open(
        cls,
        project_id: str,
        config: Config,
        projects_dir: str | Path | None = None,
        **kwargs: Any,
    ) -> "Studio":
        """Open an existing project by ID.

        Raises:
            FileNotFoundError: If no such project exists.
        """
        root = projects_dir or config.paths.projects_dir
        return cls(load_project(resolve_project_dir(root, project_id)), config, **kwargs)

    def runner(self, stage: Stage, progress: ProgressCallback | None = None) -> StageRunner:
        stage = Stage(stage)
        kwargs: dict[str, Any] = {"notify": self.notify, "progress": progress}
        if stage == Stage.VIDEOS:
            kwargs["rng"] = self.rng
        return RUNNERS[stage](self.store, self.gate, self.providers, self.config, **kwargs)

    async def run_stage(
        self,
        stage: Stage,
        progress: ProgressCallback | None = None,
        **options: Any,
    ) -> StageState:
        """Run one stage's runner.

        Raises:
            StageBlockedError: If an upstream stage is not approved.
        """
        state = await self.runner(stage, progress).run(**options)
        self.project.save()
        return state

    async def chat(self, message: str) -> StageState:
        """One turn with the script agent."""
        return await self.run_stage(Stage.SCRIPT, message=message)

    async def export(
        self,
        format: ExportFormat = "zip",
        include_narration: bool = True,
    ) -> StageState:
        return await self.run_stage(Stage.EXPORT, format=format, include_narration=include_narration)

    def approve(self, stage: Stage) -> StageState:
        return self.gate.approve(stage)

    def reject(self, stage: Stage) -> StageState:
        return self.gate.reject(stage)

    def approve_item(self, stage: Stage, item_id: str) -> dict:
        return self.gate.approve_item(stage, item_id)

    def reject_item(self, stage: Stage, item_id: str) -> dict:
        return self.gate.reject_item(stage, item_id)

    async def regenerate_item(self, stage: Stage, item_id: str) -> dict:
        """Re-run a single image or video.

        Raises:
            ValueError: If the stage has no items.
        """
        runner = self.runner(stage)
        if not isinstance(runner, ItemStageRunner):
            raise ValueError(f"Stage {Stage(stage).value} has no items to regenerate")
        return await runner.regenerate_item(item_id)

    def set_script(self, text: str) -> StageState:
        return self.runner(Stage.SCRIPT).set_script(text)

    def update_prompt(self, prompt_id: str, text: str) -> StageState:
        return self.runner(Stage.IMAGE_PROMPTS).update_prompt(prompt_id, text)

    async def list_voices(self) -> list[Voice]:
        return await self.runner(Stage.NARRATION).list_voices()

    def stages(self) -> list[StageState]:
        return self.store.all()

    def status(self) -> dict:
        """Per-stage status, approval and whether it can run."""
        gate = self.gate.summary()
        return {
            state.stage.value: {
                "status": state.status.value,
                "approved": state.approved,
                "error": state.error,
                "can_run": gate[state.stage.value]["can_run"],
                "blocking": gate[state.stage.value]["blocking"],
            }
            for state in self.store.all()
        }
