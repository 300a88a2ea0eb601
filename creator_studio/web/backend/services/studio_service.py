"""Studio service: stage runs, approvals and edits for one project at a time."""

import asyncio
from pathlib import Path
from typing import Any

from creator_studio.config import Config
from creator_studio.providers import ProviderSet
from creator_studio.studio import (
    ITEM_STAGES,
    ArtifactStatus,
    Stage,
    Studio,
    fetch_voices,
    load_project,
    resolve_project_dir,
)

from ..models.responses import StageResponse, VoiceResponse
from .job_manager import JobManager, JobType
from .project_service import StoreRegistry, to_stage_response


class StudioService:
    """Service for pipeline operations.

    Quick operations (approve, reject, edits) run in the request. Stage runs
    and item regenerations are submitted to the job manager.
    """

    def __init__(
        self,
        job_manager: JobManager,
        projects_dir: Path | str,
        config: Config,
        registry: StoreRegistry,
    ):
        """Initialize the studio service.

        Args:
            job_manager: Job manager for background tasks.
            projects_dir: Path to the projects directory.
            config: Studio configuration (providers, generation knobs).
            registry: Shared stage stores.
        """
        self.job_manager = job_manager
        self.projects_dir = Path(projects_dir)
        self.config = config
        self.registry = registry

    def open(self, project_id: str) -> Studio:
        """Open a project's studio.

        Raises:
            FileNotFoundError: If project doesn't exist.
        """
        project = load_project(resolve_project_dir(self.projects_dir, project_id))
        return Studio(
            project,
            self.config,
            store=self.registry.get(project.root_dir),
            notify=lambda level, message: self.job_manager.notify(project_id, level, message),
        )

    def get_stages(self, project_id: str) -> list[StageResponse]:
        studio = self.open(project_id)
        return [to_stage_response(s, studio.gate) for s in studio.stages()]

    def get_stage(self, project_id: str, stage: Stage) -> StageResponse:
        studio = self.open(project_id)
        return to_stage_response(studio.store.get(stage), studio.gate)

    def run_stage(self, project_id: str, stage: Stage, options: dict[str, Any]) -> str:
        """Start a stage run job.

        Raises:
            FileNotFoundError: If project doesn't exist.
            StageBlockedError: If an upstream stage is not approved.
            ValueError: If the script stage is run without a message.
        """
        stage = Stage(stage)

        # Validate prerequisites before submitting job
        studio = self.open(project_id)
        studio.gate.require_upstream(stage)
        if stage == Stage.SCRIPT and not (options.get("message") or "").strip():
            raise ValueError("Message is required")

        def task(job_manager: JobManager, job_id: str) -> dict[str, Any]:
            studio = self.open(project_id)

            def progress(fraction: float, message: str) -> None:
                job_manager.update_progress(job_id, fraction, message)

            state = asyncio.run(studio.run_stage(stage, progress=progress, **options))
            if state.error:
                raise RuntimeError(state.error or f"Stage {stage.value} failed")
            return {"stage": stage.value, "status": state.status.value}

        return self.job_manager.submit_job(JobType.STAGE_RUN, project_id, task, stage=stage.value)

    def regenerate_item(self, project_id: str, stage: Stage, item_id: str) -> str:
        """Start a job that re-runs one image or video.

        Raises:
            FileNotFoundError: If project doesn't exist.
            StageBlockedError: If an upstream stage is not approved.
            ValueError: If the stage has no items.
            KeyError: If the item does not exist.
        """
        stage = Stage(stage)
        if stage not in ITEM_STAGES:
            raise ValueError(f"Stage {stage.value} has no items to regenerate")

        studio = self.open(project_id)
        studio.gate.require_upstream(stage)
        if not any(item["id"] == item_id for item in studio.store.items(stage)):
            raise KeyError(f"Item {item_id} not found in stage {stage.value}")

        def task(job_manager: JobManager, job_id: str) -> dict[str, Any]:
            item = asyncio.run(self.open(project_id).regenerate_item(stage, item_id))
            if item.get("status") == ArtifactStatus.ERROR.value:
                raise RuntimeError(item.get("error") or "Regeneration failed")
            return {"stage": stage.value, "item": item}

        return self.job_manager.submit_job(JobType.REGENERATE, project_id, task, stage=stage.value)

    def approve(self, project_id: str, stage: Stage) -> StageResponse:
        studio = self.open(project_id)
        return to_stage_response(studio.approve(stage), studio.gate)

    def reject(self, project_id: str, stage: Stage) -> StageResponse:
        studio = self.open(project_id)
        return to_stage_response(studio.reject(stage), studio.gate)

    def approve_item(self, project_id: str, stage: Stage, item_id: str) -> dict[str, Any]:
        return self.open(project_id).approve_item(stage, item_id)

    def reject_item(self, project_id: str, stage: Stage, item_id: str) -> dict[str, Any]:
        return self.open(project_id).reject_item(stage, item_id)

    def set_script(self, project_id: str, text: str) -> StageResponse:
        studio = self.open(project_id)
        return to_stage_response(studio.set_script(text), studio.gate)

    def update_prompt(self, project_id: str, prompt_id: str, text: str) -> StageResponse:
        studio = self.open(project_id)
        return to_stage_response(studio.update_prompt(prompt_id, text), studio.gate)

    def export_archive(self, project_id: str) -> Path:
        """Path of the latest export zip.

        Raises:
            FileNotFoundError: If project doesn't exist or nothing was exported.
            ValueError: If the last export was written as loose files.
        """
        state = self.open(project_id).store.get(Stage.EXPORT)
        archive = state.artifact.get("archive_path")
        if state.status != ArtifactStatus.COMPLETED or not archive:
            raise FileNotFoundError(f"No export found for project: {project_id}")
        if state.artifact.get("format") != "zip":
            raise ValueError("Last export was written as individual files, not a zip")

        path = Path(archive)
        if not path.exists():
            raise FileNotFoundError(f"Export archive missing: {path.name}")
        return path

    async def list_voices(self) -> list[VoiceResponse]:
        voices = await fetch_voices(ProviderSet(self.config))
        return [VoiceResponse(**v.to_dict()) for v in voices]
