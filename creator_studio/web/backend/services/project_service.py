"""Project service wrapping creator_studio/studio/project.py."""

import shutil
import threading
from pathlib import Path

from creator_studio.studio import (
    ApprovalGate,
    ProjectInfo,
    StageState,
    StageStore,
    create_project,
    list_projects,
    load_project,
    resolve_project_dir,
)

from ..models.responses import ProjectDetail, ProjectSummary, StageResponse


class StoreRegistry:
    """One StageStore per project directory, shared by requests and jobs.

    Stores keep their state in memory and save on every write, so two
    stores over the same directory would overwrite each other.
    """

    def __init__(self):
        self._stores: dict[Path, StageStore] = {}
        self._lock = threading.Lock()

    def get(self, project_dir: Path) -> StageStore:
        key = Path(project_dir).resolve()
        with self._lock:
            if key not in self._stores:
                self._stores[key] = StageStore(key)
            return self._stores[key]

    def evict(self, project_dir: Path) -> None:
        with self._lock:
            self._stores.pop(Path(project_dir).resolve(), None)


def to_stage_response(state: StageState, gate: ApprovalGate) -> StageResponse:
    can_run, blocking = gate.can_run(state.stage)
    return StageResponse(
        stage=state.stage.value,
        status=state.status.value,
        approved=state.approved,
        artifact=state.artifact,
        error=state.error,
        updated_at=state.updated_at,
        can_run=can_run,
        blocking=[s.value for s in blocking],
    )


class ProjectService:
    """Service for project CRUD operations."""

    def __init__(self, projects_dir: Path | str, registry: StoreRegistry):
        """Initialize the project service.

        Args:
            projects_dir: Path to the projects directory.
            registry: Shared stage stores.
        """
        self.projects_dir = Path(projects_dir)
        self.registry = registry

    def list_projects(self) -> list[ProjectSummary]:
        return [self._to_summary(p) for p in list_projects(self.projects_dir)]

    def get_project(self, project_id: str) -> ProjectDetail:
        """Get detailed project information.

        Raises:
            FileNotFoundError: If project doesn't exist.
        """
        return self._to_detail(load_project(resolve_project_dir(self.projects_dir, project_id)))

    def create_project(
        self, project_id: str, title: str, description: str = ""
    ) -> ProjectDetail:
        """Create a new project.

        Raises:
            ValueError: If project already exists.
        """
        project = create_project(
            project_id=project_id,
            title=title,
            projects_dir=self.projects_dir,
            description=description,
        )
        return self._to_detail(project)

    def delete_project(self, project_id: str) -> None:
        """Delete a project and everything it generated.

        Raises:
            FileNotFoundError: If project doesn't exist.
        """
        # Only a real project directory is ever removed
        project = load_project(resolve_project_dir(self.projects_dir, project_id))
        self.registry.evict(project.root_dir)
        shutil.rmtree(project.root_dir)

    def _to_summary(self, project: ProjectInfo) -> ProjectSummary:
        store = self.registry.get(project.root_dir)
        return ProjectSummary(
            id=project.id,
            title=project.title,
            description=project.description,
            approved_stages=[s.stage.value for s in store.all() if s.approved],
            updated_at=project.updated_at,
        )

    def _to_detail(self, project: ProjectInfo) -> ProjectDetail:
        store = self.registry.get(project.root_dir)
        gate = ApprovalGate(store)
        return ProjectDetail(
            id=project.id,
            title=project.title,
            description=project.description,
            created_at=project.created_at,
            updated_at=project.updated_at,
            stages=[to_stage_response(s, gate) for s in store.all()],
        )
