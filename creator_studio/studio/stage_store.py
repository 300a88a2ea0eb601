"""
Stage Store - Canonical store for the studio pipeline state.

Holds one StageState per stage and persists them to a JSON file in the
project directory. Runners and the approval gate are the only writers.

Key concepts:
- Writing a new artifact always resets the stage's approval flag
- Clearing a stage returns it to pending with an empty artifact
- Item updates (images, videos) never touch the stage-level flag
"""

import copy
import json
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from .models import ITEM_STAGES, STAGE_ORDER, ArtifactStatus, Stage, StageState

STATE_VERSION = 1


class StageStore:
    """
    Per-project store of stage artifacts, statuses and approvals.

    All reads return copies; all writes go through the methods below and
    are saved to disk immediately.
    """

    def __init__(self, project_dir: Path | str):
        """
        Initialize the stage store.

        Args:
            project_dir: Root directory for this project's studio state.
        """
        self.project_dir = Path(project_dir)
        self.project_dir.mkdir(parents=True, exist_ok=True)

        self.files_dir = self.project_dir / "files"
        self.exports_dir = self.project_dir / "exports"
        self.files_dir.mkdir(exist_ok=True)

        self._state_path = self.project_dir / "studio_state.json"
        self._lock = threading.RLock()
        self._stages: dict[Stage, StageState] = {s: StageState(stage=s) for s in STAGE_ORDER}

        self._load()

    def _load(self) -> None:
        """Load stage state from disk."""
        if not self._state_path.exists():
            return
        with open(self._state_path) as f:
            data = json.load(f)
        for stage_data in data.get("stages", []):
            state = StageState.from_dict(stage_data)
            self._stages[state.stage] = state

    def _save(self) -> None:
        """Save stage state to disk."""
        data = {
            "version": STATE_VERSION,
            "stages": [self._stages[s].to_dict() for s in STAGE_ORDER],
            "updated_at": datetime.now().isoformat(),
        }
        with open(self._state_path, "w") as f:
            json.dump(data, f, indent=2)

    def _touch(self, state: StageState) -> None:
        state.updated_at = datetime.now()
        self._save()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, stage: Stage) -> StageState:
        """Get a copy of one stage's state."""
        with self._lock:
            return copy.deepcopy(self._stages[Stage(stage)])

    def all(self) -> list[StageState]:
        """Get copies of every stage, in pipeline order."""
        with self._lock:
            return [copy.deepcopy(self._stages[s]) for s in STAGE_ORDER]

    def is_approved(self, stage: Stage) -> bool:
        with self._lock:
            return self._stages[Stage(stage)].approved

    def items(self, stage: Stage) -> list[dict[str, Any]]:
        """Get copies of an item stage's items (images or videos)."""
        stage = Stage(stage)
        if stage not in ITEM_STAGES:
            raise ValueError(f"Stage {stage.value} has no items")
        with self._lock:
            return copy.deepcopy(self._stages[stage].artifact.get("items", []))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def mark_generating(self, stage: Stage) -> StageState:
        """Flag a stage as having a runner in flight."""
        with self._lock:
            state = self._stages[Stage(stage)]
            state.status = ArtifactStatus.GENERATING
            state.error = None
            self._touch(state)
            return copy.deepcopy(state)

    def set_artifact(
        self,
        stage: Stage,
        artifact: dict[str, Any],
        status: ArtifactStatus = ArtifactStatus.COMPLETED,
    ) -> StageState:
        """Replace a stage's artifact; approval is reset."""
        with self._lock:
            state = self._stages[Stage(stage)]
            state.artifact = copy.deepcopy(artifact)
            state.status = status
            state.approved = False
            state.error = None
            self._touch(state)
            return copy.deepcopy(state)

    def set_status(self, stage: Stage, status: ArtifactStatus) -> StageState:
        with self._lock:
            state = self._stages[Stage(stage)]
            state.status = status
            if status != ArtifactStatus.ERROR:
                state.error = None
            self._touch(state)
            return copy.deepcopy(state)

    def mark_error(
        self,
        stage: Stage,
        message: str,
        status: ArtifactStatus = ArtifactStatus.ERROR,
    ) -> StageState:
        """
        Record a failed run; the previous artifact is kept.

        Args:
            stage: Stage that failed.
            message: Error message shown to the user.
            status: Status to leave the stage in. A failed re-run of a
                completed stage passes COMPLETED so its artifact and
                approval stay usable.
        """
        with self._lock:
            state = self._stages[Stage(stage)]
            state.status = status
            state.error = message
            self._touch(state)
            return copy.deepcopy(state)

    def set_approved(self, stage: Stage, approved: bool) -> StageState:
        with self._lock:
            state = self._stages[Stage(stage)]
            state.approved = approved
            if state.stage in ITEM_STAGES and approved:
                for item in state.artifact.get("items", []):
                    if item.get("status") == ArtifactStatus.COMPLETED.value:
                        item["approved"] = True
            self._touch(state)
            return copy.deepcopy(state)

    def clear(self, stage: Stage) -> StageState:
        """Drop a stage's artifact and approval, back to pending."""
        with self._lock:
            state = self._stages[Stage(stage)]
            state.artifact = {}
            state.approved = False
            state.status = ArtifactStatus.PENDING
            state.error = None
            self._touch(state)
            return copy.deepcopy(state)

    def update_artifact(self, stage: Stage, **changes: Any) -> StageState:
        """Merge keys into a stage's artifact without resetting approval."""
        with self._lock:
            state = self._stages[Stage(stage)]
            state.artifact.update(copy.deepcopy(changes))
            self._touch(state)
            return copy.deepcopy(state)

    def update_item(self, stage: Stage, item_id: str, **changes: Any) -> dict[str, Any]:
        """
        Merge fields into one item of an item stage.

        Raises:
            KeyError: If no item has that ID.
        """
        stage = Stage(stage)
        with self._lock:
            state = self._stages[stage]
            for item in state.artifact.get("items", []):
                if item["id"] == item_id:
                    for key, value in changes.items():
                        item[key] = value.value if isinstance(value, ArtifactStatus) else value
                    self._touch(state)
                    return copy.deepcopy(item)
        raise KeyError(f"Item {item_id} not found in stage {stage.value}")

    def reset(self) -> None:
        """Return every stage to pending."""
        with self._lock:
            self._stages = {s: StageState(stage=s) for s in STAGE_ORDER}
            self._save()

    def summary(self) -> dict:
        """Get a summary of the store state."""
        with self._lock:
            return {
                "project_dir": str(self.project_dir),
                "stages": {
                    s.value: {
                        "status": self._stages[s].status.value,
                        "approved": self._stages[s].approved,
                    }
                    for s in STAGE_ORDER
                },
            }
