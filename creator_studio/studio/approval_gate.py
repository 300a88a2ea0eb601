"""
Approval Gate - No stage runs or is approved until its upstream is approved.

Approvals are explicit user actions. Each stage carries a single boolean;
there is no decision history beyond it.

Key concepts:
- Approve: marks one stage (or one item) approved, unlocking its downstream
- Reject: clears that stage's artifact and approval, back to pending
- Blocking: upstream stages that are not yet approved
"""

import logging

from .models import ITEM_STAGES, UPSTREAM, ArtifactStatus, Stage, StageState
from .stage_store import StageStore

logger = logging.getLogger(__name__)


class StageBlockedError(Exception):
    """Raised when a stage is used before its upstream stages are approved."""

    def __init__(self, stage: Stage, blocking: list[Stage]):
        self.stage = stage
        self.blocking = blocking
        names = ", ".join(s.value for s in blocking)
        super().__init__(f"Stage {stage.value} is blocked until approved: {names}")


class ApprovalGate:
    """
    Enforces upstream approval over a StageStore.

    Provides:
    - Stage and item approval/rejection
    - Upstream checks for runners (can_run / require_upstream)
    """

    def __init__(self, store: StageStore):
        self.store = store

    def can_run(self, stage: Stage) -> tuple[bool, list[Stage]]:
        """
        Check if all upstream stages of `stage` are approved.

        Returns:
            (can_run, blocking_stages) tuple.
        """
        stage = Stage(stage)
        blocking = [s for s in UPSTREAM[stage] if not self.store.is_approved(s)]
        return len(blocking) == 0, blocking

    def require_upstream(self, stage: Stage) -> None:
        """
        Raise unless every upstream stage is approved.

        Raises:
            StageBlockedError: If any upstream stage is not approved.
        """
        stage = Stage(stage)
        ok, blocking = self.can_run(stage)
        if not ok:
            raise StageBlockedError(stage, blocking)

    def approve(self, stage: Stage) -> StageState:
        """
        Approve a stage. For images and videos every completed item is
        approved along with it.

        Raises:
            StageBlockedError: If an upstream stage is not approved.
            ValueError: If the stage has no completed artifact.
        """
        stage = Stage(stage)
        self.require_upstream(stage)

        state = self.store.get(stage)
        if state.status != ArtifactStatus.COMPLETED or not state.has_artifact:
            raise ValueError(f"Nothing to approve in stage {stage.value}")

        logger.info("Approved stage %s", stage.value)
        return self.store.set_approved(stage, True)

    def reject(self, stage: Stage) -> StageState:
        """Reject a stage: clear its artifact and approval. Other stages are untouched."""
        stage = Stage(stage)
        logger.info("Rejected stage %s", stage.value)
        return self.store.clear(stage)

    def approve_item(self, stage: Stage, item_id: str) -> dict:
        """
        Approve a single generated image or video.

        Raises:
            StageBlockedError: If an upstream stage is not approved.
            ValueError: If the stage has no items or the item is not completed.
            KeyError: If the item does not exist.
        """
        stage = self._item_stage(stage)
        self.require_upstream(stage)

        item = self._find_item(stage, item_id)
        if item.get("status") != ArtifactStatus.COMPLETED.value:
            raise ValueError(f"Item {item_id} has not finished generating")

        return self.store.update_item(stage, item_id, approved=True)

    def reject_item(self, stage: Stage, item_id: str) -> dict:
        """Reject a single item: drop its URL and send it back to pending."""
        stage = self._item_stage(stage)
        self._find_item(stage, item_id)
        return self.store.update_item(
            stage,
            item_id,
            approved=False,
            status=ArtifactStatus.PENDING,
            url=None,
            error=None,
        )

    def _item_stage(self, stage: Stage) -> Stage:
        stage = Stage(stage)
        if stage not in ITEM_STAGES:
            raise ValueError(f"Stage {stage.value} has no individually approvable items")
        return stage

    def _find_item(self, stage: Stage, item_id: str) -> dict:
        for item in self.store.items(stage):
            if item["id"] == item_id:
                return item
        raise KeyError(f"Item {item_id} not found in stage {stage.value}")

    def summary(self) -> dict:
        """Which stages are approved and which can run."""
        return {
            s.value: {
                "approved": self.store.is_approved(s),
                "can_run": self.can_run(s)[0],
                "blocking": [b.value for b in self.can_run(s)[1]],
            }
            for s in Stage
        }
