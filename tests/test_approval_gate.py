"""Tests for the ApprovalGate."""

import pytest

from creator_studio.studio import (
    UPSTREAM,
    ApprovalGate,
    ArtifactStatus,
    Stage,
    StageBlockedError,
    StageStore,
)

GATED_STAGES = [s for s in Stage if UPSTREAM[s]]


class TestApprove:
    """Tests for stage approval."""

    @pytest.mark.parametrize("stage", GATED_STAGES, ids=lambda s: s.value)
    def test_approve_blocked_without_upstream(
        self, store: StageStore, gate: ApprovalGate, stage: Stage
    ) -> None:
        """No stage can be approved before its upstream stages."""
        store.set_artifact(stage, {"anything": True})

        with pytest.raises(StageBlockedError) as exc_info:
            gate.approve(stage)

        assert exc_info.value.stage == stage
        assert set(exc_info.value.blocking) == set(UPSTREAM[stage])
        assert store.is_approved(stage) is False

    def test_script_has_no_upstream(self, store: StageStore, gate: ApprovalGate) -> None:
        store.set_artifact(Stage.SCRIPT, {"text": "s"})
        assert gate.approve(Stage.SCRIPT).approved is True

    def test_approve_requires_completed_artifact(self, gate: ApprovalGate) -> None:
        with pytest.raises(ValueError, match="Nothing to approve"):
            gate.approve(Stage.SCRIPT)

    def test_approve_rejects_errored_stage(self, store: StageStore, gate: ApprovalGate) -> None:
        store.set_artifact(Stage.SCRIPT, {"text": "s"})
        store.mark_error(Stage.SCRIPT, "failed")
        with pytest.raises(ValueError):
            gate.approve(Stage.SCRIPT)

    def test_approve_only_touches_that_stage(self, approved_script: StageStore) -> None:
        gate = ApprovalGate(approved_script)
        approved_script.set_artifact(Stage.NARRATION, {"text": "n"})
        approved_script.set_artifact(Stage.IMAGE_PROMPTS, {"prompts": []})

        gate.approve(Stage.NARRATION)

        assert approved_script.is_approved(Stage.NARRATION)
        assert not approved_script.is_approved(Stage.IMAGE_PROMPTS)

    def test_can_run_reports_blocking(self, approved_script: StageStore) -> None:
        gate = ApprovalGate(approved_script)
        assert gate.can_run(Stage.NARRATION) == (True, [])
        assert gate.can_run(Stage.IMAGE_PROMPTS) == (True, [])
        assert gate.can_run(Stage.IMAGES) == (False, [Stage.IMAGE_PROMPTS])
        assert gate.can_run("script") == (True, [])

    def test_narration_does_not_gate_export(self, generated_videos: StageStore) -> None:
        gate = ApprovalGate(generated_videos)
        assert not generated_videos.is_approved(Stage.NARRATION)
        assert gate.can_run(Stage.EXPORT) == (True, [])


class TestReject:
    """Tests for stage rejection."""

    @pytest.mark.parametrize("stage", list(Stage), ids=lambda s: s.value)
    def test_reject_clears_only_that_stage(self, generated_videos: StageStore, stage: Stage) -> None:
        """Reject clears artifact and approval and leaves every other stage alone."""
        gate = ApprovalGate(generated_videos)
        generated_videos.set_artifact(Stage.NARRATION, {"text": "n"})
        generated_videos.set_approved(Stage.NARRATION, True)
        before = {s.stage: s for s in generated_videos.all()}

        state = gate.reject(stage)

        assert state.artifact == {}
        assert state.approved is False
        assert state.status == ArtifactStatus.PENDING
        for other in generated_videos.all():
            if other.stage != stage:
                assert other.artifact == before[other.stage].artifact
                assert other.approved == before[other.stage].approved

    def test_reject_does_not_cascade(self, generated_images: StageStore) -> None:
        """Downstream approvals stay as they were after an upstream reject."""
        gate = ApprovalGate(generated_images)
        gate.reject(Stage.IMAGE_PROMPTS)
        assert generated_images.is_approved(Stage.IMAGES)
        assert gate.can_run(Stage.IMAGES) == (False, [Stage.IMAGE_PROMPTS])


class TestItemDecisions:
    """Tests for per-item approve/reject."""

    def test_approve_item(self, generated_images: StageStore) -> None:
        gate = ApprovalGate(generated_images)
        item = gate.approve_item(Stage.IMAGES, "img2")
        assert item["approved"] is True

    def test_approve_item_requires_completed(self, generated_images: StageStore) -> None:
        gate = ApprovalGate(generated_images)
        generated_images.update_item(Stage.IMAGES, "img2", status=ArtifactStatus.ERROR)
        with pytest.raises(ValueError, match="has not finished"):
            gate.approve_item(Stage.IMAGES, "img2")

    def test_approve_item_checks_upstream(self, generated_images: StageStore) -> None:
        gate = ApprovalGate(generated_images)
        generated_images.set_approved(Stage.IMAGE_PROMPTS, False)
        with pytest.raises(StageBlockedError):
            gate.approve_item(Stage.IMAGES, "img2")

    def test_approve_item_unknown(self, generated_images: StageStore) -> None:
        with pytest.raises(KeyError):
            ApprovalGate(generated_images).approve_item(Stage.IMAGES, "missing")

    def test_item_decisions_only_for_item_stages(self, approved_script: StageStore) -> None:
        with pytest.raises(ValueError, match="no individually approvable items"):
            ApprovalGate(approved_script).approve_item(Stage.SCRIPT, "x")

    def test_reject_item_resets_item_but_not_stage(self, generated_images: StageStore) -> None:
        gate = ApprovalGate(generated_images)

        item = gate.reject_item(Stage.IMAGES, "img1")

        assert item["approved"] is False
        assert item["status"] == "pending"
        assert item["url"] is None
        assert generated_images.is_approved(Stage.IMAGES)

    def test_summary(self, approved_script: StageStore) -> None:
        summary = ApprovalGate(approved_script).summary()
        assert summary["script"]["approved"] is True
        assert summary["images"] == {
            "approved": False,
            "can_run": False,
            "blocking": ["image_prompts"],
        }
