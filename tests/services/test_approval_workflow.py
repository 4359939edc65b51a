from datetime import date
import io

import pytest
from fastapi import UploadFile
from sqlalchemy import delete, select

from reward_points.core.exceptions import (
    ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError
)
from reward_points.models.approval.approval_entry import ApprovalEntry
from reward_points.models.leaderboard.leaderboard import Leaderboard
from reward_points.models.rewards.reward_entry import RewardEntry
from reward_points.models.shared.enums import (
    ApprovalDecision, ApprovalState, ApprovalStatus, ApprovalTrack, CriteriaTrack, NotificationPurpose, Role
)
from reward_points.schemas.approval.approval_schema import AdminApprovalUpdate
from reward_points.schemas.rewards.reward_entry_schema import RewardEntrySubmit, RewardEntryUpdate
from reward_points.services.approval.approval_service import ApprovalService

SUBMITTED_ON = date(2025, 1, 15)  # FY25 Q2

MANAGER = ApprovalTrack.MANAGER
DIRECTOR = ApprovalTrack.DIRECTOR
APPROVE = ApprovalDecision.APPROVE
REJECT = ApprovalDecision.REJECT


def upload(filename: str, content: bytes) -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename)


def entry_data(criteria, **overrides) -> RewardEntrySubmit:
    values = {
        "criteria_id": criteria.id,
        "short_description": "Led the data center migration",
        "date_accomplished": date(2025, 1, 10),
        "project_name": "Migration",
    }
    values.update(overrides)
    return RewardEntrySubmit(**values)


async def ledger(session, employee_id: str = "M100") -> Leaderboard:
    result = await session.execute(
        select(Leaderboard)
        .where(Leaderboard.employee_id == employee_id, Leaderboard.fiscal_year == "FY25")
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def approval_row(session, approval_id: int) -> ApprovalEntry:
    result = await session.execute(
        select(ApprovalEntry).where(ApprovalEntry.id == approval_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


def assert_consistent(board):
    assert board.total_points == board.approved_points + board.for_approval_points + board.rejected_points
    assert min(board.approved_points, board.for_approval_points, board.rejected_points) >= 0


@pytest.mark.asyncio
class TestSubmission:
    async def test_member_submission_waits_for_manager(self, approval_service, hierarchy, make_criteria, notifier):
        criteria = await make_criteria(points=20, director_approval=True)

        result = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        assert result.approval.manager_id == "A100"
        assert result.approval.director_id == "B100"
        assert result.approval.manager_approval_status == ApprovalStatus.PENDING
        assert result.approval.director_approval_status == ApprovalStatus.PENDING
        assert result.approval.state == ApprovalState.AWAITING_MANAGER
        assert result.leaderboard.for_approval_points == 20
        assert result.leaderboard.total_points == 20
        assert result.leaderboard.alias_name == "FY25-0001"

        notification = notifier.sent[-1]
        assert notification.to == ["userA100@example.com"]
        assert notification.purpose == NotificationPurpose.SUBMISSION

    async def test_entry_snapshots_points_and_fiscal_period(self, approval_service, session, hierarchy, make_criteria):
        criteria = await make_criteria(points=15)

        result = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        entry = await session.get(RewardEntry, result.approval.reward_entry_id)
        assert entry.points == 15
        assert entry.fiscal_year == "FY25"
        assert entry.race_season == "FY25 Q2"

    async def test_director_approval_not_required_auto_passes_director_track(
        self, approval_service, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=10, director_approval=False)

        result = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        assert result.approval.director_approval_status == ApprovalStatus.APPROVED
        assert result.approval.state == ApprovalState.AWAITING_MANAGER

    async def test_exec_still_needs_manager_review_without_director_approval(
        self, approval_service, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=10, director_approval=False)

        result = await approval_service.submit_entry("X100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        assert result.approval.state == ApprovalState.AWAITING_MANAGER
        assert result.leaderboard.for_approval_points == 10
        assert result.leaderboard.approved_points == 0

    async def test_manager_submission_without_director_approval_is_approved(
        self, approval_service, hierarchy, make_criteria, notifier
    ):
        criteria = await make_criteria(points=10, director_approval=False, track=CriteriaTrack.MANAGER)

        result = await approval_service.submit_entry("A100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        assert result.approval.manager_id is None
        assert result.approval.state == ApprovalState.APPROVED
        assert result.leaderboard.approved_points == 10
        assert result.leaderboard.for_approval_points == 0
        assert notifier.sent == []

    async def test_manager_submission_goes_to_own_manager_as_director(
        self, approval_service, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=30, director_approval=True, track=CriteriaTrack.MANAGER)

        result = await approval_service.submit_entry("A100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        assert result.approval.state == ApprovalState.AWAITING_DIRECTOR
        assert result.approval.director_id == "B100"

        result = await approval_service.act_on_approval(result.approval.id, "B100", DIRECTOR, APPROVE)
        assert result.leaderboard.approved_points == 30

    async def test_unpublished_criteria_is_rejected(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria(is_published=False)
        with pytest.raises(ValidationError):
            await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

    async def test_criteria_from_other_track_is_not_found(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria(track=CriteriaTrack.MANAGER)
        with pytest.raises(NotFoundError):
            await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

    async def test_member_without_manager_cannot_submit(self, approval_service, session, make_member, make_criteria):
        await make_member("L100")
        criteria = await make_criteria()

        with pytest.raises(ValidationError):
            await approval_service.submit_entry("L100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        assert (await session.execute(select(Leaderboard))).scalars().all() == []

    async def test_aliases_are_sequential_per_fiscal_year(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria()

        first = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        second = await approval_service.submit_entry("X100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        again = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        assert first.leaderboard.alias_name == "FY25-0001"
        assert second.leaderboard.alias_name == "FY25-0002"
        assert again.leaderboard.id == first.leaderboard.id
        assert again.leaderboard.for_approval_points == 40


@pytest.mark.asyncio
class TestApprovalActions:
    async def test_end_to_end_manager_then_director(self, approval_service, hierarchy, make_criteria, notifier):
        criteria = await make_criteria(points=20, director_approval=True)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        result = await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, APPROVE)
        assert result.approval.manager_approval_status == ApprovalStatus.APPROVED
        assert result.approval.director_approval_status == ApprovalStatus.PENDING
        assert result.leaderboard.for_approval_points == 20
        assert result.leaderboard.approved_points == 0
        assert notifier.sent[-1].to == ["userB100@example.com"]

        result = await approval_service.act_on_approval(submitted.approval.id, "B100", DIRECTOR, APPROVE)
        assert result.approval.state == ApprovalState.APPROVED
        assert result.leaderboard.for_approval_points == 0
        assert result.leaderboard.approved_points == 20
        assert result.leaderboard.total_points == 20

        approved = notifier.sent[-1]
        assert approved.to == ["userM100@example.com"]
        assert approved.cc == ["userA100@example.com"]
        assert approved.status == "approved"

    async def test_manager_approval_without_director_moves_points_once(
        self, approval_service, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=25, director_approval=False)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        result = await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, APPROVE)

        assert result.approval.state == ApprovalState.APPROVED
        assert result.leaderboard.approved_points == 25
        assert result.leaderboard.for_approval_points == 0
        assert result.leaderboard.total_points == submitted.leaderboard.total_points

    async def test_manager_rejection(self, approval_service, hierarchy, make_criteria, notifier):
        criteria = await make_criteria(points=20, director_approval=True)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        result = await approval_service.act_on_approval(
            submitted.approval.id, "A100", MANAGER, REJECT, notes="Needs evidence"
        )

        assert result.approval.state == ApprovalState.REJECTED
        assert result.approval.manager_notes == "Needs evidence"
        assert result.leaderboard.rejected_points == 20
        assert result.leaderboard.for_approval_points == 0
        assert notifier.sent[-1].to == ["userM100@example.com"]
        assert notifier.sent[-1].status == "rejected"

    async def test_director_rejection_notifies_manager_with_owner_in_copy(
        self, approval_service, hierarchy, make_criteria, notifier
    ):
        criteria = await make_criteria(points=20, director_approval=True)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, APPROVE)

        result = await approval_service.act_on_approval(submitted.approval.id, "B100", DIRECTOR, REJECT)

        assert result.leaderboard.rejected_points == 20
        assert notifier.sent[-1].to == ["userA100@example.com"]
        assert notifier.sent[-1].cc == ["userM100@example.com"]

    async def test_second_rejection_leaves_ledger_unchanged(self, approval_service, session, hierarchy, make_criteria):
        criteria = await make_criteria(points=20, director_approval=True)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, APPROVE)
        rejected = await approval_service.act_on_approval(submitted.approval.id, "B100", DIRECTOR, REJECT)

        with pytest.raises(InvalidStateError):
            await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, REJECT)

        board = await ledger(session)
        assert board.rejected_points == rejected.leaderboard.rejected_points == 20
        assert board.for_approval_points == 0
        assert board.approved_points == 0
        assert_consistent(board)

    async def test_director_cannot_act_before_manager(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria(points=20, director_approval=True)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        with pytest.raises(InvalidStateError):
            await approval_service.act_on_approval(submitted.approval.id, "B100", DIRECTOR, APPROVE)

    async def test_only_assigned_reviewer_can_act(self, approval_service, session, hierarchy, make_criteria):
        criteria = await make_criteria(points=20, director_approval=True)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        with pytest.raises(ForbiddenError):
            await approval_service.act_on_approval(submitted.approval.id, "B100", MANAGER, APPROVE)

        approval = await approval_row(session, submitted.approval.id)
        assert approval.manager_approval_status == ApprovalStatus.PENDING

    async def test_owner_cannot_review_own_entry(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria(points=20)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        with pytest.raises(ConflictError):
            await approval_service.act_on_approval(submitted.approval.id, "M100", MANAGER, APPROVE)

    async def test_missing_leaderboard_aborts_without_partial_update(
        self, approval_service, session, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=20)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await session.execute(delete(Leaderboard))
        await session.commit()

        with pytest.raises(NotFoundError):
            await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, APPROVE)

        approval = await approval_row(session, submitted.approval.id)
        assert approval.manager_approval_status == ApprovalStatus.PENDING

    async def test_unknown_approval(self, approval_service, hierarchy):
        with pytest.raises(NotFoundError):
            await approval_service.act_on_approval(999, "A100", MANAGER, APPROVE)

    async def test_notification_failure_does_not_fail_the_action(
        self, session, storage, hierarchy, make_criteria
    ):
        class BrokenNotifier:
            async def notify(self, notification):
                raise ConnectionError("smtp down")

        service = ApprovalService(session, notifier=BrokenNotifier(), storage=storage)
        criteria = await make_criteria(points=20)

        submitted = await service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        result = await service.act_on_approval(submitted.approval.id, "A100", MANAGER, APPROVE)

        assert result.leaderboard.approved_points == 20


@pytest.mark.asyncio
class TestResubmission:
    async def test_reject_resubmit_approve_matches_direct_approval(
        self, approval_service, session, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=20, director_approval=True)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        approval_id = submitted.approval.id
        await approval_service.act_on_approval(approval_id, "A100", MANAGER, REJECT, notes="Add the report")

        resubmitted = await approval_service.resubmit_entry(submitted.approval.reward_entry_id, "M100")
        assert resubmitted.approval.state == ApprovalState.AWAITING_MANAGER
        assert resubmitted.approval.manager_notes is None
        assert resubmitted.leaderboard.rejected_points == 0
        assert resubmitted.leaderboard.for_approval_points == 20

        await approval_service.act_on_approval(approval_id, "A100", MANAGER, APPROVE)
        result = await approval_service.act_on_approval(approval_id, "B100", DIRECTOR, APPROVE)

        assert result.leaderboard.approved_points == 20
        assert result.leaderboard.rejected_points == 0
        assert result.leaderboard.for_approval_points == 0
        assert result.leaderboard.total_points == 20
        assert_consistent(await ledger(session))

    async def test_resubmission_applies_changes(self, approval_service, session, hierarchy, make_criteria, notifier):
        criteria = await make_criteria(points=20)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, REJECT)

        await approval_service.resubmit_entry(
            submitted.approval.reward_entry_id, "M100",
            changes=RewardEntryUpdate(short_description="Led the migration of 40 services"),
        )

        entry = await session.get(RewardEntry, submitted.approval.reward_entry_id, populate_existing=True)
        assert entry.short_description == "Led the migration of 40 services"
        assert notifier.sent[-1].purpose == NotificationPurpose.RESUBMISSION
        assert notifier.sent[-1].to == ["userA100@example.com"]

    async def test_manager_resubmission_repeats_director_step(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria(points=30, director_approval=True, track=CriteriaTrack.MANAGER)
        submitted = await approval_service.submit_entry("A100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await approval_service.act_on_approval(submitted.approval.id, "B100", DIRECTOR, REJECT)

        result = await approval_service.resubmit_entry(submitted.approval.reward_entry_id, "A100")

        assert result.approval.manager_approval_status == ApprovalStatus.APPROVED
        assert result.approval.state == ApprovalState.AWAITING_DIRECTOR
        assert result.leaderboard.for_approval_points == 30

    async def test_only_rejected_entries_can_be_resubmitted(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria(points=20)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        with pytest.raises(InvalidStateError):
            await approval_service.resubmit_entry(submitted.approval.reward_entry_id, "M100")

    async def test_only_owner_can_resubmit(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria(points=20)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, REJECT)

        with pytest.raises(ForbiddenError):
            await approval_service.resubmit_entry(submitted.approval.reward_entry_id, "X100")

    async def test_reset_follows_original_routing_after_promotion(
        self, approval_service, session, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=20, director_approval=True)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        entry_id = submitted.approval.reward_entry_id
        await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, REJECT)

        hierarchy.member.role_id = Role.MANAGER.value
        await session.commit()

        result = await approval_service.resubmit_entry(entry_id, "M100")

        assert result.approval.state == ApprovalState.AWAITING_MANAGER
        assert result.approval.manager_approval_status == ApprovalStatus.PENDING
        assert result.leaderboard.for_approval_points == 20
        assert result.leaderboard.rejected_points == 0

        with pytest.raises(InvalidStateError):
            await approval_service.resubmit_entry(entry_id, "M100")

        board = await ledger(session)
        assert board.for_approval_points == 20
        assert board.rejected_points == 0
        assert board.total_points == 20
        assert_consistent(board)

    async def test_reset_follows_original_routing_after_demotion(
        self, approval_service, session, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=30, director_approval=True, track=CriteriaTrack.MANAGER)
        submitted = await approval_service.submit_entry("A100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await approval_service.act_on_approval(submitted.approval.id, "B100", DIRECTOR, REJECT)

        hierarchy.manager.role_id = Role.MEMBER.value
        await session.commit()

        result = await approval_service.resubmit_entry(submitted.approval.reward_entry_id, "A100")

        assert result.approval.manager_id is None
        assert result.approval.state == ApprovalState.AWAITING_DIRECTOR
        assert result.leaderboard.for_approval_points == 30

    async def test_refused_when_reset_would_not_await_review(
        self, approval_service, session, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=30, director_approval=True, track=CriteriaTrack.MANAGER)
        submitted = await approval_service.submit_entry("A100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await approval_service.admin_update_entry(
            submitted.approval.id, hierarchy.admin,
            AdminApprovalUpdate(manager_approval_status=ApprovalStatus.REJECTED),
        )

        with pytest.raises(InvalidStateError):
            await approval_service.resubmit_entry(submitted.approval.reward_entry_id, "A100")

        board = await ledger(session, "A100")
        assert board.rejected_points == 30
        assert board.for_approval_points == 0
        row = await approval_row(session, submitted.approval.id)
        assert row.manager_approval_status == ApprovalStatus.REJECTED

    async def test_check_resubmission_mirrors_resubmit_rules(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria(points=20)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        entry_id = submitted.approval.reward_entry_id

        with pytest.raises(InvalidStateError):
            await approval_service.check_resubmission(entry_id, "M100")

        await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, REJECT)

        with pytest.raises(ForbiddenError):
            await approval_service.check_resubmission(entry_id, "X100")
        entry = await approval_service.check_resubmission(entry_id, "M100")
        assert entry.id == entry_id


@pytest.mark.asyncio
class TestResubmissionAttachments:
    async def _rejected_entry_with_files(self, approval_service, storage, criteria):
        manifest = await storage.save_files(
            [upload("proof.pdf", b"original proof"), upload("slides.pptx", b"deck")], "M100", "Migration"
        )
        submitted = await approval_service.submit_entry(
            "M100", entry_data(criteria), attachments=manifest, submitted_on=SUBMITTED_ON
        )
        await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, REJECT)
        return submitted.approval.reward_entry_id, manifest

    async def test_failed_resubmission_leaves_files_and_manifest_untouched(
        self, approval_service, session, storage, hierarchy, make_criteria, monkeypatch
    ):
        criteria = await make_criteria(points=20)
        entry_id, manifest = await self._rejected_entry_with_files(approval_service, storage, criteria)
        added = await storage.save_files([upload("proof.pdf", b"new proof")], "M100", "Portal")

        async def fail(board, entry):
            raise ConflictError("Reward entry not eligible for point update")

        monkeypatch.setattr(approval_service.ledger, "resubmit_points", fail)

        with pytest.raises(ConflictError):
            await approval_service.resubmit_entry(
                entry_id, "M100",
                changes=RewardEntryUpdate(project_name="Portal", attachments_to_delete=["slides.pptx"]),
                added_attachments=added,
            )

        for item in manifest:
            assert (storage.upload_dir / item["path"]).is_file()
        assert (storage.upload_dir / manifest[0]["path"]).read_bytes() == b"original proof"
        entry = await session.get(RewardEntry, entry_id, populate_existing=True)
        assert entry.attachments == manifest
        assert entry.project_name == "Migration"

    async def test_resubmission_moves_and_removes_files_after_commit(
        self, approval_service, session, storage, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=20)
        entry_id, manifest = await self._rejected_entry_with_files(approval_service, storage, criteria)
        added = await storage.save_files([upload("proof.pdf", b"new proof")], "M100", "Portal")

        await approval_service.resubmit_entry(
            entry_id, "M100",
            changes=RewardEntryUpdate(project_name="Portal", attachments_to_delete=["slides.pptx"]),
            added_attachments=added,
        )

        entry = await session.get(RewardEntry, entry_id, populate_existing=True)
        assert [item["filename"] for item in entry.attachments] == ["proof.pdf"]
        assert entry.attachments[0]["path"] == added[0]["path"]
        assert (storage.upload_dir / added[0]["path"]).read_bytes() == b"new proof"
        for item in manifest:
            assert not (storage.upload_dir / item["path"]).exists()
        assert not (storage.upload_dir / "M100" / "migration").exists()

    async def test_project_rename_moves_kept_files(
        self, approval_service, session, storage, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=20)
        entry_id, manifest = await self._rejected_entry_with_files(approval_service, storage, criteria)

        await approval_service.resubmit_entry(
            entry_id, "M100", changes=RewardEntryUpdate(project_name="Portal")
        )

        entry = await session.get(RewardEntry, entry_id, populate_existing=True)
        assert [item["filename"] for item in entry.attachments] == ["proof.pdf", "slides.pptx"]
        for item in entry.attachments:
            assert item["path"].startswith("M100/portal/")
            assert (storage.upload_dir / item["path"]).is_file()
        assert not (storage.upload_dir / "M100" / "migration").exists()


@pytest.mark.asyncio
class TestAdminOverride:
    async def test_criteria_change_moves_points_between_buckets(
        self, approval_service, session, hierarchy, make_criteria
    ):
        ten = await make_criteria(points=10)
        twenty_five = await make_criteria(points=25)
        submitted = await approval_service.submit_entry("M100", entry_data(ten), submitted_on=SUBMITTED_ON)
        approved = await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, APPROVE)
        assert approved.leaderboard.approved_points == 10

        result = await approval_service.admin_update_entry(
            submitted.approval.id,
            hierarchy.admin,
            AdminApprovalUpdate(criteria_id=twenty_five.id, manager_approval_status=ApprovalStatus.PENDING),
        )

        assert result.approval.state == ApprovalState.AWAITING_MANAGER
        assert result.leaderboard.approved_points == approved.leaderboard.approved_points - 10
        assert result.leaderboard.for_approval_points == approved.leaderboard.for_approval_points + 25
        assert result.leaderboard.total_points == approved.leaderboard.total_points + 15

        entry = await session.get(RewardEntry, submitted.approval.reward_entry_id, populate_existing=True)
        assert entry.criteria_id == twenty_five.id
        assert entry.points == 25

    async def test_status_override_moves_points(self, approval_service, hierarchy, make_criteria):
        ten = await make_criteria(points=10)
        first = await approval_service.submit_entry("M100", entry_data(ten), submitted_on=SUBMITTED_ON)
        await approval_service.act_on_approval(first.approval.id, "A100", MANAGER, APPROVE)
        await approval_service.submit_entry("M100", entry_data(ten), submitted_on=SUBMITTED_ON)

        result = await approval_service.admin_update_entry(
            first.approval.id, hierarchy.admin,
            AdminApprovalUpdate(manager_approval_status=ApprovalStatus.REJECTED),
        )

        assert result.approval.state == ApprovalState.REJECTED
        assert result.leaderboard.approved_points == 0
        assert result.leaderboard.rejected_points == 10
        assert result.leaderboard.for_approval_points == 10

    async def test_criteria_change_takes_old_points_from_implied_bucket(
        self, approval_service, hierarchy, make_criteria
    ):
        ten = await make_criteria(points=10)
        twenty_five = await make_criteria(points=25)
        first = await approval_service.submit_entry("M100", entry_data(ten), submitted_on=SUBMITTED_ON)
        await approval_service.act_on_approval(first.approval.id, "A100", MANAGER, APPROVE)
        await approval_service.submit_entry("M100", entry_data(ten), submitted_on=SUBMITTED_ON)

        result = await approval_service.admin_update_entry(
            first.approval.id, hierarchy.admin, AdminApprovalUpdate(criteria_id=twenty_five.id)
        )

        assert result.approval.state == ApprovalState.APPROVED
        assert result.leaderboard.approved_points == 25
        assert result.leaderboard.for_approval_points == 10
        assert result.leaderboard.total_points == 35

    async def test_status_override_is_validated(self, approval_service, session, hierarchy, make_criteria):
        criteria = await make_criteria(points=20, director_approval=True)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        with pytest.raises(InvalidStateError):
            await approval_service.admin_update_entry(
                submitted.approval.id, hierarchy.admin,
                AdminApprovalUpdate(director_approval_status=ApprovalStatus.APPROVED),
            )

        board = await ledger(session)
        assert board.for_approval_points == 20

    async def test_override_requires_admin(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria(points=20)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        with pytest.raises(ForbiddenError):
            await approval_service.admin_update_entry(
                submitted.approval.id, hierarchy.manager,
                AdminApprovalUpdate(manager_approval_status=ApprovalStatus.APPROVED),
            )

    async def test_delete_reverses_points(self, approval_service, session, hierarchy, make_criteria):
        criteria = await make_criteria(points=20)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await approval_service.act_on_approval(submitted.approval.id, "A100", MANAGER, APPROVE)

        board = await approval_service.admin_delete_entry(submitted.approval.reward_entry_id, hierarchy.admin)

        assert board.approved_points == 0
        assert board.total_points == 0
        assert await session.get(RewardEntry, submitted.approval.reward_entry_id) is None
        remaining = await session.execute(select(ApprovalEntry))
        assert remaining.scalars().all() == []


@pytest.mark.asyncio
class TestApprovalQueries:
    async def test_director_queue_only_shows_manager_approved_entries(
        self, approval_service, hierarchy, make_criteria
    ):
        criteria = await make_criteria(points=20, director_approval=True)
        first = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await approval_service.submit_entry("X100", entry_data(criteria), submitted_on=SUBMITTED_ON)
        await approval_service.act_on_approval(first.approval.id, "A100", MANAGER, APPROVE)

        director_queue = await approval_service.get_director_approvals("B100")
        manager_queue = await approval_service.get_manager_approvals("A100", ApprovalStatus.PENDING)

        assert [a.id for a in director_queue["data"]] == [first.approval.id]
        assert director_queue["data"][0].owner_name == "First LastM100"
        assert director_queue["data"][0].state == ApprovalState.AWAITING_DIRECTOR
        assert manager_queue["count"] == 1

    async def test_detail_is_limited_to_participants(self, approval_service, hierarchy, make_criteria):
        criteria = await make_criteria(points=20)
        submitted = await approval_service.submit_entry("M100", entry_data(criteria), submitted_on=SUBMITTED_ON)

        detail = await approval_service.get_approval_detail(submitted.approval.id, hierarchy.manager)
        assert detail.manager_name == "First LastA100"
        assert detail.reward_entry.criteria.points == 20

        await approval_service.get_approval_detail(submitted.approval.id, hierarchy.admin)
        with pytest.raises(ForbiddenError):
            await approval_service.get_approval_detail(submitted.approval.id, hierarchy.executive)

    async def test_ledger_stays_consistent_across_workflow(self, approval_service, session, hierarchy, make_criteria):
        plain = await make_criteria(points=10)
        reviewed = await make_criteria(points=20, director_approval=True)

        a = await approval_service.submit_entry("M100", entry_data(plain), submitted_on=SUBMITTED_ON)
        b = await approval_service.submit_entry("M100", entry_data(reviewed), submitted_on=SUBMITTED_ON)
        c = await approval_service.submit_entry("M100", entry_data(reviewed), submitted_on=SUBMITTED_ON)
        assert_consistent(await ledger(session))

        await approval_service.act_on_approval(a.approval.id, "A100", MANAGER, APPROVE)
        await approval_service.act_on_approval(b.approval.id, "A100", MANAGER, APPROVE)
        await approval_service.act_on_approval(b.approval.id, "B100", DIRECTOR, REJECT)
        await approval_service.act_on_approval(c.approval.id, "A100", MANAGER, REJECT)
        assert_consistent(await ledger(session))

        await approval_service.resubmit_entry(b.approval.reward_entry_id, "M100")
        board = await ledger(session)
        assert_consistent(board)
        assert (board.approved_points, board.for_approval_points, board.rejected_points) == (10, 20, 20)
