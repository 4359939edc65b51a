import logging
from typing import Any, Dict, List, Optional, Tuple
from datetime import date, datetime, timezone
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from fastapi import HTTPException, status

from reward_points.core.exceptions import (
    ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError
)
from reward_points.core.logging import log_member_action
from reward_points.models.approval.approval_entry import ApprovalEntry
from reward_points.models.criteria.criteria import Criteria
from reward_points.models.directory.member import Member
from reward_points.models.leaderboard.leaderboard import Leaderboard
from reward_points.models.rewards.reward_entry import RewardEntry
from reward_points.models.shared.enums import (
    ApprovalDecision, ApprovalState, ApprovalStatus, ApprovalTrack, NotificationPurpose, PointBucket
)
from reward_points.schemas.approval.approval_schema import (
    AdminApprovalUpdate, ApprovalEntryDetail, ApprovalEntryResponse, WorkflowResult
)
from reward_points.schemas.leaderboard.leaderboard_schema import LeaderboardResponse
from reward_points.schemas.rewards.reward_entry_schema import RewardEntrySubmit, RewardEntryUpdate
from reward_points.services.approval.approval_state import (
    bucket_for_state, initial_statuses, resolve_state, resubmission_statuses
)
from reward_points.services.criteria.criteria_service import CriteriaService
from reward_points.services.directory.member_service import MemberService
from reward_points.services.leaderboard.leaderboard_service import LeaderboardService
from reward_points.services.notification.notification_service import (
    DECLINED_ENTRIES_LINK, DIRECTOR_APPROVAL_LINK, MANAGER_APPROVAL_LINK, MY_REWARD_POINTS_LINK,
    Notification, NotificationService, Notifier
)
from reward_points.services.rewards.reward_entry_service import RewardEntryService
from reward_points.utils.file_handler import AttachmentChanges, AttachmentStorage

logger = logging.getLogger(__name__)


class ApprovalService:
    """Two-stage (manager, director) approval workflow and its point accounting.

    Every mutation runs as one transaction: the owner's leaderboard row is
    locked, the ledger and the approval statuses are written, and the whole
    unit is committed once. Any failure rolls everything back. Emails go out
    after the commit and never fail the operation.
    """

    def __init__(
        self,
        session: AsyncSession,
        notifier: Optional[Notifier] = None,
        storage: Optional[AttachmentStorage] = None,
    ):
        self.session = session
        self.notifier = notifier or NotificationService()
        self.storage = storage or AttachmentStorage()
        self.members = MemberService(session)
        self.criteria = CriteriaService(session)
        self.entries = RewardEntryService(session, self.storage)
        self.ledger = LeaderboardService(session)

    # region ========== Submission ==========

    async def submit_entry(
        self,
        owner_id: str,
        data: RewardEntrySubmit,
        attachments: Optional[List[Dict]] = None,
        submitted_on: Optional[date] = None,
    ) -> WorkflowResult:
        """Create a reward entry, its approval record and post its points"""
        try:
            owner = await self.members.find_by_employee_id(owner_id)
            if not owner:
                raise NotFoundError(f"Member {owner_id} not found")

            role = owner.role
            criteria = await self.criteria.find(data.criteria_id, role.criteria_track)
            if not criteria.is_published:
                raise ValidationError(f"Criteria {criteria.id} is not published")

            manager_id, director_id = await self._assign_reviewers(owner, criteria)
            manager_status, director_status = initial_statuses(role, criteria.director_approval)
            state = resolve_state(manager_status, director_status, criteria.director_approval)

            entry = await self.entries.create(owner, criteria, data, attachments, submitted_on)
            board = await self.ledger.get_or_create(owner.employee_id, entry.fiscal_year)
            await self.ledger.add_points(board, entry, bucket_for_state(state))

            approval = ApprovalEntry(
                reward_entry_id=entry.id,
                manager_id=manager_id,
                director_id=director_id,
                manager_approval_status=manager_status,
                director_approval_status=director_status,
                created_by=owner.employee_id,
            )
            self.session.add(approval)
            await self.session.commit()
            await self.session.refresh(approval)
            await self.session.refresh(board)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error submitting reward entry for {owner_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error submitting reward entry"
            )

        logger.info(
            f"Reward entry {entry.id} submitted by {owner_id}: criteria {criteria.id}, "
            f"{entry.points} points, {state.value}"
        )
        log_member_action(owner_id, "submit", "reward_entry", entry.id)
        await self._notify_pending_reviewer(owner, entry, approval, state, NotificationPurpose.SUBMISSION)
        return self._result(approval, state, board)

    async def _assign_reviewers(self, owner: Member, criteria: Criteria) -> Tuple[Optional[str], Optional[str]]:
        """(manager_id, director_id) for a new submission.

        Review-tier submitters are reviewed by their manager and, when the
        criteria asks for it, by their director (or their manager's manager).
        Managers and directors skip the manager step and go to their own manager.
        """
        if owner.role.requires_review_step:
            manager = await self._reviewer(owner, owner.manager_id)
            if not manager:
                raise ValidationError("No manager is assigned to you; contact an administrator")

            director = await self._reviewer(owner, owner.director_id or manager.manager_id)
            if criteria.director_approval and not director:
                raise ValidationError("This criteria requires director approval but no director is assigned to you")
            return manager.employee_id, director.employee_id if director else None

        director = await self._reviewer(owner, owner.manager_id)
        if criteria.director_approval and not director:
            raise ValidationError("This criteria requires director approval but no reviewer is assigned to you")
        return None, director.employee_id if director else None

    async def _reviewer(self, owner: Member, employee_id: Optional[str]) -> Optional[Member]:
        if not employee_id or employee_id == owner.employee_id:
            return None
        return await self.members.find_by_employee_id(employee_id, include_inactive=True)

    # endregion

    # region ========== Approval Actions ==========

    async def act_on_approval(
        self,
        approval_id: int,
        actor_id: str,
        track: ApprovalTrack,
        decision: ApprovalDecision,
        notes: Optional[str] = None,
    ) -> WorkflowResult:
        """Record a manager or director decision and settle the points when final"""
        try:
            approval = await self._get_approval(approval_id)
            entry = await self.entries.get_entry(approval.reward_entry_id)
            criteria = self._criteria_of(entry)

            if actor_id == entry.employee_id:
                raise ConflictError("You cannot review your own reward entry")
            assigned = approval.manager_id if track == ApprovalTrack.MANAGER else approval.director_id
            if actor_id != assigned:
                raise ForbiddenError(f"You are not the assigned {track.value} for this entry")

            state = resolve_state(
                approval.manager_approval_status, approval.director_approval_status, criteria.director_approval
            )
            expected = (
                ApprovalState.AWAITING_MANAGER if track == ApprovalTrack.MANAGER
                else ApprovalState.AWAITING_DIRECTOR
            )
            if state != expected:
                raise InvalidStateError(
                    f"The {track.value} decision cannot be recorded while the entry is {state.value}"
                )

            board = await self.ledger.get_for_update(entry.employee_id, entry.fiscal_year)

            new_status = ApprovalStatus.APPROVED if decision == ApprovalDecision.APPROVE else ApprovalStatus.REJECTED
            if track == ApprovalTrack.MANAGER:
                approval.manager_approval_status = new_status
                approval.manager_notes = notes
            else:
                approval.director_approval_status = new_status
                approval.director_notes = notes
            approval.updated_by = actor_id
            approval.updated_at = datetime.now(timezone.utc)

            new_state = resolve_state(
                approval.manager_approval_status, approval.director_approval_status, criteria.director_approval
            )
            if new_state in (ApprovalState.APPROVED, ApprovalState.REJECTED):
                await self.ledger.approve_points(board, entry, approved=new_state == ApprovalState.APPROVED)

            await self.session.commit()
            await self.session.refresh(approval)
            await self.session.refresh(board)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error processing {track.value} decision on approval {approval_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error processing approval decision"
            )

        logger.info(
            f"Approval {approval_id}: {track.value} {actor_id} {new_status.value} entry {entry.id}; "
            f"state {state.value} -> {new_state.value}"
        )
        log_member_action(actor_id, f"{track.value}_{decision.value}", "approval_entry", approval_id)
        await self._notify_decision(entry, approval, track, new_state)
        return self._result(approval, new_state, board)

    # endregion

    # region ========== Resubmission ==========

    async def check_resubmission(self, entry_id: int, owner_id: str) -> RewardEntry:
        """Raise unless ``owner_id`` may resubmit the entry right now.

        Callers run this before storing new uploads so a refused
        resubmission leaves no files behind.
        """
        entry, _, _, _ = await self._resubmission_plan(entry_id, owner_id)
        return entry

    async def _resubmission_plan(self, entry_id: int, owner_id: str):
        entry = await self.entries.get_entry(entry_id)
        if entry.employee_id != owner_id:
            raise ForbiddenError("Only the owner can resubmit this entry")
        approval = entry.approval_entry
        if not approval:
            raise NotFoundError(f"Approval entry not found for reward entry {entry_id}")
        owner = await self.members.find_by_employee_id(owner_id)
        if not owner:
            raise NotFoundError(f"Member {owner_id} not found")
        criteria = self._criteria_of(entry)

        state = resolve_state(
            approval.manager_approval_status, approval.director_approval_status, criteria.director_approval
        )
        if state != ApprovalState.REJECTED:
            raise InvalidStateError(f"Only rejected entries can be resubmitted; this entry is {state.value}")

        statuses = resubmission_statuses(
            approval.manager_id is not None, criteria.director_approval, approval.manager_approval_status
        )
        return entry, owner, criteria, statuses

    async def resubmit_entry(
        self,
        entry_id: int,
        owner_id: str,
        changes: Optional[RewardEntryUpdate] = None,
        added_attachments: Optional[List[Dict]] = None,
    ) -> WorkflowResult:
        """Send a rejected entry back for review, optionally with edits"""
        file_changes = AttachmentChanges()
        try:
            entry, owner, criteria, (manager_status, director_status) = await self._resubmission_plan(
                entry_id, owner_id
            )
            approval = entry.approval_entry
            new_state = resolve_state(manager_status, director_status, criteria.director_approval)

            board = await self.ledger.get_for_update(entry.employee_id, entry.fiscal_year)

            if approval.manager_id is not None:
                approval.manager_notes = None
            if criteria.director_approval:
                approval.director_notes = None
            approval.manager_approval_status = manager_status
            approval.director_approval_status = director_status
            approval.updated_by = owner_id
            approval.updated_at = datetime.now(timezone.utc)

            if changes is not None or added_attachments:
                changes = changes or RewardEntryUpdate()
                file_changes = await self.entries.apply_changes(
                    entry,
                    changes.model_dump(exclude_unset=True, exclude={"attachments_to_delete"}),
                    owner_id,
                    added=added_attachments,
                    to_delete=changes.attachments_to_delete,
                )

            await self.ledger.resubmit_points(board, entry)

            await self.session.commit()
            await self.session.refresh(approval)
            await self.session.refresh(board)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error resubmitting reward entry {entry_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error resubmitting reward entry"
            )

        await self._apply_file_changes(entry_id, file_changes)
        logger.info(f"Reward entry {entry_id} resubmitted by {owner_id}; state {new_state.value}")
        log_member_action(owner_id, "resubmit", "reward_entry", entry_id)
        await self._notify_pending_reviewer(owner, entry, approval, new_state, NotificationPurpose.RESUBMISSION)
        return self._result(approval, new_state, board)

    # endregion

    # region ========== Admin Override ==========

    async def admin_update_entry(
        self, approval_id: int, admin: Member, payload: AdminApprovalUpdate
    ) -> WorkflowResult:
        """Set statuses, criteria and fields directly, reconciling the ledger.

        A criteria change takes the old snapshot out of whichever bucket
        holds it and posts the new criteria's points into the bucket implied
        by the new statuses.
        """
        if not admin.role.is_admin:
            raise ForbiddenError("Only administrators can override approval entries")

        file_changes = AttachmentChanges()
        try:
            approval = await self._get_approval(approval_id)
            entry = await self.entries.get_entry(approval.reward_entry_id)
            owner = await self.members.find_by_employee_id(entry.employee_id, include_inactive=True)
            if not owner:
                raise NotFoundError(f"Member {entry.employee_id} not found")
            old_criteria = self._criteria_of(entry)
            old_bucket = self._implied_bucket(approval, old_criteria)

            new_criteria = old_criteria
            if payload.criteria_id is not None and payload.criteria_id != old_criteria.id:
                new_criteria = await self.criteria.find(payload.criteria_id, owner.role.criteria_track)

            manager_status = payload.manager_approval_status or approval.manager_approval_status
            director_status = payload.director_approval_status or approval.director_approval_status
            new_state = resolve_state(manager_status, director_status, new_criteria.director_approval)
            new_bucket = bucket_for_state(new_state)

            if new_state == ApprovalState.AWAITING_MANAGER and not approval.manager_id:
                approval.manager_id, _ = await self._assign_reviewers(owner, new_criteria)
            if new_state == ApprovalState.AWAITING_DIRECTOR and not approval.director_id:
                _, approval.director_id = await self._assign_reviewers(owner, new_criteria)
            if (new_state == ApprovalState.AWAITING_MANAGER and not approval.manager_id) or (
                new_state == ApprovalState.AWAITING_DIRECTOR and not approval.director_id
            ):
                raise ValidationError(f"No reviewer is available for state {new_state.value}")

            board = await self.ledger.get_for_update(entry.employee_id, entry.fiscal_year)
            old_points = entry.points

            if new_criteria.id != old_criteria.id:
                await self.ledger.remove_points(board, entry, old_points, fallback=old_bucket)
                entry.criteria = new_criteria
                entry.points = new_criteria.points
                await self.ledger.admin_resubmit_points(board, entry, new_criteria.points, new_bucket)
            elif old_bucket is None:
                await self.ledger.remove_points(board, entry, old_points)
                await self.ledger.admin_resubmit_points(board, entry, old_points, new_bucket)
            elif old_bucket != new_bucket:
                await self.ledger.move_points(board, entry, old_bucket, new_bucket)

            approval.manager_approval_status = manager_status
            approval.director_approval_status = director_status
            fields = payload.model_dump(exclude_unset=True)
            if "manager_notes" in fields:
                approval.manager_notes = fields["manager_notes"]
            if "director_notes" in fields:
                approval.director_notes = fields["director_notes"]
            approval.updated_by = admin.employee_id
            approval.updated_at = datetime.now(timezone.utc)

            entry_changes = {
                k: v for k, v in fields.items()
                if k in ("short_description", "date_accomplished", "group_name", "project_name", "notes")
            }
            if entry_changes:
                file_changes = await self.entries.apply_changes(entry, entry_changes, admin.employee_id)

            await self.session.commit()
            await self.session.refresh(approval)
            await self.session.refresh(board)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error applying admin override to approval {approval_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error updating approval entry"
            )

        await self._apply_file_changes(entry.id, file_changes)
        logger.info(
            f"Approval {approval_id} overridden by {admin.employee_id}: criteria {old_criteria.id} -> "
            f"{new_criteria.id}, {old_points} -> {entry.points} points, state {new_state.value}"
        )
        log_member_action(admin.employee_id, "admin_update", "approval_entry", approval_id)
        return self._result(approval, new_state, board)

    async def admin_delete_entry(self, entry_id: int, admin: Member) -> LeaderboardResponse:
        """Hard delete an entry, reversing its points and removing its files"""
        if not admin.role.is_admin:
            raise ForbiddenError("Only administrators can delete reward entries")

        try:
            entry = await self.entries.get_entry(entry_id)
            bucket = None
            if entry.approval_entry and entry.criteria:
                bucket = self._implied_bucket(entry.approval_entry, entry.criteria)

            board = await self.ledger.get_for_update(entry.employee_id, entry.fiscal_year)
            await self.ledger.remove_points(board, entry, entry.points, fallback=bucket)
            manifest = await self.entries.delete(entry)

            await self.session.commit()
            await self.session.refresh(board)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting reward entry {entry_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error deleting reward entry"
            )

        if manifest:
            await self.storage.delete_files(manifest)
            await self.storage.remove_dir_if_empty(self.storage.project_dir(entry.employee_id, entry.project_name))
        log_member_action(admin.employee_id, "delete", "reward_entry", entry_id)
        return LeaderboardResponse.model_validate(board, from_attributes=True)

    # endregion

    # region ========== Queries ==========

    async def get_approval_detail(self, approval_id: int, viewer: Member) -> ApprovalEntryDetail:
        approval = await self._get_approval(approval_id)
        entry = approval.reward_entry
        allowed = {entry.employee_id if entry else None, approval.manager_id, approval.director_id}
        if viewer.employee_id not in allowed and not viewer.role.is_admin:
            raise ForbiddenError("You are not allowed to view this approval entry")
        return (await self._details([approval]))[0]

    async def get_owner_approvals(
        self, owner_id: str, page_index: int = 1, page_size: int = 100
    ) -> Dict[str, Any]:
        return await self._list([RewardEntry.employee_id == owner_id], page_index, page_size)

    async def get_manager_approvals(
        self,
        manager_id: str,
        approval_status: Optional[ApprovalStatus] = None,
        page_index: int = 1,
        page_size: int = 100
    ) -> Dict[str, Any]:
        conditions = [ApprovalEntry.manager_id == manager_id]
        if approval_status:
            conditions.append(ApprovalEntry.manager_approval_status == approval_status)
        return await self._list(conditions, page_index, page_size)

    async def get_director_approvals(
        self,
        director_id: str,
        approval_status: Optional[ApprovalStatus] = None,
        manager_id: Optional[str] = None,
        page_index: int = 1,
        page_size: int = 100
    ) -> Dict[str, Any]:
        """Entries for a director; only those already past the manager step"""
        conditions = [
            ApprovalEntry.director_id == director_id,
            ApprovalEntry.manager_approval_status == ApprovalStatus.APPROVED,
            Criteria.director_approval == True,
        ]
        if approval_status:
            conditions.append(ApprovalEntry.director_approval_status == approval_status)
        if manager_id:
            conditions.append(ApprovalEntry.manager_id == manager_id)
        return await self._list(conditions, page_index, page_size)

    async def get_all_approvals(
        self,
        manager_status: Optional[ApprovalStatus] = None,
        director_status: Optional[ApprovalStatus] = None,
        fiscal_year_label: Optional[str] = None,
        page_index: int = 1,
        page_size: int = 100
    ) -> Dict[str, Any]:
        conditions = []
        if manager_status:
            conditions.append(ApprovalEntry.manager_approval_status == manager_status)
        if director_status:
            conditions.append(ApprovalEntry.director_approval_status == director_status)
        if fiscal_year_label:
            conditions.append(RewardEntry.fiscal_year == fiscal_year_label)
        return await self._list(conditions, page_index, page_size)

    async def _list(self, conditions: list, page_index: int, page_size: int) -> Dict[str, Any]:
        base = (
            select(ApprovalEntry)
            .join(RewardEntry, RewardEntry.id == ApprovalEntry.reward_entry_id)
            .join(Criteria, Criteria.id == RewardEntry.criteria_id)
            .where(*conditions)
        )
        total_count = await self.session.scalar(
            select(func.count()).select_from(base.subquery())
        )
        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            base.options(selectinload(ApprovalEntry.reward_entry).selectinload(RewardEntry.criteria))
            .order_by(ApprovalEntry.created_at.desc(), ApprovalEntry.id.desc())
            .offset(skip)
            .limit(page_size)
            .execution_options(populate_existing=True)
        )
        approvals = result.scalars().unique().all()

        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total_count or 0,
            "data": await self._details(approvals)
        }

    async def _details(self, approvals) -> List[ApprovalEntryDetail]:
        ids = set()
        for approval in approvals:
            ids.update({approval.manager_id, approval.director_id})
            if approval.reward_entry:
                ids.add(approval.reward_entry.employee_id)
        names = await self.members.names_for(ids)

        details = []
        for approval in approvals:
            detail = ApprovalEntryDetail.model_validate(approval, from_attributes=True)
            entry = approval.reward_entry
            detail.state = self._state_or_none(approval, entry.criteria if entry else None)
            detail.manager_name = names.get(approval.manager_id)
            detail.director_name = names.get(approval.director_id)
            detail.owner_name = names.get(entry.employee_id) if entry else None
            details.append(detail)
        return details

    # endregion

    # region ========== Helpers ==========

    async def _get_approval(self, approval_id: int) -> ApprovalEntry:
        result = await self.session.execute(
            select(ApprovalEntry)
            .options(selectinload(ApprovalEntry.reward_entry).selectinload(RewardEntry.criteria))
            .where(ApprovalEntry.id == approval_id)
            .execution_options(populate_existing=True)
        )
        approval = result.scalar_one_or_none()
        if not approval:
            raise NotFoundError(f"Approval entry not found with id of {approval_id}")
        return approval

    @staticmethod
    def _criteria_of(entry: RewardEntry) -> Criteria:
        if not entry.criteria:
            raise NotFoundError(f"Criteria not found with id of {entry.criteria_id}")
        return entry.criteria

    @staticmethod
    def _state_or_none(approval: ApprovalEntry, criteria: Optional[Criteria]) -> Optional[ApprovalState]:
        if criteria is None:
            return None
        try:
            return resolve_state(
                approval.manager_approval_status, approval.director_approval_status, criteria.director_approval
            )
        except InvalidStateError:
            return None

    def _implied_bucket(self, approval: ApprovalEntry, criteria: Criteria) -> Optional[PointBucket]:
        state = self._state_or_none(approval, criteria)
        if state is None:
            logger.warning(
                f"Approval {approval.id} holds an illegal status pair "
                f"({approval.manager_approval_status}, {approval.director_approval_status})"
            )
            return None
        return bucket_for_state(state)

    async def _apply_file_changes(self, entry_id: int, file_changes: AttachmentChanges):
        # The rows are committed at this point; a disk failure only leaves stray files
        try:
            await self.storage.apply(file_changes)
        except Exception as e:
            logger.error(f"Error updating attachment files for reward entry {entry_id}: {e}")

    @staticmethod
    def _result(approval: ApprovalEntry, state: ApprovalState, board: Leaderboard) -> WorkflowResult:
        response = ApprovalEntryResponse.model_validate(approval, from_attributes=True)
        response.state = state
        return WorkflowResult(
            approval=response,
            leaderboard=LeaderboardResponse.model_validate(board, from_attributes=True),
        )

    # endregion

    # region ========== Email Notifications ==========

    async def _send(self, notification: Notification):
        try:
            await self.notifier.notify(notification)
        except Exception as e:
            logger.error(f"Error sending notification '{notification.subject}': {e}")

    async def _email_of(self, employee_id: Optional[str]) -> Optional[str]:
        if not employee_id:
            return None
        member = await self.members.find_by_employee_id(employee_id, include_inactive=True)
        return member.email if member else None

    async def _notify_pending_reviewer(
        self,
        owner: Member,
        entry: RewardEntry,
        approval: ApprovalEntry,
        state: ApprovalState,
        purpose: NotificationPurpose,
    ):
        """Tell the reviewer of the first pending track that an entry waits for them"""
        try:
            if state == ApprovalState.AWAITING_MANAGER:
                reviewer_id, role, link = approval.manager_id, "Manager", MANAGER_APPROVAL_LINK
            elif state == ApprovalState.AWAITING_DIRECTOR:
                reviewer_id, role, link = approval.director_id, "Director", DIRECTOR_APPROVAL_LINK
            else:
                return

            subject = (
                "Reward Points Entry Resubmitted for Approval"
                if purpose == NotificationPurpose.RESUBMISSION
                else "New Reward Points Entry for Approval"
            )
            await self._send(Notification(
                to=[await self._email_of(reviewer_id)],
                subject=subject,
                purpose=purpose,
                role=role,
                link=link,
                fullname=owner.full_name,
                reward_points=f"{entry.points} points",
            ))
        except Exception as e:
            logger.error(f"Error notifying reviewer for entry {entry.id}: {e}")

    async def _notify_decision(
        self, entry: RewardEntry, approval: ApprovalEntry, track: ApprovalTrack, state: ApprovalState
    ):
        try:
            owner = await self.members.find_by_employee_id(entry.employee_id, include_inactive=True)
            if state == ApprovalState.AWAITING_DIRECTOR:
                await self._notify_pending_reviewer(
                    owner, entry, approval, state, NotificationPurpose.SUBMISSION
                )
                return

            manager_email = await self._email_of(approval.manager_id)
            if state == ApprovalState.APPROVED:
                await self._send(Notification(
                    to=[owner.email],
                    cc=[manager_email] if track == ApprovalTrack.DIRECTOR and manager_email else [],
                    subject="Reward Points Entry Approved",
                    purpose=NotificationPurpose.APPROVAL,
                    role=owner.role.label,
                    status="approved",
                    link=MY_REWARD_POINTS_LINK,
                ))
            elif state == ApprovalState.REJECTED:
                # A director rejection of a reviewed entry goes to the manager, owner in copy
                if track == ApprovalTrack.DIRECTOR and manager_email:
                    to, cc, role = [manager_email], [owner.email], "Manager"
                else:
                    to, cc, role = [owner.email], [], owner.role.label
                await self._send(Notification(
                    to=to,
                    cc=cc,
                    subject="Reward Points Entry Declined",
                    purpose=NotificationPurpose.APPROVAL,
                    role=role,
                    status="rejected",
                    link=DECLINED_ENTRIES_LINK,
                ))
        except Exception as e:
            logger.error(f"Error sending decision notification for entry {entry.id}: {e}")

    # endregion
