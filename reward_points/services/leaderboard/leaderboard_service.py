import logging
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from reward_points.core.config import settings
from reward_points.core.exceptions import ConflictError, NotFoundError
from reward_points.models.directory.member import Member
from reward_points.models.leaderboard.leaderboard import Leaderboard
from reward_points.models.rewards.reward_entry import RewardEntry
from reward_points.models.shared.enums import MemberStatus, PointBucket, Role
from reward_points.schemas.leaderboard.leaderboard_schema import (
    LeaderboardRanking, LeaderboardResponse, LeaderboardStats, RolePointTotals
)
from reward_points.utils.helpers import fiscal_year, leaderboard_alias

logger = logging.getLogger(__name__)
ledger_logger = logging.getLogger("reward_points.ledger")


class LeaderboardService:
    """Per-member, per-fiscal-year point ledger.

    The point writers (``add_points``, ``approve_points``, ``resubmit_points``,
    ``remove_points``, ``admin_resubmit_points``, ``move_points``) never commit:
    they are called by the approval workflow inside its own transaction and
    all of them persist through ``update_points``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # region ========== Ledger Rows ==========

    async def find(self, employee_id: str, fiscal_year_label: str) -> Optional[Leaderboard]:
        result = await self.session.execute(
            select(Leaderboard).where(
                Leaderboard.employee_id == employee_id,
                Leaderboard.fiscal_year == fiscal_year_label
            )
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, employee_id: str, fiscal_year_label: str) -> Leaderboard:
        """Lock and return the ledger row; a missing row aborts the workflow"""
        result = await self.session.execute(
            select(Leaderboard)
            .where(
                Leaderboard.employee_id == employee_id,
                Leaderboard.fiscal_year == fiscal_year_label
            )
            .with_for_update()
        )
        board = result.scalar_one_or_none()
        if not board:
            logger.error(f"Leaderboard record not found for {employee_id} in {fiscal_year_label}")
            raise NotFoundError(f"Leaderboard record not found for member {employee_id} ({fiscal_year_label})")
        return board

    async def get_or_create(self, employee_id: str, fiscal_year_label: str) -> Leaderboard:
        """Return the locked ledger row, creating it on the member's first submission"""
        board = await self.find(employee_id, fiscal_year_label)
        if board:
            return await self.get_for_update(employee_id, fiscal_year_label)

        sequence = await self.session.scalar(
            select(func.count(Leaderboard.id)).where(Leaderboard.fiscal_year == fiscal_year_label)
        )
        board = Leaderboard(
            employee_id=employee_id,
            fiscal_year=fiscal_year_label,
            alias_name=leaderboard_alias(fiscal_year_label, (sequence or 0) + 1),
            total_points=0,
            approved_points=0,
            for_approval_points=0,
            rejected_points=0,
            created_by=employee_id,
        )
        self.session.add(board)
        await self.session.flush()
        ledger_logger.info(f"Leaderboard {board.alias_name} created for {employee_id} ({fiscal_year_label})")
        return board

    # endregion

    # region ========== Point Accounting ==========

    def _assert_owner(self, board: Leaderboard, entry: RewardEntry):
        if entry.employee_id != board.employee_id:
            logger.error(
                f"Reward entry {entry.id} owner {entry.employee_id} does not match "
                f"leaderboard owner {board.employee_id}"
            )
            raise ConflictError("Reward entry not eligible for point update")

    async def add_points(
        self, board: Leaderboard, entry: RewardEntry, bucket: PointBucket
    ) -> Leaderboard:
        """Post a new submission's points into ``bucket``"""
        self._assert_owner(board, entry)
        return await self.update_points(board, {bucket: entry.points}, reason=f"add entry {entry.id}")

    async def approve_points(
        self, board: Leaderboard, entry: RewardEntry, approved: bool
    ) -> Leaderboard:
        """Settle a pending entry into approved or rejected"""
        self._assert_owner(board, entry)
        target = PointBucket.APPROVED if approved else PointBucket.REJECTED
        return await self.update_points(
            board,
            {PointBucket.FOR_APPROVAL: -entry.points, target: entry.points},
            reason=f"{'approve' if approved else 'reject'} entry {entry.id}",
        )

    async def resubmit_points(self, board: Leaderboard, entry: RewardEntry) -> Leaderboard:
        self._assert_owner(board, entry)
        return await self.update_points(
            board,
            {PointBucket.REJECTED: -entry.points, PointBucket.FOR_APPROVAL: entry.points},
            reason=f"resubmit entry {entry.id}",
        )

    async def remove_points(
        self,
        board: Leaderboard,
        entry: RewardEntry,
        points: int,
        fallback: Optional[PointBucket] = None,
    ) -> PointBucket:
        """Take ``points`` out of the first bucket that holds them.

        Without a ``fallback`` the order is for-approval, approved, rejected.
        A ``fallback`` (the bucket implied by the entry's statuses) is tried
        before that order: when another pending entry also fills for-approval,
        an approved entry's points must still come out of approved. The plain
        order only applies when the implied bucket cannot cover the amount,
        e.g. after an earlier clamp. When no bucket covers it the ``fallback``
        bucket (or for-approval) is drained and clamped. Returns the bucket
        the points were removed from.
        """
        self._assert_owner(board, entry)
        source = None
        order = [PointBucket.FOR_APPROVAL, PointBucket.APPROVED, PointBucket.REJECTED]
        if fallback:
            order.remove(fallback)
            order.insert(0, fallback)
        for bucket in order:
            if board.bucket(bucket) >= points:
                source = bucket
                break
        if source is None:
            source = fallback or PointBucket.FOR_APPROVAL
            ledger_logger.warning(
                f"No bucket on {board.alias_name} holds {points} points for entry {entry.id}; "
                f"draining {source.value}"
            )
        await self.update_points(board, {source: -points}, reason=f"remove entry {entry.id}")
        return source

    async def admin_resubmit_points(
        self, board: Leaderboard, entry: RewardEntry, points: int, bucket: PointBucket
    ) -> Leaderboard:
        """Post corrected points after an admin override"""
        self._assert_owner(board, entry)
        return await self.update_points(board, {bucket: points}, reason=f"admin resubmit entry {entry.id}")

    async def move_points(
        self, board: Leaderboard, entry: RewardEntry, source: PointBucket, target: PointBucket
    ) -> Leaderboard:
        self._assert_owner(board, entry)
        if source == target:
            return board
        return await self.update_points(
            board,
            {source: -entry.points, target: entry.points},
            reason=f"move entry {entry.id} {source.value} -> {target.value}",
        )

    async def update_points(
        self, board: Leaderboard, changes: Dict[PointBucket, int], reason: str = ""
    ) -> Leaderboard:
        """Apply bucket deltas, clamp at zero and recompute the total"""
        for bucket, delta in changes.items():
            current = board.bucket(bucket)
            value = current + delta
            if value < 0:
                ledger_logger.warning(
                    f"Inconsistent points on {board.alias_name}: subtracting {-delta} from "
                    f"{current} {bucket.value} ({reason}); clamped to 0"
                )
                value = 0
            setattr(board, bucket.value, value)

        board.total_points = sum(board.bucket(bucket) for bucket in PointBucket)
        board.updated_at = datetime.now(timezone.utc)
        await self.session.flush()

        ledger_logger.info(
            f"{board.alias_name} [{reason}] total={board.total_points} "
            f"approved={board.approved_points} for_approval={board.for_approval_points} "
            f"rejected={board.rejected_points}"
        )
        return board

    # endregion

    # region ========== Queries ==========

    async def get_all_leaderboards(
        self,
        fiscal_year_label: Optional[str] = None,
        page_index: int = 1,
        page_size: int = 100
    ) -> Dict[str, Any]:
        conditions = []
        if fiscal_year_label:
            conditions.append(Leaderboard.fiscal_year == fiscal_year_label)

        total_count = await self.session.scalar(
            select(func.count(Leaderboard.id)).where(*conditions)
        )
        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            select(Leaderboard)
            .where(*conditions)
            .order_by(Leaderboard.total_points.desc(), Leaderboard.id)
            .offset(skip)
            .limit(page_size)
        )
        boards = result.scalars().all()

        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total_count or 0,
            "data": [LeaderboardResponse.model_validate(b, from_attributes=True) for b in boards]
        }

    async def get_leaderboard(self, leaderboard_id: int) -> LeaderboardResponse:
        board = await self.session.get(Leaderboard, leaderboard_id)
        if not board:
            raise NotFoundError(f"Leaderboard {leaderboard_id} not found")
        return LeaderboardResponse.model_validate(board, from_attributes=True)

    async def get_by_alias(self, alias_name: str) -> LeaderboardResponse:
        result = await self.session.execute(
            select(Leaderboard).where(Leaderboard.alias_name == alias_name)
        )
        board = result.scalar_one_or_none()
        if not board:
            raise NotFoundError(f"Leaderboard {alias_name} not found")
        return LeaderboardResponse.model_validate(board, from_attributes=True)

    async def get_member_leaderboard(
        self, employee_id: str, fiscal_year_label: Optional[str] = None
    ) -> LeaderboardResponse:
        fiscal_year_label = fiscal_year_label or fiscal_year()
        board = await self.find(employee_id, fiscal_year_label)
        if not board:
            raise NotFoundError(f"No leaderboard record for {employee_id} in {fiscal_year_label}")
        return LeaderboardResponse.model_validate(board, from_attributes=True)

    async def get_top_by_role(
        self,
        role: Role,
        top: Optional[int] = None,
        fiscal_year_label: Optional[str] = None
    ) -> List[LeaderboardRanking]:
        """Highest totals among ACTIVE members holding ``role``"""
        top = top or settings.LEADERBOARD_TOP_DEFAULT
        fiscal_year_label = fiscal_year_label or fiscal_year()
        result = await self.session.execute(
            select(Leaderboard, Member)
            .join(Member, Member.employee_id == Leaderboard.employee_id)
            .where(
                Member.role_id == int(role),
                Member.status == MemberStatus.ACTIVE,
                Leaderboard.fiscal_year == fiscal_year_label
            )
            .order_by(Leaderboard.total_points.desc(), Leaderboard.id)
            .limit(top)
        )
        return [self._ranking(board, member) for board, member in result.all()]

    async def get_stats(self, fiscal_year_label: Optional[str] = None) -> LeaderboardStats:
        fiscal_year_label = fiscal_year_label or fiscal_year()

        counts = await self.session.execute(
            select(Member.role_id, func.count(Leaderboard.id))
            .join(Member, Member.employee_id == Leaderboard.employee_id)
            .where(
                Leaderboard.fiscal_year == fiscal_year_label,
                Leaderboard.total_points > 0
            )
            .group_by(Member.role_id)
        )
        sums = await self.session.execute(
            select(
                Member.role_id,
                func.sum(Leaderboard.total_points),
                func.sum(Leaderboard.approved_points),
                func.sum(Leaderboard.for_approval_points),
                func.sum(Leaderboard.rejected_points),
            )
            .join(Member, Member.employee_id == Leaderboard.employee_id)
            .where(Leaderboard.fiscal_year == fiscal_year_label)
            .group_by(Member.role_id)
        )

        return LeaderboardStats(
            counts_by_role={Role(role_id).name: count for role_id, count in counts.all()},
            top_managers=await self.get_top_by_role(Role.MANAGER, 3, fiscal_year_label),
            top_members=await self.get_top_by_role(Role.MEMBER, 3, fiscal_year_label),
            points_by_role={
                Role(role_id).name: RolePointTotals(
                    total=total or 0, approved=approved or 0,
                    pending=pending or 0, rejected=rejected or 0
                )
                for role_id, total, approved, pending, rejected in sums.all()
            },
        )

    @staticmethod
    def _ranking(board: Leaderboard, member: Member) -> LeaderboardRanking:
        ranking = LeaderboardRanking.model_validate(board, from_attributes=True)
        ranking.first_name = member.first_name
        ranking.last_name = member.last_name
        ranking.title = member.title
        ranking.role_id = member.role
        return ranking

    # endregion
