import logging
from typing import Any, Dict, List, Optional
from datetime import date, datetime, timezone
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from reward_points.core.exceptions import NotFoundError, ValidationError
from reward_points.models.criteria.criteria import Criteria
from reward_points.models.directory.member import Member
from reward_points.models.rewards.reward_entry import RewardEntry
from reward_points.schemas.rewards.reward_entry_schema import RewardEntryDetail, RewardEntrySubmit
from reward_points.utils.file_handler import AttachmentChanges, AttachmentStorage
from reward_points.utils.helpers import fiscal_year, race_season

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("short_description", "date_accomplished", "group_name", "project_name", "notes")


class RewardEntryService:
    """Reward entry rows and their attachment manifest.

    Writers here only flush; the approval workflow owns the transaction and
    the ledger side of every change.
    """

    def __init__(self, session: AsyncSession, storage: Optional[AttachmentStorage] = None):
        self.session = session
        self.storage = storage or AttachmentStorage()

    async def create(
        self,
        owner: Member,
        criteria: Criteria,
        data: RewardEntrySubmit,
        attachments: Optional[List[Dict]] = None,
        submitted_on: Optional[date] = None,
    ) -> RewardEntry:
        if not owner or not criteria:
            raise ValidationError("A reward entry needs an owner and a criteria")
        submitted_on = submitted_on or date.today()

        entry = RewardEntry(
            employee_id=owner.employee_id,
            criteria_id=criteria.id,
            points=criteria.points,
            short_description=data.short_description,
            date_accomplished=data.date_accomplished,
            fiscal_year=fiscal_year(submitted_on),
            race_season=race_season(submitted_on),
            group_name=data.group_name,
            project_name=data.project_name,
            notes=data.notes,
            attachments=AttachmentStorage.deduplicate(attachments or []),
            created_by=owner.employee_id,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_entry(self, entry_id: int) -> RewardEntry:
        result = await self.session.execute(
            select(RewardEntry)
            .options(selectinload(RewardEntry.criteria), selectinload(RewardEntry.approval_entry))
            .where(RewardEntry.id == entry_id)
            .execution_options(populate_existing=True)
        )
        entry = result.scalar_one_or_none()
        if not entry:
            raise NotFoundError(f"Reward entry not found with id of {entry_id}")
        return entry

    async def get_entry_detail(self, entry_id: int) -> RewardEntryDetail:
        return RewardEntryDetail.model_validate(await self.get_entry(entry_id), from_attributes=True)

    async def find_by_owner(
        self,
        employee_id: str,
        fiscal_year_label: Optional[str] = None,
        page_index: int = 1,
        page_size: int = 100
    ) -> Dict[str, Any]:
        conditions = [RewardEntry.employee_id == employee_id]
        if fiscal_year_label:
            conditions.append(RewardEntry.fiscal_year == fiscal_year_label)
        return await self._paginate(conditions, page_index, page_size)

    async def find_by_group(
        self, group_name: str, page_index: int = 1, page_size: int = 100
    ) -> Dict[str, Any]:
        return await self._paginate([RewardEntry.group_name == group_name], page_index, page_size)

    async def find_by_project(
        self, employee_id: str, project_name: str
    ) -> List[RewardEntryDetail]:
        result = await self.session.execute(
            select(RewardEntry)
            .options(selectinload(RewardEntry.criteria))
            .where(RewardEntry.employee_id == employee_id, RewardEntry.project_name == project_name)
            .execution_options(populate_existing=True)
            .order_by(RewardEntry.created_at.desc())
        )
        return [RewardEntryDetail.model_validate(e, from_attributes=True) for e in result.scalars().all()]

    async def _paginate(self, conditions: list, page_index: int, page_size: int) -> Dict[str, Any]:
        total_count = await self.session.scalar(
            select(func.count(RewardEntry.id)).where(*conditions)
        )
        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            select(RewardEntry)
            .options(selectinload(RewardEntry.criteria))
            .where(*conditions)
            .execution_options(populate_existing=True)
            .order_by(RewardEntry.created_at.desc(), RewardEntry.id.desc())
            .offset(skip)
            .limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total_count or 0,
            "data": [RewardEntryDetail.model_validate(e, from_attributes=True) for e in result.scalars().all()]
        }

    async def apply_changes(
        self,
        entry: RewardEntry,
        changes: Dict[str, Any],
        updated_by: str,
        added: Optional[List[Dict]] = None,
        to_delete: Optional[List[str]] = None,
    ) -> AttachmentChanges:
        """Update descriptive fields and the attachment manifest.

        Only the row changes here. The returned file work (removed files,
        moves after a project rename) is for the caller to apply once the
        transaction has committed.
        """
        old_project = entry.project_name
        for field, value in changes.items():
            if field in EDITABLE_FIELDS:
                setattr(entry, field, value)

        current = list(entry.attachments or [])
        planned, moves = current, []
        if entry.project_name != old_project:
            planned, moves = self.storage.plan_relocation(current, entry.employee_id, entry.project_name)
        entry.attachments = AttachmentStorage.merge(planned, added or [], to_delete or [])

        kept = {item["path"] for item in entry.attachments}
        file_changes = AttachmentChanges(
            removed=[item for item, target in zip(current, planned) if target["path"] not in kept],
            moves=[(source, target) for source, target in moves if target in kept],
            vacated=[self.storage.project_dir(entry.employee_id, old_project)],
        )

        entry.updated_by = updated_by
        entry.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        return file_changes

    async def delete(self, entry: RewardEntry) -> List[Dict]:
        """Hard delete; returns the manifest so the caller can remove files after commit"""
        manifest = list(entry.attachments or [])
        await self.session.delete(entry)
        await self.session.flush()
        logger.info(f"Reward entry {entry.id} deleted")
        return manifest
