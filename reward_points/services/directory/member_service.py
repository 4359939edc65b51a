import logging
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timezone
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from reward_points.core.exceptions import NotFoundError
from reward_points.models.directory.member import Member
from reward_points.models.shared.enums import MemberStatus, Role
from reward_points.schemas.directory.member_schema import DirectoryRecord, MemberResponse, MemberUpdate
from reward_points.utils.helpers import capitalize_title

logger = logging.getLogger(__name__)

SYNCED_FIELDS = ("username", "first_name", "last_name", "email", "title", "manager_id", "director_id", "role_id")


class MemberService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # region ========== Lookups ==========

    async def find_by_employee_id(
        self, employee_id: str, include_inactive: bool = False
    ) -> Optional[Member]:
        conditions = [Member.employee_id == employee_id]
        if not include_inactive:
            conditions.append(Member.status == MemberStatus.ACTIVE)
        result = await self.session.execute(select(Member).where(*conditions))
        return result.scalar_one_or_none()

    async def get_member(self, employee_id: str, include_inactive: bool = False) -> MemberResponse:
        """Member with ``manager_name``/``director_name`` resolved one hop up"""
        member = await self.find_by_employee_id(employee_id, include_inactive)
        if not member:
            raise NotFoundError(f"Member {employee_id} not found")
        return await self.to_response(member)

    async def find_by_username(self, username: str) -> Optional[Member]:
        result = await self.session.execute(
            select(Member).where(func.lower(Member.username) == username.lower())
        )
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[Member]:
        result = await self.session.execute(
            select(Member).where(func.lower(Member.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def find_by_role(self, role: Role) -> List[Member]:
        result = await self.session.execute(
            select(Member)
            .where(Member.role_id == int(role), Member.status == MemberStatus.ACTIVE)
            .order_by(Member.last_name, Member.first_name)
        )
        return list(result.scalars().all())

    async def find_by_manager(self, manager_id: str) -> List[Member]:
        result = await self.session.execute(
            select(Member)
            .where(Member.manager_id == manager_id, Member.status == MemberStatus.ACTIVE)
            .order_by(Member.last_name, Member.first_name)
        )
        return list(result.scalars().all())

    async def find_by_director(self, director_id: str) -> List[Member]:
        result = await self.session.execute(
            select(Member)
            .where(Member.director_id == director_id, Member.status == MemberStatus.ACTIVE)
            .order_by(Member.last_name, Member.first_name)
        )
        return list(result.scalars().all())

    async def get_members(
        self,
        search: Optional[str] = None,
        role: Optional[Role] = None,
        member_status: Optional[MemberStatus] = None,
        page_index: int = 1,
        page_size: int = 100
    ) -> Dict[str, Any]:
        """Paginated member search over names, username, email and employee id"""
        conditions = []
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(or_(
                func.lower(Member.first_name).like(pattern),
                func.lower(Member.last_name).like(pattern),
                func.lower(Member.username).like(pattern),
                func.lower(Member.email).like(pattern),
                Member.employee_id.like(f"%{search}%"),
            ))
        if role:
            conditions.append(Member.role_id == int(role))
        if member_status:
            conditions.append(Member.status == member_status)

        total_count = await self.session.scalar(
            select(func.count(Member.id)).where(*conditions)
        )
        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            select(Member)
            .where(*conditions)
            .order_by(Member.last_name, Member.first_name)
            .offset(skip)
            .limit(page_size)
        )
        members = result.scalars().all()
        names = await self._names_for(
            {m.manager_id for m in members} | {m.director_id for m in members}
        )

        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total_count or 0,
            "data": [self._response(m, names) for m in members]
        }

    async def names_for(self, employee_ids) -> Dict[str, str]:
        return await self._names_for(set(employee_ids))

    async def _names_for(self, employee_ids: set) -> Dict[str, str]:
        employee_ids = {e for e in employee_ids if e}
        if not employee_ids:
            return {}
        result = await self.session.execute(
            select(Member).where(Member.employee_id.in_(employee_ids))
        )
        return {m.employee_id: m.full_name for m in result.scalars().all()}

    async def to_response(self, member: Member) -> MemberResponse:
        names = await self._names_for({member.manager_id, member.director_id})
        return self._response(member, names)

    @staticmethod
    def _response(member: Member, names: Dict[str, str]) -> MemberResponse:
        response = MemberResponse.model_validate(member, from_attributes=True)
        response.manager_name = names.get(member.manager_id)
        response.director_name = names.get(member.director_id)
        return response

    # endregion

    # region ========== Directory Sync ==========

    async def upsert_from_directory(self, record: DirectoryRecord) -> Tuple[Member, str]:
        """Create or refresh a member from a directory record.

        Returns the member and one of ``created``, ``updated`` or ``unchanged``.
        Does not commit.
        """
        values = {
            "username": record.username,
            "first_name": record.first_name,
            "last_name": record.last_name,
            "email": str(record.email),
            "title": capitalize_title(record.title),
            "manager_id": record.manager_id,
            "director_id": record.director_id,
        }

        member = await self.find_by_employee_id(record.employee_id, include_inactive=True)
        if not member:
            member = Member(
                employee_id=record.employee_id,
                role_id=int(Role.from_title(record.title)),
                status=MemberStatus.ACTIVE,
                **values
            )
            self.session.add(member)
            await self.session.flush()
            logger.info(f"Member {record.employee_id} created from directory")
            return member, "created"

        # Roles granted locally (admins) survive a sync
        if not member.role.is_admin:
            values["role_id"] = int(Role.from_title(record.title))

        changed = [field for field in SYNCED_FIELDS if field in values and getattr(member, field) != values[field]]
        if member.status != MemberStatus.ACTIVE:
            member.status = MemberStatus.ACTIVE
            changed.append("status")
        if not changed:
            return member, "unchanged"

        for field in changed:
            if field in values:
                setattr(member, field, values[field])
        member.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        logger.info(f"Member {record.employee_id} updated from directory: {', '.join(changed)}")
        return member, "updated"

    # endregion

    # region ========== Administration ==========

    async def update_member(self, employee_id: str, data: MemberUpdate, updated_by: str) -> MemberResponse:
        try:
            member = await self.find_by_employee_id(employee_id, include_inactive=True)
            if not member:
                raise NotFoundError(f"Member {employee_id} not found")

            for field, value in data.model_dump(exclude_unset=True).items():
                if field == "role_id" and value is not None:
                    value = int(value)
                setattr(member, field, value)
            member.updated_by = updated_by
            member.updated_at = datetime.now(timezone.utc)

            await self.session.commit()
            await self.session.refresh(member)
            logger.info(f"Member {employee_id} updated by {updated_by}")
            return await self.to_response(member)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating member {employee_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error updating member"
            )

    async def set_status(self, employee_id: str, member_status: MemberStatus, updated_by: str) -> MemberResponse:
        return await self.update_member(employee_id, MemberUpdate(status=member_status), updated_by)

    async def deactivate(self, employee_id: str, updated_by: str) -> MemberResponse:
        """Soft delete: members are never removed, only marked INACTIVE"""
        return await self.set_status(employee_id, MemberStatus.INACTIVE, updated_by)

    # endregion
