import logging
from typing import List, Optional
from datetime import datetime, timezone
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from reward_points.core.exceptions import ConflictError, NotFoundError
from reward_points.core.security import get_password_hash, verify_password
from reward_points.models.admin.admin_account import AdminAccount
from reward_points.models.directory.member import Member
from reward_points.models.shared.enums import MemberStatus, Role
from reward_points.schemas.admin.admin_schema import AdminAccountCreate, AdminAccountResponse
from reward_points.services.directory.member_service import MemberService

logger = logging.getLogger(__name__)

ADMIN_EMPLOYEE_ID_PREFIX = "admin_"


class AdminAccountService:
    """Administrator logins kept outside the directory.

    Every account owns a SUPER_ADMIN member row keyed ``admin_<n>``, so the
    session token and every role check resolve it like any other member.
    The account status is mirrored onto that row.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.members = MemberService(session)

    # region ========== Lookups ==========

    async def find_by_id(self, admin_id: int) -> Optional[AdminAccount]:
        result = await self.session.execute(select(AdminAccount).where(AdminAccount.id == admin_id))
        return result.scalar_one_or_none()

    async def find_by_username(self, username: str) -> Optional[AdminAccount]:
        result = await self.session.execute(
            select(AdminAccount).where(func.lower(AdminAccount.username) == username.lower())
        )
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[AdminAccount]:
        result = await self.session.execute(
            select(AdminAccount).where(func.lower(AdminAccount.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_admins(self) -> List[AdminAccountResponse]:
        result = await self.session.execute(
            select(AdminAccount).order_by(AdminAccount.created_at.desc(), AdminAccount.id.desc())
        )
        return [AdminAccountResponse.model_validate(a, from_attributes=True) for a in result.scalars().all()]

    async def _get_account(self, admin_id: int) -> AdminAccount:
        account = await self.find_by_id(admin_id)
        if not account:
            raise NotFoundError(f"Admin account not found with id of {admin_id}")
        return account

    # endregion

    # region ========== Administration ==========

    async def create_admin(self, data: AdminAccountCreate, created_by: str) -> AdminAccountResponse:
        """Create the account and its member row in one transaction"""
        try:
            if await self.find_by_username(data.username) or await self.members.find_by_username(data.username):
                raise ConflictError("Username already exists")
            if await self.find_by_email(data.email) or await self.members.find_by_email(data.email):
                raise ConflictError("Email already exists")

            employee_id = await self._next_employee_id()
            account = AdminAccount(
                member_employee_id=employee_id,
                username=data.username,
                email=data.email,
                hashed_password=get_password_hash(data.password),
                first_name=data.first_name,
                last_name=data.last_name,
                status=MemberStatus.ACTIVE,
                created_by=created_by,
            )
            member = Member(
                employee_id=employee_id,
                username=data.username,
                first_name=data.first_name,
                last_name=data.last_name,
                email=data.email,
                title="Administrator",
                role_id=Role.SUPER_ADMIN.value,
                status=MemberStatus.ACTIVE,
                created_by=created_by,
            )
            self.session.add_all([account, member])
            await self.session.commit()
            await self.session.refresh(account)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating admin account {data.username}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creating admin account"
            )

        logger.info(f"Admin account {account.username} ({employee_id}) created by {created_by}")
        return AdminAccountResponse.model_validate(account, from_attributes=True)

    async def _next_employee_id(self) -> str:
        number = (await self.session.scalar(select(func.count(AdminAccount.id))) or 0) + 1
        while await self.members.find_by_employee_id(f"{ADMIN_EMPLOYEE_ID_PREFIX}{number}", include_inactive=True):
            number += 1
        return f"{ADMIN_EMPLOYEE_ID_PREFIX}{number}"

    async def set_status(self, admin_id: int, account_status: MemberStatus, updated_by: str) -> AdminAccountResponse:
        try:
            account = await self._get_account(admin_id)
            if account.member_employee_id == updated_by and account_status != MemberStatus.ACTIVE:
                raise ConflictError("You cannot deactivate your own admin account")

            now = datetime.now(timezone.utc)
            account.status = account_status
            account.updated_by = updated_by
            account.updated_at = now
            member = await self.members.find_by_employee_id(account.member_employee_id, include_inactive=True)
            if member:
                member.status = account_status
                member.updated_by = updated_by
                member.updated_at = now
            else:
                logger.warning(f"Admin account {account.username} has no member row {account.member_employee_id}")

            await self.session.commit()
            await self.session.refresh(account)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating admin account {admin_id} status: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error updating admin status"
            )

        logger.info(f"Admin account {account.username} set {account_status.value} by {updated_by}")
        return AdminAccountResponse.model_validate(account, from_attributes=True)

    async def reset_password(self, admin_id: int, password: str, updated_by: str) -> None:
        try:
            account = await self._get_account(admin_id)
            account.hashed_password = get_password_hash(password)
            account.updated_by = updated_by
            account.updated_at = datetime.now(timezone.utc)
            await self.session.commit()

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error resetting password of admin account {admin_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error resetting admin password"
            )

        logger.info(f"Password of admin account {account.username} reset by {updated_by}")

    # endregion

    # region ========== Authentication ==========

    async def authenticate(self, username: str, password: str) -> Optional[Member]:
        """Member row of an ACTIVE admin account whose password matches, else None"""
        account = await self.find_by_username(username)
        if not account or not account.is_active:
            logger.warning(f"Admin login refused for {username}: unknown or inactive account")
            return None
        if not verify_password(password, account.hashed_password):
            logger.warning(f"Admin login refused for {username}: wrong password")
            return None

        member = await self.members.find_by_employee_id(account.member_employee_id)
        if not member:
            logger.warning(f"Admin login refused for {username}: member {account.member_employee_id} inactive")
            return None

        account.last_login = datetime.now(timezone.utc)
        await self.session.commit()
        return member

    # endregion
