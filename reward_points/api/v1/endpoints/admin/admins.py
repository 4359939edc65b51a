import logging
from typing import List
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from reward_points.api.dependencies import require_admin
from reward_points.core.database import get_async_session
from reward_points.core.logging import log_member_action
from reward_points.models.directory.member import Member
from reward_points.schemas.admin.admin_schema import (
    AdminAccountCreate, AdminAccountResponse, AdminPasswordReset, AdminStatusUpdate
)
from reward_points.schemas.common.pagination import MessageResponse
from reward_points.services.admin.admin_service import AdminAccountService

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/users", response_model=List[AdminAccountResponse])
async def get_admin_accounts(
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await AdminAccountService(session).get_admins()

@router.post("/users", response_model=AdminAccountResponse, status_code=status.HTTP_201_CREATED)
async def create_admin_account(
    data: AdminAccountCreate,
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    """Create a local admin login; it signs in through /auth/admin/login"""
    account = await AdminAccountService(session).create_admin(data, current_member.employee_id)
    log_member_action(current_member.employee_id, "create", "admin_account", account.id)
    return account

@router.put("/users/{admin_id}/status", response_model=AdminAccountResponse)
async def update_admin_account_status(
    data: AdminStatusUpdate,
    admin_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    account = await AdminAccountService(session).set_status(admin_id, data.status, current_member.employee_id)
    log_member_action(current_member.employee_id, "set_status", "admin_account", admin_id)
    return account

@router.put("/users/{admin_id}/password", response_model=MessageResponse)
async def reset_admin_account_password(
    data: AdminPasswordReset,
    admin_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    await AdminAccountService(session).reset_password(admin_id, data.password, current_member.employee_id)
    log_member_action(current_member.employee_id, "reset_password", "admin_account", admin_id)
    return MessageResponse(message="Password updated successfully")
