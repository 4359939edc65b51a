import logging
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from reward_points.api.dependencies import get_current_member, require_admin
from reward_points.core.database import get_async_session
from reward_points.core.exceptions import ForbiddenError
from reward_points.models.directory.member import Member
from reward_points.models.shared.enums import MemberStatus, Role
from reward_points.schemas.common.pagination import MessageResponse, PaginatedResponse
from reward_points.schemas.directory.member_schema import (
    DirectorySyncReport, MemberBrief, MemberResponse, MemberStatusUpdate, MemberUpdate
)
from reward_points.services.directory.directory_client import DirectoryClient, get_directory_client
from reward_points.services.directory.directory_sync_service import DirectorySyncService
from reward_points.services.directory.member_service import MemberService

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("", response_model=PaginatedResponse[MemberResponse])
async def get_members(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    search: Optional[str] = Query(None, description="Name, username, email or employee id"),
    role: Optional[Role] = Query(None),
    member_status: Optional[MemberStatus] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await MemberService(session).get_members(search, role, member_status, page_index, page_size)

@router.get("/role/{role}", response_model=List[MemberBrief])
async def get_members_by_role(
    role: Role = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await MemberService(session).find_by_role(role)

@router.get("/team", response_model=List[MemberBrief])
async def get_my_team(
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    """Direct reports of the current member (as manager)"""
    return await MemberService(session).find_by_manager(current_member.employee_id)

@router.get("/organization", response_model=List[MemberBrief])
async def get_my_organization(
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    """Members whose director is the current member"""
    return await MemberService(session).find_by_director(current_member.employee_id)

@router.post("/sync", response_model=DirectorySyncReport)
async def sync_directory(
    session: AsyncSession = Depends(get_async_session),
    directory: DirectoryClient = Depends(get_directory_client),
    current_member: Member = Depends(require_admin)
):
    """Refresh the whole reporting hierarchy from the directory in-request"""
    logger.info(f"Directory sync started by {current_member.employee_id}")
    return await DirectorySyncService(session, directory).map_hierarchy()

@router.post("/sync/background", response_model=MessageResponse, status_code=202)
async def queue_directory_sync(current_member: Member = Depends(require_admin)):
    """Hand the hierarchy refresh to a Celery worker"""
    from reward_points.workers.celery_tasks.directory_tasks import sync_directory_hierarchy

    task = sync_directory_hierarchy.delay()
    logger.info(f"Directory sync queued by {current_member.employee_id}: task {task.id}")
    return MessageResponse(message=f"Directory sync queued as task {task.id}")

@router.post("/sync/{username}", response_model=DirectorySyncReport)
async def sync_directory_account(
    username: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    directory: DirectoryClient = Depends(get_directory_client),
    current_member: Member = Depends(require_admin)
):
    return await DirectorySyncService(session, directory).sync_username(username)

@router.get("/{employee_id}", response_model=MemberResponse)
async def get_member(
    employee_id: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    if employee_id != current_member.employee_id and not current_member.role.is_admin:
        raise ForbiddenError("You can only view your own profile")
    return await MemberService(session).get_member(employee_id, include_inactive=current_member.role.is_admin)

@router.put("/{employee_id}", response_model=MemberResponse)
async def update_member(
    data: MemberUpdate,
    employee_id: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await MemberService(session).update_member(employee_id, data, current_member.employee_id)

@router.patch("/{employee_id}/status", response_model=MemberResponse)
async def set_member_status(
    data: MemberStatusUpdate,
    employee_id: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await MemberService(session).set_status(employee_id, data.status, current_member.employee_id)

@router.delete("/{employee_id}", response_model=MemberResponse)
async def deactivate_member(
    employee_id: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    """Soft delete; history and points stay in place"""
    return await MemberService(session).deactivate(employee_id, current_member.employee_id)
