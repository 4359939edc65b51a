import logging
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reward_points.api.dependencies import get_attachment_storage, get_current_member, require_admin
from reward_points.core.database import get_async_session
from reward_points.models.directory.member import Member
from reward_points.models.shared.enums import ApprovalStatus, ApprovalTrack
from reward_points.schemas.approval.approval_schema import (
    AdminApprovalUpdate, ApprovalActionRequest, ApprovalEntryDetail, WorkflowResult
)
from reward_points.schemas.common.pagination import PaginatedResponse
from reward_points.services.approval.approval_service import ApprovalService
from reward_points.services.notification.notification_service import Notifier, get_notifier
from reward_points.utils.file_handler import AttachmentStorage

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/me", response_model=PaginatedResponse[ApprovalEntryDetail])
async def get_my_approvals(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    """Approval records of the current member's own entries"""
    return await ApprovalService(session).get_owner_approvals(current_member.employee_id, page_index, page_size)

@router.get("/manager", response_model=PaginatedResponse[ApprovalEntryDetail])
async def get_manager_approvals(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    approval_status: Optional[ApprovalStatus] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await ApprovalService(session).get_manager_approvals(
        current_member.employee_id, approval_status, page_index, page_size
    )

@router.get("/director", response_model=PaginatedResponse[ApprovalEntryDetail])
async def get_director_approvals(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    approval_status: Optional[ApprovalStatus] = Query(None, alias="status"),
    manager_id: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await ApprovalService(session).get_director_approvals(
        current_member.employee_id, approval_status, manager_id, page_index, page_size
    )

@router.get("", response_model=PaginatedResponse[ApprovalEntryDetail])
async def get_all_approvals(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    manager_status: Optional[ApprovalStatus] = Query(None),
    director_status: Optional[ApprovalStatus] = Query(None),
    fiscal_year: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await ApprovalService(session).get_all_approvals(
        manager_status, director_status, fiscal_year, page_index, page_size
    )

@router.get("/{approval_id}", response_model=ApprovalEntryDetail)
async def get_approval(
    approval_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await ApprovalService(session).get_approval_detail(approval_id, current_member)

@router.post("/{approval_id}/manager", response_model=WorkflowResult)
async def manager_decision(
    data: ApprovalActionRequest,
    approval_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    notifier: Notifier = Depends(get_notifier),
    current_member: Member = Depends(get_current_member)
):
    service = ApprovalService(session, notifier=notifier)
    return await service.act_on_approval(
        approval_id, current_member.employee_id, ApprovalTrack.MANAGER, data.decision, data.notes
    )

@router.post("/{approval_id}/director", response_model=WorkflowResult)
async def director_decision(
    data: ApprovalActionRequest,
    approval_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    notifier: Notifier = Depends(get_notifier),
    current_member: Member = Depends(get_current_member)
):
    service = ApprovalService(session, notifier=notifier)
    return await service.act_on_approval(
        approval_id, current_member.employee_id, ApprovalTrack.DIRECTOR, data.decision, data.notes
    )

@router.put("/{approval_id}", response_model=WorkflowResult)
async def admin_update_approval(
    data: AdminApprovalUpdate,
    approval_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    notifier: Notifier = Depends(get_notifier),
    storage: AttachmentStorage = Depends(get_attachment_storage),
    current_member: Member = Depends(require_admin)
):
    """Administrative override of statuses, criteria and entry fields"""
    service = ApprovalService(session, notifier=notifier, storage=storage)
    return await service.admin_update_entry(approval_id, current_member, data)
