import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from reward_points.api.dependencies import get_attachment_storage, get_current_member, require_admin
from reward_points.core.database import get_async_session
from reward_points.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from reward_points.models.directory.member import Member
from reward_points.schemas.approval.approval_schema import WorkflowResult
from reward_points.schemas.common.pagination import PaginatedResponse
from reward_points.schemas.leaderboard.leaderboard_schema import LeaderboardResponse
from reward_points.schemas.rewards.reward_entry_schema import RewardEntryDetail, RewardEntrySubmit, RewardEntryUpdate
from reward_points.services.approval.approval_service import ApprovalService
from reward_points.services.notification.notification_service import Notifier, get_notifier
from reward_points.services.rewards.reward_entry_service import RewardEntryService
from reward_points.utils.file_handler import AttachmentStorage
from reward_points.utils.helpers import parse_date

router = APIRouter()
logger = logging.getLogger(__name__)

def _date_field(value: Optional[str], name: str):
    if value is None or value == "":
        return None
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError(f"Invalid {name}: {value}")

def _can_view(entry, member: Member) -> bool:
    if member.role.is_admin or entry.employee_id == member.employee_id:
        return True
    approval = entry.approval_entry
    return bool(approval) and member.employee_id in (approval.manager_id, approval.director_id)

@router.post("", response_model=WorkflowResult, status_code=status.HTTP_201_CREATED)
async def submit_reward_entry(
    criteria_id: int = Form(...),
    short_description: str = Form(...),
    date_accomplished: str = Form(..., description="YYYY-MM-DD or MM/DD/YYYY"),
    group_name: Optional[str] = Form(None),
    project_name: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    files: List[UploadFile] = File(None),
    session: AsyncSession = Depends(get_async_session),
    notifier: Notifier = Depends(get_notifier),
    storage: AttachmentStorage = Depends(get_attachment_storage),
    current_member: Member = Depends(get_current_member)
):
    """Submit a reward entry with optional attachments"""
    data = RewardEntrySubmit(
        criteria_id=criteria_id,
        short_description=short_description,
        date_accomplished=_date_field(date_accomplished, "date_accomplished"),
        group_name=group_name,
        project_name=project_name,
        notes=notes,
    )

    manifest = await storage.save_files(files or [], current_member.employee_id, project_name)
    try:
        service = ApprovalService(session, notifier=notifier, storage=storage)
        return await service.submit_entry(current_member.employee_id, data, attachments=manifest)
    except HTTPException:
        # the entry was rolled back, so its files go too
        await storage.delete_files(manifest)
        raise

@router.get("/me", response_model=PaginatedResponse[RewardEntryDetail])
async def get_my_reward_entries(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    fiscal_year: Optional[str] = Query(None, description="e.g. FY25"),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await RewardEntryService(session).find_by_owner(
        current_member.employee_id, fiscal_year, page_index, page_size
    )

@router.get("/me/projects/{project_name}", response_model=List[RewardEntryDetail])
async def get_my_project_entries(
    project_name: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await RewardEntryService(session).find_by_project(current_member.employee_id, project_name)

@router.get("/groups/{group_name}", response_model=PaginatedResponse[RewardEntryDetail])
async def get_group_entries(
    group_name: str = Path(...),
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await RewardEntryService(session).find_by_group(group_name, page_index, page_size)

@router.get("/{entry_id}", response_model=RewardEntryDetail)
async def get_reward_entry(
    entry_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    service = RewardEntryService(session)
    entry = await service.get_entry(entry_id)
    if not _can_view(entry, current_member):
        raise ForbiddenError("You are not allowed to view this reward entry")
    return RewardEntryDetail.model_validate(entry, from_attributes=True)

@router.put("/{entry_id}/resubmit", response_model=WorkflowResult)
async def resubmit_reward_entry(
    entry_id: int = Path(...),
    short_description: Optional[str] = Form(None),
    date_accomplished: Optional[str] = Form(None),
    group_name: Optional[str] = Form(None),
    project_name: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    attachments_to_delete: List[str] = Form([]),
    files: List[UploadFile] = File(None),
    session: AsyncSession = Depends(get_async_session),
    notifier: Notifier = Depends(get_notifier),
    storage: AttachmentStorage = Depends(get_attachment_storage),
    current_member: Member = Depends(get_current_member)
):
    """Resubmit a rejected entry; only fields that are sent are changed"""
    fields = {
        "short_description": short_description,
        "date_accomplished": _date_field(date_accomplished, "date_accomplished"),
        "group_name": group_name,
        "project_name": project_name,
        "notes": notes,
    }
    changes = RewardEntryUpdate(
        **{k: v for k, v in fields.items() if v is not None},
        attachments_to_delete=attachments_to_delete or [],
    )

    service = ApprovalService(session, notifier=notifier, storage=storage)
    entry = await service.check_resubmission(entry_id, current_member.employee_id)
    target_project = project_name if project_name is not None else entry.project_name

    manifest = await storage.save_files(files or [], current_member.employee_id, target_project)
    try:
        return await service.resubmit_entry(
            entry_id, current_member.employee_id, changes=changes, added_attachments=manifest
        )
    except HTTPException:
        await storage.delete_files(manifest)
        raise

@router.delete("/{entry_id}", response_model=LeaderboardResponse)
async def delete_reward_entry(
    entry_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    notifier: Notifier = Depends(get_notifier),
    storage: AttachmentStorage = Depends(get_attachment_storage),
    current_member: Member = Depends(require_admin)
):
    """Hard delete an entry; returns the owner's corrected leaderboard row"""
    service = ApprovalService(session, notifier=notifier, storage=storage)
    return await service.admin_delete_entry(entry_id, current_member)

@router.get("/{entry_id}/attachments/{filename}")
async def download_attachment(
    entry_id: int = Path(...),
    filename: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    storage: AttachmentStorage = Depends(get_attachment_storage),
    current_member: Member = Depends(get_current_member)
):
    entry = await RewardEntryService(session, storage).get_entry(entry_id)
    if not _can_view(entry, current_member):
        raise ForbiddenError("You are not allowed to download this attachment")

    item = next((a for a in entry.attachments or [] if a["filename"] == filename), None)
    if item is None:
        raise NotFoundError(f"Attachment {filename} not found")

    full_path = storage.resolve_download(item["path"])
    return FileResponse(path=str(full_path), filename=item["filename"], media_type="application/octet-stream")
