import logging
from fastapi import APIRouter, Depends, File, Path, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from reward_points.api.dependencies import get_current_member, require_admin
from reward_points.core.database import get_async_session
from reward_points.models.directory.member import Member
from reward_points.models.shared.enums import CriteriaTrack, CriteriaType
from reward_points.schemas.common.pagination import MessageResponse
from reward_points.schemas.criteria.criteria_schema import (
    CriteriaCreate, CriteriaImportResult, CriteriaResponse, CriteriaUpdate
)
from reward_points.services.criteria.criteria_service import CriteriaService

router = APIRouter()
logger = logging.getLogger(__name__)

TRACK_PATH = Path(..., description="MEMBER or MANAGER catalog")

@router.get("/mine", response_model=List[CriteriaResponse])
async def get_my_criteria(
    criteria_type: Optional[CriteriaType] = Query(None, description="EXPERTS or DELIVERY (BOTH rows always included)"),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    """Published criteria of the catalog the current member submits against"""
    service = CriteriaService(session)
    return await service.get_all_criteria(
        current_member.role.criteria_track, criteria_type=criteria_type, is_published=True
    )

@router.get("/{track}", response_model=List[CriteriaResponse])
async def get_all_criteria(
    track: CriteriaTrack = TRACK_PATH,
    criteria_type: Optional[CriteriaType] = Query(None),
    is_published: Optional[bool] = Query(None),
    category: Optional[str] = Query(None),
    director_approval: Optional[bool] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    service = CriteriaService(session)
    return await service.get_all_criteria(
        track,
        criteria_type=criteria_type,
        is_published=is_published,
        category=category,
        director_approval=director_approval,
    )

@router.get("/{track}/categories", response_model=List[str])
async def get_categories(
    track: CriteriaTrack = TRACK_PATH,
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await CriteriaService(session).get_categories(track)

@router.get("/{track}/{criteria_id}", response_model=CriteriaResponse)
async def get_criteria(
    track: CriteriaTrack = TRACK_PATH,
    criteria_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await CriteriaService(session).get_criteria(criteria_id, track)

@router.post("", response_model=CriteriaResponse, status_code=201)
async def create_criteria(
    data: CriteriaCreate,
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await CriteriaService(session).create_criteria(data, current_member.employee_id)

@router.post("/{track}/upload", response_model=CriteriaImportResult)
async def upload_criteria(
    track: CriteriaTrack = TRACK_PATH,
    file: UploadFile = File(..., description="Excel workbook (.xlsx)"),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    """Bulk import draft criteria from a spreadsheet"""
    content = await file.read()
    return await CriteriaService(session).import_from_excel(content, track, current_member.employee_id)

@router.put("/{track}/publish-all", response_model=MessageResponse)
async def publish_all_criteria(
    track: CriteriaTrack = TRACK_PATH,
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    count = await CriteriaService(session).publish_all(track, current_member.employee_id)
    return MessageResponse(message=f"{count} {track.value.lower()} criteria published successfully")

@router.put("/{track}/{criteria_id}/publish", response_model=CriteriaResponse)
async def publish_criteria(
    track: CriteriaTrack = TRACK_PATH,
    criteria_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await CriteriaService(session).publish_criteria(criteria_id, track, current_member.employee_id)

@router.put("/{track}/{criteria_id}", response_model=CriteriaResponse)
async def update_criteria(
    data: CriteriaUpdate,
    track: CriteriaTrack = TRACK_PATH,
    criteria_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await CriteriaService(session).update_criteria(criteria_id, track, data, current_member.employee_id)

@router.delete("/{track}/{criteria_id}", response_model=MessageResponse)
async def delete_criteria(
    track: CriteriaTrack = TRACK_PATH,
    criteria_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    await CriteriaService(session).delete_criteria(criteria_id, track, current_member.employee_id)
    return MessageResponse(message=f"Criteria {criteria_id} deleted")
