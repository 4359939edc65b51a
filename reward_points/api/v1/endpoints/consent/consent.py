from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reward_points.api.dependencies import get_current_member, require_admin
from reward_points.core.database import get_async_session
from reward_points.models.directory.member import Member
from reward_points.schemas.consent.consent_schema import ConsentResponse, ConsentUpdate, ConsentWithMember
from reward_points.services.consent.consent_service import ConsentService

router = APIRouter()

@router.post("", response_model=ConsentResponse)
async def log_consent(
    data: ConsentUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await ConsentService(session).log_consent(current_member.employee_id, data)

@router.get("/me", response_model=ConsentResponse)
async def get_my_consent(
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await ConsentService(session).get_consent_status(current_member.employee_id)

@router.get("", response_model=List[ConsentWithMember])
async def get_all_consent(
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await ConsentService(session).get_all_consent()
