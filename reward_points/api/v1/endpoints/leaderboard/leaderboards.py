import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reward_points.api.dependencies import get_current_member, require_admin
from reward_points.core.database import get_async_session
from reward_points.models.directory.member import Member
from reward_points.models.shared.enums import Role
from reward_points.schemas.common.pagination import PaginatedResponse
from reward_points.schemas.leaderboard.leaderboard_schema import (
    LeaderboardRanking, LeaderboardResponse, LeaderboardStats
)
from reward_points.services.leaderboard.leaderboard_service import LeaderboardService

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("", response_model=PaginatedResponse[LeaderboardResponse])
async def get_all_leaderboards(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    fiscal_year: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await LeaderboardService(session).get_all_leaderboards(fiscal_year, page_index, page_size)

@router.get("/stats", response_model=LeaderboardStats)
async def get_leaderboard_stats(
    fiscal_year: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await LeaderboardService(session).get_stats(fiscal_year)

@router.get("/me", response_model=LeaderboardResponse)
async def get_my_leaderboard(
    fiscal_year: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await LeaderboardService(session).get_member_leaderboard(current_member.employee_id, fiscal_year)

@router.get("/role/{role}", response_model=List[LeaderboardRanking])
async def get_top_by_role(
    role: Role = Path(...),
    top: Optional[int] = Query(None, ge=1, le=100),
    fiscal_year: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    """Ranking of active members holding a role"""
    return await LeaderboardService(session).get_top_by_role(role, top, fiscal_year)

@router.get("/alias/{alias_name}", response_model=LeaderboardResponse)
async def get_leaderboard_by_alias(
    alias_name: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member)
):
    return await LeaderboardService(session).get_by_alias(alias_name)

@router.get("/{leaderboard_id}", response_model=LeaderboardResponse)
async def get_leaderboard(
    leaderboard_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(require_admin)
):
    return await LeaderboardService(session).get_leaderboard(leaderboard_id)
