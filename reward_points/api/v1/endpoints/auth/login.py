import logging
from fastapi import APIRouter, Depends, HTTPException, status, Response
from sqlalchemy.ext.asyncio import AsyncSession

from reward_points.api.dependencies import get_current_member
from reward_points.core.config import settings
from reward_points.core.database import get_async_session
from reward_points.core.logging import log_member_action
from reward_points.core.security import create_access_token
from reward_points.models.directory.member import Member
from reward_points.schemas.auth.auth_schema import LoginRequest, TokenResponse
from reward_points.schemas.common.pagination import MessageResponse
from reward_points.schemas.directory.member_schema import MemberResponse
from reward_points.services.admin.admin_service import AdminAccountService
from reward_points.services.directory.directory_client import DirectoryClient, DirectoryError, get_directory_client
from reward_points.services.directory.directory_sync_service import DirectorySyncService
from reward_points.services.directory.member_service import MemberService

router = APIRouter()
logger = logging.getLogger(__name__)

COOKIE_SAMESITE = settings.COOKIE_SAMESITE.lower()

def _set_session_cookie(resp: Response, token: str):
    resp.set_cookie(
        key=settings.ACCESS_TOKEN_COOKIE,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
        domain=settings.COOKIE_DOMAIN,
    )

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_async_session),
    directory: DirectoryClient = Depends(get_directory_client),
):
    """Authenticate against the directory, refresh the member record and issue the session cookie"""
    try:
        if not await directory.authenticate(login_data.username, login_data.password):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect username or password")

        profile = await directory.lookup_by_username(login_data.username)
        if profile is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found in directory")

        await DirectorySyncService(session, directory).sync_profile(profile)
        await session.commit()
    except DirectoryError as e:
        await session.rollback()
        logger.error(f"Login failed for {login_data.username}: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Directory service unavailable")

    member = await MemberService(session).find_by_employee_id(profile.member.employee_id)
    if member is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Your account is inactive")

    token = create_access_token(member.employee_id, {"role": int(member.role)})
    _set_session_cookie(response, token)
    log_member_action(member.employee_id, "login", "session")

    return TokenResponse(
        access_token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        employee_id=member.employee_id,
        role=member.role,
    )

@router.post("/admin/login", response_model=TokenResponse)
async def admin_login(
    login_data: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_async_session),
):
    """Sign in with a local admin account instead of the directory"""
    member = await AdminAccountService(session).authenticate(login_data.username, login_data.password)
    if member is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect username or password")

    token = create_access_token(member.employee_id, {"role": int(member.role), "admin": True})
    _set_session_cookie(response, token)
    log_member_action(member.employee_id, "admin_login", "session")

    return TokenResponse(
        access_token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        employee_id=member.employee_id,
        role=member.role,
    )

@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response, current_member: Member = Depends(get_current_member)):
    response.delete_cookie(
        key=settings.ACCESS_TOKEN_COOKIE,
        path="/",
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite=COOKIE_SAMESITE,
    )
    log_member_action(current_member.employee_id, "logout", "session")
    return MessageResponse(message="Logged out")

@router.get("/me", response_model=MemberResponse)
async def me(
    session: AsyncSession = Depends(get_async_session),
    current_member: Member = Depends(get_current_member),
):
    return await MemberService(session).to_response(current_member)
