from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from reward_points.core.config import settings
from reward_points.core.database import get_async_session
from reward_points.auth.jwt_handler import decode_access_token
from reward_points.models.directory.member import Member
from reward_points.models.shared.enums import Role
from reward_points.services.directory.member_service import MemberService
from reward_points.utils.file_handler import AttachmentStorage
import logging

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

async def get_current_member(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_async_session)
) -> Member:
    """Resolve the ACTIVE member from the session cookie or a Bearer header"""
    token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
    if not token and credentials:
        token = credentials.credentials
    if not token:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(token)
    if payload is None or not payload.get("sub"):
        raise _unauthorized("Invalid authentication credentials")

    member = await MemberService(session).find_by_employee_id(str(payload["sub"]))
    if member is None:
        raise _unauthorized("Member not found or inactive")

    request.state.member_id = member.employee_id
    return member

def require_roles(*roles: Role):
    """
    Dependency factory gating an endpoint to the given roles

    Example:
        @router.get("/", dependencies=[Depends(require_roles(Role.SUPER_ADMIN, Role.ADMIN))])
    """
    async def checker(current_member: Member = Depends(get_current_member)) -> Member:
        if current_member.role not in roles:
            logger.warning(
                f"Member {current_member.employee_id} ({current_member.role.name}) denied; requires {[r.name for r in roles]}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return current_member
    return checker

require_admin = require_roles(Role.SUPER_ADMIN, Role.ADMIN)

def get_attachment_storage() -> AttachmentStorage:
    return AttachmentStorage()
