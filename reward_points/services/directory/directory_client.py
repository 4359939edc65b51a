from typing import List, Optional, Protocol
import logging
import httpx
from pydantic import BaseModel

from reward_points.core.config import settings
from reward_points.schemas.directory.member_schema import DirectoryRecord

logger = logging.getLogger(__name__)


class DirectoryProfile(BaseModel):
    """A directory account together with its manager and director accounts"""
    member: DirectoryRecord
    manager: Optional[DirectoryRecord] = None
    director: Optional[DirectoryRecord] = None


class DirectoryError(Exception):
    """The directory gateway could not be reached or answered with an error"""


class DirectoryClient(Protocol):
    async def authenticate(self, username: str, password: str) -> bool: ...

    async def lookup_by_username(self, username: str) -> Optional[DirectoryProfile]: ...

    async def lookup_by_email(self, email: str) -> Optional[DirectoryProfile]: ...

    async def search(self, pattern: str) -> List[DirectoryRecord]: ...

    async def list_by_position(self, position: str) -> List[str]: ...


class HttpDirectoryClient:
    """
    Async client for the directory gateway that fronts the corporate LDAP.
    Configured through DIRECTORY_API_URL / DIRECTORY_API_TOKEN.
    """
    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.DIRECTORY_API_URL or "").rstrip("/")
        self.token = token or settings.DIRECTORY_API_TOKEN
        self.timeout = httpx.Timeout(timeout or settings.DIRECTORY_TIMEOUT_SECONDS, connect=10.0)

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Optional[httpx.Response]:
        if not self.base_url:
            raise DirectoryError("Directory gateway is not configured (DIRECTORY_API_URL)")

        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, headers=self._headers()) as client:
            try:
                r = await client.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                logger.error(f"Directory request {method} {path} failed: {e}")
                raise DirectoryError(f"Directory gateway unreachable: {e}") from e

        if r.status_code == 404:
            return None
        if not r.is_success:
            logger.error(f"Directory request {method} {path} returned {r.status_code}: {r.text[:200]}")
            raise DirectoryError(f"Directory gateway returned {r.status_code}")
        return r

    async def authenticate(self, username: str, password: str) -> bool:
        r = await self._request("POST", "/auth/bind", json={"username": username, "password": password})
        if r is None:
            return False
        return bool(r.json().get("authenticated"))

    async def lookup_by_username(self, username: str) -> Optional[DirectoryProfile]:
        r = await self._request("GET", f"/accounts/{username}")
        return DirectoryProfile.model_validate(r.json()) if r is not None else None

    async def lookup_by_email(self, email: str) -> Optional[DirectoryProfile]:
        r = await self._request("GET", "/accounts", params={"email": email})
        return DirectoryProfile.model_validate(r.json()) if r is not None else None

    async def search(self, pattern: str) -> List[DirectoryRecord]:
        r = await self._request("GET", "/accounts/search", params={"q": pattern})
        if r is None:
            return []
        return [DirectoryRecord.model_validate(item) for item in r.json()]

    async def list_by_position(self, position: str) -> List[str]:
        """Usernames whose title contains ``position``"""
        r = await self._request("GET", "/accounts/by-position", params={"position": position})
        if r is None:
            return []
        return [str(username) for username in r.json()]


def get_directory_client() -> DirectoryClient:
    return HttpDirectoryClient()
