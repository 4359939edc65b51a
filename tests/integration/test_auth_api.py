import pytest
from fastapi import status

from reward_points.core.config import settings
from reward_points.core.security import create_access_token
from reward_points.schemas.directory.member_schema import DirectoryRecord
from reward_points.services.directory.directory_client import DirectoryError, DirectoryProfile
from reward_points.services.directory.member_service import MemberService


def directory_profile() -> DirectoryProfile:
    return DirectoryProfile(
        member=DirectoryRecord(
            employee_id="M100", username="jdoe", first_name="Jane", last_name="Doe",
            email="jane.doe@example.com", title="Consultant", manager_id="A100",
        ),
        manager=DirectoryRecord(
            employee_id="A100", username="asmith", first_name="Alex", last_name="Smith",
            email="alex.smith@example.com", title="Delivery Manager",
        ),
    )


@pytest.mark.asyncio
class TestAuth:
    """Test authentication endpoints"""

    async def test_login_success(self, client, directory):
        directory.passwords = {"jdoe": "S3cret!"}
        directory.profiles = {"jdoe": directory_profile()}

        response = await client.post("/api/v1/auth/login", json={"username": "jdoe", "password": "S3cret!"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["employee_id"] == "M100"
        assert data["role"] == 6
        assert data["token_type"] == "bearer"
        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith(f"{settings.ACCESS_TOKEN_COOKIE}=")
        assert f"max-age={settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60}" in cookie
        assert "httponly" in cookie

        me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["manager_name"] == "Alex Smith"

    async def test_login_invalid_credentials(self, client, directory):
        directory.passwords = {"jdoe": "S3cret!"}

        response = await client.post("/api/v1/auth/login", json={"username": "jdoe", "password": "wrong"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_directory_outage(self, client, directory):
        async def unreachable(username, password):
            raise DirectoryError("timeout")
        directory.authenticate = unreachable

        response = await client.post("/api/v1/auth/login", json={"username": "jdoe", "password": "x"})

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    async def test_session_cookie_is_accepted(self, client, hierarchy):
        token = create_access_token("M100")
        cookie = {"Cookie": f"{settings.ACCESS_TOKEN_COOKIE}={token}"}

        response = await client.get("/api/v1/auth/me", headers=cookie)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["employee_id"] == "M100"

    async def test_requires_authentication(self, client):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_invalid_token(self, client):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_inactive_member_is_rejected(self, client, session, hierarchy, auth_headers):
        await MemberService(session).deactivate("M100", "S100")

        response = await client.get("/api/v1/auth/me", headers=auth_headers(hierarchy.member))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_logout_clears_cookie(self, client, hierarchy, auth_headers):
        response = await client.post("/api/v1/auth/logout", headers=auth_headers(hierarchy.member))

        assert response.status_code == status.HTTP_200_OK
        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith(f"{settings.ACCESS_TOKEN_COOKIE}=")
        assert "max-age=0" in cookie
        assert "httponly" in cookie

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"
        assert "x-process-time" in response.headers
