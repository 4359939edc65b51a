import pytest
from fastapi import status

from reward_points.core.config import settings

NEW_ADMIN = {
    "username": "root",
    "password": "Sup3rSecret",
    "email": "root@example.com",
    "first_name": "Rita",
    "last_name": "Root",
}


@pytest.mark.asyncio
class TestAdminAccountsApi:
    """Test local admin account endpoints"""

    async def test_create_list_and_login(self, client, hierarchy, auth_headers):
        created = await client.post("/api/v1/admins/users", json=NEW_ADMIN, headers=auth_headers(hierarchy.admin))

        assert created.status_code == status.HTTP_201_CREATED
        body = created.json()
        assert body["member_employee_id"] == "admin_1"
        assert "password" not in body and "hashed_password" not in body

        listed = await client.get("/api/v1/admins/users", headers=auth_headers(hierarchy.admin))
        assert [a["username"] for a in listed.json()] == ["root"]

        login = await client.post("/api/v1/auth/admin/login", json={"username": "root", "password": "Sup3rSecret"})
        assert login.status_code == status.HTTP_200_OK
        assert login.json()["employee_id"] == "admin_1"
        assert login.json()["role"] == 1
        assert login.headers["set-cookie"].startswith(f"{settings.ACCESS_TOKEN_COOKIE}=")

        token = login.json()["access_token"]
        members = await client.get("/api/v1/members", headers={"Authorization": f"Bearer {token}"})
        assert members.status_code == status.HTTP_200_OK

    async def test_admin_login_rejects_wrong_password(self, client, hierarchy, auth_headers):
        await client.post("/api/v1/admins/users", json=NEW_ADMIN, headers=auth_headers(hierarchy.admin))

        response = await client.post("/api/v1/auth/admin/login", json={"username": "root", "password": "nope-nope"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_short_password_is_rejected(self, client, hierarchy, auth_headers):
        response = await client.post(
            "/api/v1/admins/users", json={**NEW_ADMIN, "password": "short"}, headers=auth_headers(hierarchy.admin)
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_duplicate_username(self, client, hierarchy, auth_headers):
        await client.post("/api/v1/admins/users", json=NEW_ADMIN, headers=auth_headers(hierarchy.admin))

        response = await client.post(
            "/api/v1/admins/users", json={**NEW_ADMIN, "email": "other@example.com"},
            headers=auth_headers(hierarchy.admin),
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_status_and_password_updates(self, client, hierarchy, auth_headers):
        created = await client.post("/api/v1/admins/users", json=NEW_ADMIN, headers=auth_headers(hierarchy.admin))
        admin_id = created.json()["id"]

        reset = await client.put(
            f"/api/v1/admins/users/{admin_id}/password", json={"password": "An0therSecret"},
            headers=auth_headers(hierarchy.admin),
        )
        assert reset.status_code == status.HTTP_200_OK
        login = await client.post("/api/v1/auth/admin/login", json={"username": "root", "password": "An0therSecret"})
        assert login.status_code == status.HTTP_200_OK
        token = login.json()["access_token"]

        deactivated = await client.put(
            f"/api/v1/admins/users/{admin_id}/status", json={"status": "INACTIVE"},
            headers=auth_headers(hierarchy.admin),
        )
        assert deactivated.json()["status"] == "INACTIVE"

        refused = await client.post("/api/v1/auth/admin/login", json={"username": "root", "password": "An0therSecret"})
        assert refused.status_code == status.HTTP_401_UNAUTHORIZED
        stale = await client.get("/api/v1/members", headers={"Authorization": f"Bearer {token}"})
        assert stale.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_invalid_status_value(self, client, hierarchy, auth_headers):
        created = await client.post("/api/v1/admins/users", json=NEW_ADMIN, headers=auth_headers(hierarchy.admin))

        response = await client.put(
            f"/api/v1/admins/users/{created.json()['id']}/status", json={"status": "SUSPENDED"},
            headers=auth_headers(hierarchy.admin),
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_requires_admin(self, client, hierarchy, auth_headers):
        response = await client.get("/api/v1/admins/users", headers=auth_headers(hierarchy.manager))
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.post("/api/v1/admins/users", json=NEW_ADMIN, headers=auth_headers(hierarchy.member))
        assert response.status_code == status.HTTP_403_FORBIDDEN
