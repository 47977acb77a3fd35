from datetime import timedelta

import pytest
from httpx import AsyncClient

from app.models.employee import EmployeeStatus, InvitationStatus
from app.models.user import Role
from app.utils.security import create_session_token

pytestmark = pytest.mark.asyncio


class TestLogin:
    """Tests for POST /api/auth/login."""

    async def test_admin_login(self, client: AsyncClient, admin_user):
        """An admin gets a token and the admin-shaped user."""
        response = await client.post(
            "/api/auth/login",
            json={"email": admin_user.email, "password": "AdminPass123"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token"]
        assert data["user"]["id"] == admin_user.id
        assert data["user"]["role"] == "admin"
        assert data["user"]["organization_id"] == admin_user.organization_id
        assert "hashed_password" not in data["user"]

    async def test_admin_login_is_case_insensitive(self, client: AsyncClient, admin_user):
        response = await client.post(
            "/api/auth/login",
            json={"email": "ADMIN@Acme.Example.com", "password": "AdminPass123"},
        )

        assert response.status_code == 200

    async def test_admin_wrong_password(self, client: AsyncClient, admin_user):
        response = await client.post(
            "/api/auth/login",
            json={"email": admin_user.email, "password": "not-the-password"},
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_CREDENTIALS"

    async def test_unknown_email(self, client: AsyncClient, admin_user):
        response = await client.post(
            "/api/auth/login",
            json={"email": "nobody@acme.example.com", "password": "whatever"},
        )

        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_active_employee_login(self, client: AsyncClient, active_employee):
        """An active employee gets a token and the employee-shaped user."""
        response = await client.post(
            "/api/auth/login",
            json={"email": active_employee.email, "password": "Employee123"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["id"] == active_employee.id
        assert data["user"]["role"] == "employee"
        assert data["user"]["department"] == "Litigation"
        assert "hashed_password" not in data["user"]
        assert "invitation_token" not in data["user"]

    async def test_pending_employee_cannot_login(self, client: AsyncClient, create_employee):
        """Registered but not yet activated employees are refused."""
        employee = await create_employee("newbie@acme.example.com", status=EmployeeStatus.PENDING)

        response = await client.post(
            "/api/auth/login",
            json={"email": employee.email, "password": "Employee123"},
        )

        assert response.status_code == 401
        assert "not active" in response.json()["error"]

    async def test_inactive_employee_cannot_login(self, client: AsyncClient, create_employee):
        employee = await create_employee("idle@acme.example.com", status=EmployeeStatus.INACTIVE)

        response = await client.post(
            "/api/auth/login",
            json={"email": employee.email, "password": "Employee123"},
        )

        assert response.status_code == 401

    async def test_invited_employee_without_password(self, client: AsyncClient, create_employee):
        """An employee who never registered has no credential to log in with."""
        employee = await create_employee(
            "invited@acme.example.com",
            status=EmployeeStatus.PENDING,
            invitation_status=InvitationStatus.PENDING,
            hashed_password=None,
        )

        response = await client.post(
            "/api/auth/login",
            json={"email": employee.email, "password": "anything"},
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_CREDENTIALS"

    async def test_deleted_employee_cannot_login(
        self, client: AsyncClient, active_employee, admin_headers
    ):
        await client.delete(
            f"/api/employees/admin/{active_employee.id}", headers=admin_headers
        )

        response = await client.post(
            "/api/auth/login",
            json={"email": active_employee.email, "password": "Employee123"},
        )

        assert response.status_code == 401


class TestOAuth2Token:
    """Tests for POST /api/auth/token."""

    async def test_form_login(self, client: AsyncClient, admin_user):
        response = await client.post(
            "/api/auth/token",
            data={"username": admin_user.email, "password": "AdminPass123"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["access_token"]
        assert body["token_type"] == "bearer"


class TestSessionGate:
    """Tests for resolving the caller from the bearer token."""

    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/api/employees")

        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    async def test_garbage_token(self, client: AsyncClient):
        response = await client.get(
            "/api/employees", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_TOKEN"

    async def test_expired_token(self, client: AsyncClient, admin_user):
        token = create_session_token(
            admin_user.id,
            admin_user.email,
            admin_user.organization_id,
            Role.ADMIN,
            expires_delta=timedelta(minutes=-5),
        )

        response = await client.get(
            "/api/employees", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "EXPIRED_TOKEN"

    async def test_invitation_secret_is_not_a_session(
        self, client: AsyncClient, invite, secret_from_link
    ):
        """The secret from an invitation link cannot authenticate."""
        data = await invite()
        secret = secret_from_link(data["invitation_link"])

        response = await client.get(
            "/api/employees/profile", headers={"Authorization": f"Bearer {secret}"}
        )

        assert response.status_code == 401

    async def test_token_for_wrong_organization(
        self, client: AsyncClient, admin_user, other_admin
    ):
        """An account is only accepted under the organization it belongs to."""
        token = create_session_token(
            admin_user.id, admin_user.email, other_admin.organization_id, Role.ADMIN
        )

        response = await client.get(
            "/api/employees", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    async def test_admin_id_with_employee_role(self, client: AsyncClient, admin_user):
        """The token role picks the identity store, so an admin id claimed as employee fails."""
        token = create_session_token(
            admin_user.id, admin_user.email, admin_user.organization_id, Role.EMPLOYEE
        )

        response = await client.get(
            "/api/employees/profile", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
