from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from app.models.employee import Employee, EmployeeStatus, InvitationStatus
from app.services.employee_service import EmployeeService
from core.db import utcnow

pytestmark = pytest.mark.asyncio


async def _push_expiry_into_past(db_session, employee_id: str) -> None:
    await db_session.execute(
        update(Employee)
        .where(Employee.id == employee_id)
        .values(invitation_expires=utcnow() - timedelta(days=1))
    )
    await db_session.commit()


class TestInviteEmployee:
    """Tests for POST /api/employees/invite."""

    async def test_invite_without_salary(
        self, client: AsyncClient, admin_headers, admin_user, invitation_email_task
    ):
        """Salary defaults to zero and the invite starts pending."""
        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "Jane", "last_name": "Doe", "email": "Jane@X.com"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        employee = body["data"]["employee"]
        assert employee["email"] == "jane@x.com"
        assert Decimal(employee["salary"]) == 0
        assert employee["invitation_status"] == "pending"
        assert employee["status"] == "pending"
        assert employee["employment_status"] == "employed"
        assert employee["organization_id"] == admin_user.organization_id
        assert employee["invitation_expires"]
        assert "invitation_token" not in employee

        link = body["data"]["invitation_link"]
        assert link.startswith("http://frontend.test/employees/register?token=")
        assert "salary=" not in link
        invitation_email_task.delay.assert_called_once()
        assert invitation_email_task.delay.call_args.kwargs["invitation_link"] == link

    async def test_blank_salary_is_zero(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "Jane", "last_name": "Doe", "email": "jane@x.com", "salary": ""},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert Decimal(response.json()["data"]["employee"]["salary"]) == 0

    async def test_salary_carried_in_link(self, client: AsyncClient, invite):
        data = await invite(salary="45000.50")

        assert Decimal(data["employee"]["salary"]) == Decimal("45000.50")
        assert "salary=45000.50" in data["invitation_link"]

    async def test_negative_salary_rejected(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "Jane", "last_name": "Doe", "email": "jane@x.com", "salary": -1},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_second_invite_while_pending(self, client: AsyncClient, invite, admin_headers):
        await invite()

        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "Jane", "last_name": "Doe", "email": "jane@x.com"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVITATION_ALREADY_SENT"

    async def test_invite_registered_employee(
        self, client: AsyncClient, active_employee, admin_headers
    ):
        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "W", "last_name": "W", "email": active_employee.email},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "ALREADY_REGISTERED"

    async def test_reinvite_after_expiry(
        self, client: AsyncClient, invite, db_session, secret_from_link
    ):
        """An expired invitation is re-issued with a fresh secret on the same record."""
        first = await invite()
        await _push_expiry_into_past(db_session, first["employee"]["id"])

        second = await invite(first_name="Janet")

        assert second["employee"]["id"] == first["employee"]["id"]
        assert second["employee"]["first_name"] == "Janet"
        assert second["employee"]["invitation_status"] == "pending"
        old_secret = secret_from_link(first["invitation_link"])
        new_secret = secret_from_link(second["invitation_link"])
        assert new_secret != old_secret

        stale = await client.get(f"/api/employees/register/{old_secret}")
        assert stale.status_code == 400
        fresh = await client.get(f"/api/employees/register/{new_secret}")
        assert fresh.status_code == 200

    async def test_reinvite_archived_invitee_refused(
        self, client: AsyncClient, invite, db_session, admin_headers
    ):
        """An archived invitee stays terminated even after the invitation lapses."""
        data = await invite()
        employee_id = data["employee"]["id"]
        await client.post(f"/api/employees/admin/{employee_id}/archive", headers=admin_headers)
        await _push_expiry_into_past(db_session, employee_id)

        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "Jane", "last_name": "Doe", "email": "jane@x.com"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert "unarchive" in response.json()["error"].lower()

        detail = await client.get(f"/api/employees/{employee_id}", headers=admin_headers)
        employee = detail.json()["data"]
        assert employee["employment_status"] == "archived"
        assert employee["status"] == "terminated"
        assert employee["invitation_status"] == "expired"

    async def test_reinvite_deleted_invitee_refused(
        self, client: AsyncClient, invite, db_session, admin_headers
    ):
        data = await invite()
        employee_id = data["employee"]["id"]
        await client.delete(f"/api/employees/admin/{employee_id}", headers=admin_headers)
        await _push_expiry_into_past(db_session, employee_id)

        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "Jane", "last_name": "Doe", "email": "jane@x.com"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert "restore" in response.json()["error"].lower()

        detail = await client.get(f"/api/employees/{employee_id}", headers=admin_headers)
        employee = detail.json()["data"]
        assert employee["is_deleted"] is True
        assert employee["status"] == "terminated"

    async def test_blank_names_rejected(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "   ", "last_name": "Doe", "email": "jane@x.com"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_names_are_trimmed(self, client: AsyncClient, invite):
        data = await invite(first_name="  Jane ", last_name=" Doe  ")

        assert data["employee"]["first_name"] == "Jane"
        assert data["employee"]["last_name"] == "Doe"

    async def test_reinvite_clears_conflicting_national_id(
        self, client: AsyncClient, create_employee, admin_headers
    ):
        """
        A stale national ID that now collides is dropped on re-invite.

        The unique index on national_id keeps real rows from colliding, so
        the lookup is stubbed to report a clash.
        """
        employee = await create_employee(
            "stale@acme.example.com",
            status=EmployeeStatus.PENDING,
            invitation_status=InvitationStatus.EXPIRED,
            national_id="111122223333",
            hashed_password=None,
        )

        with patch.object(
            EmployeeService, "_national_id_taken", new=AsyncMock(return_value=True)
        ):
            response = await client.post(
                "/api/employees/invite",
                json={"first_name": "Stale", "last_name": "Again", "email": employee.email},
                headers=admin_headers,
            )

        assert response.status_code == 201
        detail = await client.get(f"/api/employees/{employee.id}", headers=admin_headers)
        assert detail.json()["data"]["national_id"] is None

    async def test_reinvite_keeps_unique_national_id(
        self, client: AsyncClient, create_employee, admin_headers
    ):
        employee = await create_employee(
            "stale@acme.example.com",
            status=EmployeeStatus.PENDING,
            invitation_status=InvitationStatus.EXPIRED,
            national_id="111122223333",
            hashed_password=None,
        )

        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "Stale", "last_name": "Again", "email": employee.email},
            headers=admin_headers,
        )

        assert response.status_code == 201
        detail = await client.get(f"/api/employees/{employee.id}", headers=admin_headers)
        assert detail.json()["data"]["national_id"] == "111122223333"

    async def test_email_queue_failure_does_not_fail_invite(
        self, client: AsyncClient, admin_headers, invitation_email_task
    ):
        invitation_email_task.delay.side_effect = ConnectionError("broker down")

        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "Jane", "last_name": "Doe", "email": "jane@x.com"},
            headers=admin_headers,
        )

        assert response.status_code == 201

    async def test_same_email_in_another_organization(
        self, client: AsyncClient, invite, other_admin_headers
    ):
        """Employee emails are unique across the whole system."""
        await invite()

        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "Jane", "last_name": "Doe", "email": "jane@x.com"},
            headers=other_admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["data"]["field"] == "email"


class TestGetInvitation:
    """Tests for GET /api/employees/register/{token}."""

    async def test_lookup_pending_invitation(
        self, client: AsyncClient, invite, admin_user, secret_from_link
    ):
        data = await invite(salary="1000")
        secret = secret_from_link(data["invitation_link"])

        response = await client.get(f"/api/employees/register/{secret}")

        assert response.status_code == 200
        employee = response.json()["data"]["employee"]
        assert employee["email"] == "jane@x.com"
        assert employee["organization_name"] == "Acme Legal"
        assert employee["invited_by_name"] == admin_user.full_name
        assert Decimal(employee["salary"]) == 1000

    async def test_unknown_secret(self, client: AsyncClient):
        response = await client.get("/api/employees/register/" + "0" * 64)

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INVITATION"

    async def test_expired_invitation_is_flipped(
        self, client: AsyncClient, invite, db_session, admin_headers, secret_from_link
    ):
        """Reading an overdue invitation marks it expired and clears the secret."""
        data = await invite()
        employee_id = data["employee"]["id"]
        await _push_expiry_into_past(db_session, employee_id)
        secret = secret_from_link(data["invitation_link"])

        response = await client.get(f"/api/employees/register/{secret}")

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVITATION_EXPIRED"

        detail = await client.get(f"/api/employees/{employee_id}", headers=admin_headers)
        assert detail.json()["data"]["invitation_status"] == "expired"

        again = await client.get(f"/api/employees/register/{secret}")
        assert again.json()["error_code"] == "INVALID_INVITATION"

    async def test_link_of_archived_invitee_is_invalid(
        self, client: AsyncClient, invite, admin_headers, secret_from_link
    ):
        data = await invite()
        await client.post(
            f"/api/employees/admin/{data['employee']['id']}/archive", headers=admin_headers
        )

        response = await client.get(
            f"/api/employees/register/{secret_from_link(data['invitation_link'])}"
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INVITATION"

    async def test_expiry_kept_when_status_change_is_rejected(
        self, client: AsyncClient, invite, db_session, admin_headers
    ):
        """An overdue invitation is stored as expired even if the request then fails."""
        data = await invite()
        employee_id = data["employee"]["id"]
        await client.post(f"/api/employees/admin/{employee_id}/archive", headers=admin_headers)
        await _push_expiry_into_past(db_session, employee_id)

        response = await client.post(
            f"/api/employees/{employee_id}/status",
            json={"status": "active"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        stored = await db_session.scalar(
            select(Employee.invitation_status).where(Employee.id == employee_id)
        )
        assert stored == InvitationStatus.EXPIRED

    async def test_admin_read_expires_overdue_invitation(
        self, client: AsyncClient, invite, db_session, admin_headers
    ):
        data = await invite()
        employee_id = data["employee"]["id"]
        await _push_expiry_into_past(db_session, employee_id)

        detail = await client.get(f"/api/employees/{employee_id}", headers=admin_headers)

        assert detail.status_code == 200
        assert detail.json()["data"]["invitation_status"] == "expired"
