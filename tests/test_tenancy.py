import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestOrganizationScoping:
    """Admins only ever see and change employees of their own organization."""

    async def test_cross_organization_read(
        self, client: AsyncClient, active_employee, other_admin_headers
    ):
        response = await client.get(
            f"/api/employees/{active_employee.id}", headers=other_admin_headers
        )

        assert response.status_code == 404

    @pytest.mark.parametrize(
        "method,path,body",
        [
            ("post", "/api/employees/{id}/status", {"status": "terminated"}),
            ("post", "/api/employees/admin/{id}/archive", None),
            ("put", "/api/employees/admin/{id}/unarchive", None),
            ("delete", "/api/employees/admin/{id}", None),
            ("put", "/api/employees/admin/{id}/restore", None),
            ("put", "/api/employees/admin/{id}", {"department": "Hijacked"}),
        ],
    )
    async def test_cross_organization_mutations(
        self,
        client: AsyncClient,
        active_employee,
        other_admin_headers,
        admin_headers,
        method,
        path,
        body,
    ):
        url = path.format(id=active_employee.id)
        kwargs = {"headers": other_admin_headers}
        if body is not None:
            kwargs["json"] = body

        response = await client.request(method.upper(), url, **kwargs)

        assert response.status_code == 404

        untouched = await client.get(f"/api/employees/{active_employee.id}", headers=admin_headers)
        data = untouched.json()["data"]
        assert data["status"] == "active"
        assert data["department"] == "Litigation"
        assert data["is_deleted"] is False
        assert data["status_history"] == []

    async def test_listings_are_scoped(
        self, client: AsyncClient, active_employee, other_admin_headers
    ):
        listing = await client.get("/api/employees/admin/all", headers=other_admin_headers)
        everything = await client.get("/api/employees", headers=other_admin_headers)

        assert listing.json()["data"]["total_count"] == 0
        assert everything.json()["count"] == 0


class TestRoleChecks:
    async def test_employee_cannot_reach_admin_routes(
        self, client: AsyncClient, employee_headers
    ):
        for path in ("/api/employees/admin/all", "/api/employees"):
            response = await client.get(path, headers=employee_headers)
            assert response.status_code == 403
            assert response.json()["error_code"] == "FORBIDDEN"

    async def test_employee_cannot_invite(self, client: AsyncClient, employee_headers):
        response = await client.post(
            "/api/employees/invite",
            json={"first_name": "A", "last_name": "B", "email": "ab@x.com"},
            headers=employee_headers,
        )

        assert response.status_code == 403

    async def test_admin_has_no_profile(self, client: AsyncClient, admin_headers):
        response = await client.get("/api/employees/profile", headers=admin_headers)

        assert response.status_code == 403
