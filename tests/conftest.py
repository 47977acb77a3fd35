import os
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Ensure critical settings exist before the app/config modules import.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./dev.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-onboarding-backend-tests")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")

from app.models.employee import (
    Employee,
    EmployeeStatus,
    EmploymentStatus,
    InvitationStatus,
)
from app.models.organization import Organization
from app.models.user import Role, User
from app.services.employee_service import calculate_age
from app.utils.security import create_session_token, hash_password
from core.db import get_db, utcnow
from core.db.base import Base
from main import app

# Use SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

EMPLOYEE_PASSWORD = "Employee123"
ADMIN_PASSWORD = "AdminPass123"


@pytest.fixture(autouse=True)
async def setup_db():
    """Create and drop all tables for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def invitation_email_task():
    """Keep invitation emails away from Celery/Redis."""
    with patch("api.routes.employees.send_employee_invitation_email") as task:
        task.delay = MagicMock()
        yield task


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for testing."""
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing."""

    async def override_get_db():
        async with TestSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


async def _create_admin(
    db_session: AsyncSession, org_name: str, email: str
) -> User:
    organization = Organization(
        name=org_name,
        email=f"contact@{org_name.lower().replace(' ', '-')}.example.com",
        phone="9876543210",
        street_address="1 Test Street",
        city="Pune",
        province="Maharashtra",
        postal_code="411001",
        industry="Legal Services",
        practice_areas=["Corporate Law"],
    )
    db_session.add(organization)
    await db_session.flush()

    admin = User(
        username=email,
        email=email,
        first_name="Admin",
        last_name=org_name.split()[0],
        hashed_password=hash_password(ADMIN_PASSWORD),
        role=Role.ADMIN,
        phone="9876543211",
        organization_id=organization.id,
    )
    db_session.add(admin)
    await db_session.flush()

    organization.super_admin_id = admin.id
    await db_session.commit()
    await db_session.refresh(admin)
    return admin


def _headers_for_admin(admin: User) -> dict:
    token = create_session_token(admin.id, admin.email, admin.organization_id, Role.ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Super admin of the primary test organization."""
    return await _create_admin(db_session, "Acme Legal", "admin@acme.example.com")


@pytest.fixture
async def other_admin(db_session: AsyncSession) -> User:
    """Admin of a second, unrelated organization."""
    return await _create_admin(db_session, "Globex Law", "admin@globex.example.com")


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return _headers_for_admin(admin_user)


@pytest.fixture
def other_admin_headers(other_admin: User) -> dict:
    return _headers_for_admin(other_admin)


@pytest.fixture
async def create_employee(db_session: AsyncSession, admin_user: User):
    """Factory fixture that stores an employee directly."""

    async def _create_employee(
        email: str,
        first_name: str = "Test",
        last_name: str = "Employee",
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        invitation_status: InvitationStatus = InvitationStatus.COMPLETED,
        admin: Optional[User] = None,
        **fields,
    ) -> Employee:
        owner = admin or admin_user
        employee = Employee(
            organization_id=owner.organization_id,
            invited_by_id=owner.id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            salary=fields.pop("salary", Decimal("0")),
            status=status,
            invitation_status=invitation_status,
            employment_status=fields.pop("employment_status", EmploymentStatus.EMPLOYED),
            hashed_password=fields.pop("hashed_password", hash_password(EMPLOYEE_PASSWORD)),
            **fields,
        )
        db_session.add(employee)
        await db_session.commit()
        await db_session.refresh(employee)
        return employee

    return _create_employee


@pytest.fixture
async def active_employee(create_employee) -> Employee:
    return await create_employee(
        "worker@acme.example.com",
        first_name="Wendy",
        last_name="Worker",
        phone="9123456780",
        address="7 Lake View",
        department="Litigation",
        position="Associate",
    )


@pytest.fixture
def employee_headers(active_employee: Employee) -> dict:
    token = create_session_token(
        active_employee.id,
        active_employee.email,
        active_employee.organization_id,
        Role.EMPLOYEE,
    )
    return {"Authorization": f"Bearer {token}"}


def _registration_payload(**overrides) -> dict:
    date_of_birth = date(1995, 3, 10)
    payload = {
        "phone": "9000000001",
        "address": "45 MG Road, Bengaluru",
        "gender": "Female",
        "date_of_birth": date_of_birth.isoformat(),
        "age": calculate_age(date_of_birth, utcnow().date()),
        "national_id": "123412341234",
        "employee_type": "staff",
        "department": "Operations",
        "position": "Coordinator",
        "start_date": "2026-01-05",
        "emergency_contact_name": "Suresh Iyer",
        "emergency_contact_phone": "9000000002",
        "emergency_contact_relation": "Father",
        "password": EMPLOYEE_PASSWORD,
        "confirm_password": EMPLOYEE_PASSWORD,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def invite(client: AsyncClient, admin_headers: dict):
    """Factory fixture that invites an employee through the API."""

    async def _invite(
        email: str = "jane@x.com",
        first_name: str = "Jane",
        last_name: str = "Doe",
        headers: Optional[dict] = None,
        **extra,
    ) -> dict:
        response = await client.post(
            "/api/employees/invite",
            json={"first_name": first_name, "last_name": last_name, "email": email, **extra},
            headers=headers or admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _invite


@pytest.fixture
def registration_payload():
    """Factory for a complete, valid self-registration body."""
    return _registration_payload


@pytest.fixture
def secret_from_link():
    """Pull the invitation secret out of a registration link."""

    def _secret_from_link(link: str) -> str:
        return parse_qs(urlparse(link).query)["token"][0]

    return _secret_from_link
