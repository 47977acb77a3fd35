"""
Seed script for the onboarding backend.
Creates a demo organization, its super admin and a few employees in
different lifecycle states. Run migrations first.
"""

import asyncio
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import EmployeeStatus
from app.models.organization import Organization
from app.models.user import User
from app.schemas.employee import (
    EmployeeArchive,
    EmployeeInvite,
    EmployeeRegistration,
    EmployeeStatusUpdate,
)
from app.schemas.organization import OrganizationCreate, SetupRequest, SuperAdminCreate
from app.services.employee_service import EmployeeService
from app.services.setup_service import SetupService
from core.db import async_session_factory, engine

DEMO_ORGANIZATION = "Demo Legal Associates"
DEMO_ADMIN_EMAIL = "admin@demo-legal.example.com"
DEMO_PASSWORD = "Demo@1234"


class DataSeeder:
    """Seed data generator."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.admin = None

    async def seed_all(self):
        """Seed all data."""
        print("🌱 Starting database seeding...")
        try:
            if await self.seed_organization():
                await self.seed_employees()
            else:
                print("  Demo data already present, skipping employees")
            print("\n✅ Database seeding completed successfully!")
        except Exception as e:
            print(f"\n❌ Error during seeding: {e}")
            raise

    async def seed_organization(self) -> bool:
        """Create the demo organization and super admin once. Returns False if it existed."""
        print("🏢 Seeding organization...")
        organization = await Organization.get_by_name(self.session, DEMO_ORGANIZATION)
        if organization:
            self.admin = await User.get_by_email(self.session, DEMO_ADMIN_EMAIL)
            print(f"  Using existing organization: {organization.name}")
            return False

        setup = SetupRequest(
            organization=OrganizationCreate(
                name=DEMO_ORGANIZATION,
                email="contact@demo-legal.example.com",
                phone="9876543210",
                street_address="12 Residency Road",
                city="Bengaluru",
                province="Karnataka",
                postal_code="560025",
                industry="Legal Services",
                practice_areas=["Corporate Law", "Litigation"],
            ),
            super_admin=SuperAdminCreate(
                first_name="Asha",
                last_name="Rao",
                email=DEMO_ADMIN_EMAIL,
                phone="9876543211",
                password=DEMO_PASSWORD,
                confirm_password=DEMO_PASSWORD,
            ),
        )
        organization, self.admin, _ = await SetupService(self.session).initialize(setup)
        print(f"  Created organization: {organization.name}")
        print(f"  Super admin: {DEMO_ADMIN_EMAIL} / {DEMO_PASSWORD}")
        return True

    async def seed_employees(self):
        """Invite, register, activate and archive a handful of employees."""
        print("👥 Seeding employees...")
        service = EmployeeService(self.session)

        pending = await service.invite(
            self.admin,
            EmployeeInvite(first_name="Ravi", last_name="Kumar", email="ravi@demo-legal.example.com"),
        )
        print(f"  Invited {pending.employee.email}: {pending.link}")

        registered = await service.invite(
            self.admin,
            EmployeeInvite(
                first_name="Meera",
                last_name="Iyer",
                email="meera@demo-legal.example.com",
                salary=Decimal("55000"),
            ),
        )
        today = date.today()
        birth = date(today.year - 27, 1, 1)
        employee = await service.complete_registration(
            registered.secret,
            EmployeeRegistration(
                phone="9000000001",
                address="45 MG Road, Bengaluru",
                gender="Female",
                date_of_birth=birth,
                age=27,
                national_id="123412341234",
                employee_type="advocate",
                advocate_license_number="KAR/1234/2020",
                department="Litigation",
                position="Associate",
                start_date=today,
                emergency_contact_name="Suresh Iyer",
                emergency_contact_phone="9000000002",
                emergency_contact_relation="Father",
                password=DEMO_PASSWORD,
                confirm_password=DEMO_PASSWORD,
            ),
        )
        await service.update_status(
            self.admin,
            employee.id,
            EmployeeStatusUpdate(status=EmployeeStatus.ACTIVE, reason="Documents verified"),
        )
        print(f"  Registered and activated {employee.email} / {DEMO_PASSWORD}")

        former = await service.invite(
            self.admin,
            EmployeeInvite(first_name="Karan", last_name="Shah", email="karan@demo-legal.example.com"),
        )
        await service.archive(
            self.admin,
            former.employee.id,
            EmployeeArchive(reason="Left the firm"),
        )
        print(f"  Archived {former.employee.email}")


async def main():
    """Main seeding function."""
    async with async_session_factory() as session:
        seeder = DataSeeder(session)
        await seeder.seed_all()

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
