from typing import Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organization import Organization
from app.models.user import Role, User
from app.schemas.organization import SetupRequest
from app.utils.security import create_session_token, hash_password
from core.exceptions.base import BadRequestException
from core.logging import get_logger

logger = get_logger(__name__)


class SetupService:
    """Creates an organization together with its super admin."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def initialize(self, data: SetupRequest) -> Tuple[Organization, User, str]:
        """
        Create the organization, its first admin and link them.

        Everything happens in one transaction, so a failure while creating
        the admin leaves no orphaned organization behind.

        Returns:
            The organization, the super admin and a session token for them.

        Raises:
            BadRequestException: If the admin email or organization name
                or email is already taken.
        """
        org_data = data.organization
        admin_data = data.super_admin

        if await User.get_by_email(self.db_session, admin_data.email):
            raise BadRequestException(
                message="This email address is already registered as an admin user. "
                "Please use a different email address."
            )

        if await Organization.get_by_name(self.db_session, org_data.name):
            raise BadRequestException(
                message="An organization with this name already exists. "
                "Please choose a different company name."
            )

        if await Organization.get_by_email(self.db_session, org_data.email):
            raise BadRequestException(
                message="An organization with this email already exists."
            )

        organization = Organization(
            name=org_data.name,
            email=org_data.email.lower(),
            phone=org_data.phone,
            street_address=org_data.street_address,
            city=org_data.city,
            province=org_data.province,
            postal_code=org_data.postal_code,
            country=org_data.country,
            website=org_data.website,
            industry=org_data.industry,
            practice_areas=list(org_data.practice_areas),
        )
        self.db_session.add(organization)

        try:
            await self.db_session.flush()

            admin = await User.create_admin(
                db_session=self.db_session,
                email=admin_data.email,
                first_name=admin_data.first_name,
                last_name=admin_data.last_name,
                organization_id=organization.id,
                hashed_password=hash_password(admin_data.password),
                phone=admin_data.phone,
            )

            organization.super_admin_id = admin.id
            await self.db_session.commit()
        except IntegrityError as e:
            await self.db_session.rollback()
            logger.warning(f"Organization setup rejected by constraint: {e.orig}")
            raise BadRequestException(
                message="Organization or admin already exists"
            )

        await self.db_session.refresh(organization)
        await self.db_session.refresh(admin)

        logger.info(
            f"Organization {organization.id} initialized with super admin {admin.id}"
        )

        token = create_session_token(
            admin.id, admin.email, organization.id, Role.ADMIN
        )
        return organization, admin, token
