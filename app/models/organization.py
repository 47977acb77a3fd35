"""Organization model for multi-tenant scoping."""

from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlalchemy import JSON, ForeignKey, String, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.user import User


class Organization(Base, TimestampMixin):
    """Tenant organization. Created once by the setup flow."""

    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[str] = mapped_column(String(10), nullable=False)
    street_address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    province: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="India")
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    industry: Mapped[str] = mapped_column(String(100), nullable=False)
    practice_areas: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Set right after the super admin row exists
    super_admin_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", use_alter=True, name="fk_organizations_super_admin_id_users"),
        nullable=True,
    )

    super_admin: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[super_admin_id], post_update=True
    )

    def __repr__(self) -> str:
        return f"Organization(id={self.id}, name={self.name})"

    @classmethod
    async def get_by_id(
        cls, db_session: AsyncSession, id: str
    ) -> Optional["Organization"]:
        """Get organization by ID."""
        result = await db_session.execute(select(cls).where(cls.id == id))
        return result.scalars().first()

    @classmethod
    async def get_by_name(
        cls, db_session: AsyncSession, name: str
    ) -> Optional["Organization"]:
        """Get organization by name (case-insensitive)."""
        result = await db_session.execute(
            select(cls).where(func.lower(cls.name) == name.strip().lower())
        )
        return result.scalars().first()

    @classmethod
    async def get_by_email(
        cls, db_session: AsyncSession, email: str
    ) -> Optional["Organization"]:
        """Get organization by contact email."""
        result = await db_session.execute(
            select(cls).where(func.lower(cls.email) == email.strip().lower())
        )
        return result.scalars().first()
