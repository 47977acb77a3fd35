import enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import Enum, String, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, OrganizationMixin, TimestampMixin


class Role(str, enum.Enum):
    """Principal kinds carried in session tokens."""
    ADMIN = "admin"
    EMPLOYEE = "employee"


class User(Base, TimestampMixin, OrganizationMixin):
    """Admin principal. Employees live in their own table."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        default=Role.ADMIN,
        nullable=False
    )

    @property
    def full_name(self) -> str:
        """Get user's full name."""
        return f"{self.first_name} {self.last_name}".strip()

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalize emails so uniqueness checks are case-insensitive."""
        return email.strip().lower()

    @classmethod
    async def get_by_id(
        cls, db_session: AsyncSession, id: str
    ) -> Optional["User"]:
        """Get user by ID."""
        result = await db_session.execute(select(cls).where(cls.id == id))
        return result.scalars().first()

    @classmethod
    async def get_by_email(
        cls, db_session: AsyncSession, email: str
    ) -> Optional["User"]:
        """Get user by email."""
        normalized_email = cls.normalize_email(email)
        result = await db_session.execute(
            select(cls).where(cls.email == normalized_email)
        )
        return result.scalars().first()

    @classmethod
    async def create_admin(
        cls,
        db_session: AsyncSession,
        email: str,
        first_name: str,
        last_name: str,
        organization_id: str,
        hashed_password: str,
        phone: Optional[str] = None,
    ) -> "User":
        """Stage a new admin in the session. The caller commits."""
        normalized_email = cls.normalize_email(email)
        user = cls(
            username=normalized_email,
            email=normalized_email,
            first_name=first_name,
            last_name=last_name,
            hashed_password=hashed_password,
            role=Role.ADMIN,
            phone=phone,
            organization_id=organization_id,
        )
        db_session.add(user)
        await db_session.flush()
        return user
