"""Employee model and its append-only status history."""

import enum
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Sequence
from uuid import uuid4

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    event,
    select,
)
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import (
    Base,
    OrganizationMixin,
    SoftDeleteMixin,
    TimestampMixin,
    as_utc,
    utcnow,
)

if TYPE_CHECKING:
    from app.models.user import User


def _enum_column(enum_cls: type[enum.Enum]) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda x: [e.value for e in x],
    )


class InvitationStatus(str, enum.Enum):
    """Invitation axis."""
    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"


class EmployeeStatus(str, enum.Enum):
    """Activation axis. Only ACTIVE employees may log in."""
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"


class EmploymentStatus(str, enum.Enum):
    """Archive axis."""
    EMPLOYED = "employed"
    ARCHIVED = "archived"


class EmployeeType(str, enum.Enum):
    ADVOCATE = "advocate"
    INTERN = "intern"
    STAFF = "staff"
    OTHER = "other"


class Gender(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"
    PREFER_NOT_TO_SAY = "Prefer not to say"


DEFAULT_ARCHIVE_REASON = "No reason provided"


class EmployeeStatusHistory(Base):
    """
    One status transition of an employee.

    Rows are only ever inserted; updates and deletes are rejected by the
    mapper events at the bottom of this module.
    """

    __tablename__ = "employee_status_history"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    employee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("employees.id"), nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    from_status: Mapped[Optional[EmployeeStatus]] = mapped_column(
        _enum_column(EmployeeStatus), nullable=True
    )
    to_status: Mapped[EmployeeStatus] = mapped_column(
        _enum_column(EmployeeStatus), nullable=False
    )
    changed_by_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        Index(
            "ix_employee_status_history_employee_sequence",
            "employee_id",
            "sequence",
            unique=True,
        ),
    )


class Employee(Base, TimestampMixin, SoftDeleteMixin, OrganizationMixin):
    """Invited or registered employee of an organization."""

    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    invited_by_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )

    # Identity
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # Profile, filled in at registration
    phone: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    gender: Mapped[Optional[Gender]] = mapped_column(_enum_column(Gender), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    national_id: Mapped[Optional[str]] = mapped_column(
        String(12), nullable=True, unique=True
    )
    employee_type: Mapped[Optional[EmployeeType]] = mapped_column(
        _enum_column(EmployeeType), nullable=True
    )
    advocate_license_number: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )
    intern_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    position: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    emergency_contact_name: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )
    emergency_contact_phone: Mapped[Optional[str]] = mapped_column(
        String(10), nullable=True
    )
    emergency_contact_relation: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True
    )

    # Compensation
    salary: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False, server_default="0.00"
    )

    # Credential
    hashed_password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Invitation axis
    invitation_status: Mapped[InvitationStatus] = mapped_column(
        _enum_column(InvitationStatus),
        default=InvitationStatus.PENDING,
        nullable=False,
        index=True,
    )
    invitation_token: Mapped[Optional[str]] = mapped_column(
        String(128), nullable=True, unique=True
    )
    invitation_expires: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Activation axis
    status: Mapped[EmployeeStatus] = mapped_column(
        _enum_column(EmployeeStatus),
        default=EmployeeStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Archive axis
    employment_status: Mapped[EmploymentStatus] = mapped_column(
        _enum_column(EmploymentStatus),
        default=EmploymentStatus.EMPLOYED,
        nullable=False,
        index=True,
    )
    archived_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    archived_by_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True
    )
    archive_reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    status_history: Mapped[List[EmployeeStatusHistory]] = relationship(
        EmployeeStatusHistory,
        order_by=EmployeeStatusHistory.sequence,
        cascade="save-update, merge",
        lazy="selectin",
    )
    invited_by: Mapped["User"] = relationship("User", foreign_keys=[invited_by_id])

    __table_args__ = (
        Index("ix_employees_organization_email", "organization_id", "email"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalize emails so uniqueness checks are case-insensitive."""
        return email.strip().lower()

    # ------------------------------------------------------------------
    # Lookups. Every lookup by id is scoped to an organization.
    # ------------------------------------------------------------------

    @classmethod
    async def get_for_organization(
        cls,
        db_session: AsyncSession,
        id: str,
        organization_id: str,
        *conditions,
        for_update: bool = False,
    ) -> Optional["Employee"]:
        """Get an employee by ID inside one organization."""
        query = select(cls).where(
            cls.id == id, cls.organization_id == organization_id, *conditions
        )
        if for_update:
            query = query.with_for_update()
        result = await db_session.execute(query)
        return result.scalars().first()

    @classmethod
    async def get_by_email_for_organization(
        cls,
        db_session: AsyncSession,
        email: str,
        organization_id: str,
        for_update: bool = False,
    ) -> Optional["Employee"]:
        """Get an employee by (email, organization)."""
        query = select(cls).where(
            cls.email == cls.normalize_email(email),
            cls.organization_id == organization_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await db_session.execute(query)
        return result.scalars().first()

    @classmethod
    async def get_by_email(
        cls, db_session: AsyncSession, email: str
    ) -> Optional["Employee"]:
        """Get an employee by email across organizations (login only)."""
        result = await db_session.execute(
            select(cls).where(cls.email == cls.normalize_email(email))
        )
        return result.scalars().first()

    @classmethod
    async def get_by_id(
        cls, db_session: AsyncSession, id: str
    ) -> Optional["Employee"]:
        """Get an employee by ID. Only for resolving a verified session."""
        result = await db_session.execute(select(cls).where(cls.id == id))
        return result.scalars().first()

    @classmethod
    async def get_by_invitation_token(
        cls, db_session: AsyncSession, token: str, for_update: bool = False
    ) -> Optional["Employee"]:
        """Get the employee holding a pending invitation secret."""
        query = select(cls).where(
            cls.invitation_token == token,
            cls.invitation_status == InvitationStatus.PENDING,
        )
        if for_update:
            query = query.with_for_update()
        result = await db_session.execute(query)
        return result.scalars().first()

    @classmethod
    async def national_id_taken(
        cls,
        db_session: AsyncSession,
        national_id: str,
        exclude_id: Optional[str] = None,
    ) -> bool:
        """Check whether another employee already holds a national ID."""
        query = select(cls.id).where(cls.national_id == national_id)
        if exclude_id:
            query = query.where(cls.id != exclude_id)
        result = await db_session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    @classmethod
    async def email_taken(
        cls,
        db_session: AsyncSession,
        email: str,
        exclude_id: Optional[str] = None,
    ) -> bool:
        query = select(cls.id).where(cls.email == cls.normalize_email(email))
        if exclude_id:
            query = query.where(cls.id != exclude_id)
        result = await db_session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    @classmethod
    async def get_all_for_organization(
        cls,
        db_session: AsyncSession,
        organization_id: str,
        status: Optional[EmployeeStatus] = None,
    ) -> Sequence["Employee"]:
        """Get every employee of an organization, newest first."""
        conditions = [cls.organization_id == organization_id]
        if status is not None:
            conditions.append(cls.status == status)
        result = await db_session.execute(
            select(cls).where(*conditions).order_by(cls.created_at.desc())
        )
        return result.scalars().all()

    # ------------------------------------------------------------------
    # State helpers. They mutate in memory; the service commits.
    # ------------------------------------------------------------------

    def invitation_is_past_expiry(self, now: Optional[datetime] = None) -> bool:
        expires = as_utc(self.invitation_expires)
        return expires is not None and expires < (now or utcnow())

    def expire_invitation_if_due(self, now: Optional[datetime] = None) -> bool:
        """Flip a pending invitation to expired once its deadline passed."""
        if (
            self.invitation_status == InvitationStatus.PENDING
            and self.invitation_is_past_expiry(now)
        ):
            self.invitation_status = InvitationStatus.EXPIRED
            self.invitation_token = None
            return True
        return False

    def issue_invitation(self, token: str, expire_days: int) -> None:
        self.invitation_token = token
        self.invitation_expires = utcnow() + timedelta(days=expire_days)
        self.invitation_status = InvitationStatus.PENDING

    def record_status_change(
        self,
        to_status: EmployeeStatus,
        changed_by_id: Optional[str],
        reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> EmployeeStatus:
        """Set a new status and append the matching history entry."""
        previous = self.status
        self.status = to_status
        self.status_history.append(
            EmployeeStatusHistory(
                employee_id=self.id,
                sequence=len(self.status_history) + 1,
                from_status=previous,
                to_status=to_status,
                changed_by_id=changed_by_id,
                changed_at=utcnow(),
                reason=reason,
                notes=notes,
            )
        )
        return previous

    @property
    def is_archived(self) -> bool:
        return self.employment_status == EmploymentStatus.ARCHIVED

    def archive(
        self,
        archived_by_id: str,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Mark a former employee. Archived employees are always terminated."""
        self.employment_status = EmploymentStatus.ARCHIVED
        self.archived_at = utcnow()
        self.archived_by_id = archived_by_id
        self.archive_reason = reason or DEFAULT_ARCHIVE_REASON
        self.record_status_change(
            EmployeeStatus.TERMINATED,
            changed_by_id=archived_by_id,
            reason="Archived by admin",
            notes=notes or reason or "Employee archived - stopped working",
        )

    def unarchive(self, changed_by_id: str, notes: Optional[str] = None) -> dict:
        """
        Return an archived employee to employment, pending re-review.

        Returns the archive fields as they were before clearing them.
        """
        previous = {
            "archived_at": self.archived_at,
            "archived_by_id": self.archived_by_id,
            "archive_reason": self.archive_reason,
        }
        self.employment_status = EmploymentStatus.EMPLOYED
        self.archived_at = None
        self.archived_by_id = None
        self.archive_reason = None
        self.record_status_change(
            EmployeeStatus.PENDING,
            changed_by_id=changed_by_id,
            reason="Unarchived by admin",
            notes=notes or "Employee unarchived - restored to active employment",
        )
        return previous

    def soft_delete(self) -> None:
        """Hide an erroneous record. Deleted employees are always terminated."""
        super().soft_delete()
        self.status = EmployeeStatus.TERMINATED

    def restore(self) -> None:
        """Bring back a soft-deleted record for admin review."""
        super().restore()
        # An archived record stays terminated until it is unarchived.
        self.status = (
            EmployeeStatus.TERMINATED if self.is_archived else EmployeeStatus.PENDING
        )


@event.listens_for(EmployeeStatusHistory, "before_update")
def _reject_history_update(mapper, connection, target):
    raise ValueError("Employee status history is append-only")


@event.listens_for(EmployeeStatusHistory, "before_delete")
def _reject_history_delete(mapper, connection, target):
    raise ValueError("Employee status history is append-only")
