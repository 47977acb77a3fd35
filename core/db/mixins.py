from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

if TYPE_CHECKING:
    from app.models.organization import Organization


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False
    )


class SoftDeleteMixin:
    """Mixin that adds soft delete semantics."""

    @declared_attr.directive
    def is_deleted(cls) -> Mapped[bool]:  # type: ignore[override]
        return mapped_column(
            Boolean,
            default=False,
            server_default="0",
            nullable=False,
            index=True,
        )

    @declared_attr.directive
    def deleted_at(cls) -> Mapped[Optional[datetime]]:  # type: ignore[override]
        return mapped_column(DateTime(timezone=True), nullable=True)

    def soft_delete(self) -> None:
        """Mark the record as deleted without removing it."""
        self.is_deleted = True
        self.deleted_at = utcnow()

    def restore(self) -> None:
        """Restore a previously soft-deleted record."""
        self.is_deleted = False
        self.deleted_at = None


class OrganizationMixin:
    """Mixin that adds multi-tenant organization scoping."""

    @declared_attr.directive
    def organization_id(cls) -> Mapped[str]:  # type: ignore[override]
        return mapped_column(
            String(36), ForeignKey("organizations.id"), nullable=False, index=True
        )

    @declared_attr.directive
    def organization(cls) -> Mapped["Organization"]:  # type: ignore[override]
        # organizations.super_admin_id points back at users, so the join
        # column has to be named explicitly.
        return relationship(
            "Organization", foreign_keys=f"{cls.__name__}.organization_id"
        )


__all__ = ["TimestampMixin", "SoftDeleteMixin", "OrganizationMixin", "utcnow", "as_utc"]
