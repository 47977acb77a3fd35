"""Employee lifecycle schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from app.models.employee import (
    EmployeeStatus,
    EmployeeType,
    EmploymentStatus,
    Gender,
    InvitationStatus,
)
from app.schemas.base import NATIONAL_ID_PATTERN, PHONE_PATTERN, BaseSchema


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


def check_type_specific_fields(
    employee_type: Optional[EmployeeType],
    advocate_license_number: Optional[str],
    intern_year: Optional[int],
) -> None:
    """Raise ValueError when a type-conditional field is missing."""
    if employee_type == EmployeeType.ADVOCATE and not advocate_license_number:
        raise ValueError("Advocate license number is required for advocate employees")
    if employee_type == EmployeeType.INTERN and intern_year is None:
        raise ValueError("Intern year is required for intern employees")


# ============== Requests ==============


class EmployeeInvite(BaseSchema):
    """Invite a new employee by email."""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    salary: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)

    @field_validator("salary", mode="before")
    @classmethod
    def blank_salary(cls, v: Any) -> Any:
        return _blank_to_none(v)


class EmployeeRegistration(BaseSchema):
    """Profile an invited employee submits to finish registration."""

    phone: str = Field(..., pattern=PHONE_PATTERN)
    address: str = Field(..., min_length=1, max_length=200)
    gender: Gender
    date_of_birth: date
    age: int = Field(..., ge=18, le=100)
    national_id: str = Field(..., pattern=NATIONAL_ID_PATTERN)
    employee_type: EmployeeType
    advocate_license_number: Optional[str] = Field(None, max_length=100)
    intern_year: Optional[int] = Field(None, ge=1, le=4)
    department: str = Field(..., min_length=1, max_length=100)
    position: str = Field(..., min_length=1, max_length=100)
    start_date: date
    emergency_contact_name: str = Field(..., min_length=1, max_length=100)
    emergency_contact_phone: str = Field(..., pattern=PHONE_PATTERN)
    emergency_contact_relation: str = Field(..., min_length=1, max_length=50)
    salary: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    password: str = Field(..., min_length=6, max_length=100)
    confirm_password: str = Field(..., min_length=6, max_length=100)

    @field_validator("salary", "advocate_license_number", "intern_year", mode="before")
    @classmethod
    def blank_optional(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @model_validator(mode="after")
    def validate_registration(self) -> "EmployeeRegistration":
        if self.password != self.confirm_password:
            raise ValueError("Password and confirm password do not match")
        check_type_specific_fields(
            self.employee_type, self.advocate_license_number, self.intern_year
        )
        return self


class EmployeeAdminRegistration(EmployeeRegistration):
    """Admin-side registration of an already invited employee."""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr


class EmployeeAdminUpdate(BaseSchema):
    """
    Partial update of an employee by an admin.

    Lifecycle fields are not editable here; use the status, archive and
    delete endpoints so every change lands in the status history.
    """

    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    address: Optional[str] = Field(None, max_length=200)
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    age: Optional[int] = Field(None, ge=18, le=100)
    national_id: Optional[str] = Field(None, pattern=NATIONAL_ID_PATTERN)
    employee_type: Optional[EmployeeType] = None
    advocate_license_number: Optional[str] = Field(None, max_length=100)
    intern_year: Optional[int] = Field(None, ge=1, le=4)
    salary: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    start_date: Optional[date] = None
    emergency_contact_name: Optional[str] = Field(None, max_length=100)
    emergency_contact_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    emergency_contact_relation: Optional[str] = Field(None, max_length=50)


class EmployeeStatusUpdate(BaseSchema):
    status: EmployeeStatus
    reason: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=500)


class EmployeeArchive(BaseSchema):
    reason: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=500)


class EmployeeUnarchive(BaseSchema):
    notes: Optional[str] = Field(None, max_length=500)


class EmployeeProfileUpdate(BaseSchema):
    """Fields an employee may change on their own record."""

    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    address: Optional[str] = Field(None, max_length=200)
    emergency_contact_name: Optional[str] = Field(None, max_length=100)
    emergency_contact_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    emergency_contact_relation: Optional[str] = Field(None, max_length=50)


class PasswordChange(BaseSchema):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)


# ============== Responses ==============


class StatusHistoryResponse(BaseSchema):
    sequence: int
    from_status: Optional[EmployeeStatus] = None
    to_status: EmployeeStatus
    changed_by_id: Optional[str] = None
    changed_at: datetime
    reason: Optional[str] = None
    notes: Optional[str] = None


class EmployeeSummary(BaseSchema):
    """Employee as returned right after an invite."""

    id: str
    first_name: str
    last_name: str
    email: str
    salary: Decimal
    organization_id: str
    invitation_status: InvitationStatus
    invitation_expires: Optional[datetime] = None
    status: EmployeeStatus
    employment_status: EmploymentStatus
    created_at: datetime


class EmployeeResponse(BaseSchema):
    """Full employee record without credentials or invitation secret."""

    id: str
    organization_id: str
    invited_by_id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    national_id: Optional[str] = None
    employee_type: Optional[EmployeeType] = None
    advocate_license_number: Optional[str] = None
    intern_year: Optional[int] = None
    department: Optional[str] = None
    position: Optional[str] = None
    start_date: Optional[date] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relation: Optional[str] = None
    salary: Decimal
    invitation_status: InvitationStatus
    invitation_expires: Optional[datetime] = None
    status: EmployeeStatus
    employment_status: EmploymentStatus
    archived_at: Optional[datetime] = None
    archived_by_id: Optional[str] = None
    archive_reason: Optional[str] = None
    is_deleted: bool
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class EmployeeDetailResponse(EmployeeResponse):
    status_history: List[StatusHistoryResponse] = []


class InvitationResponse(BaseSchema):
    """Public view of a pending invitation."""

    id: str
    first_name: str
    last_name: str
    email: str
    salary: Decimal
    invitation_expires: Optional[datetime] = None
    organization_id: str
    organization_name: Optional[str] = None
    invited_by_name: Optional[str] = None


class EmployeeListResponse(BaseSchema):
    """Paginated employee listing."""

    items: List[EmployeeResponse]
    count: int
    total_count: int
    total_pages: int
    current_page: int
    has_next_page: bool
    has_prev_page: bool
    next_page: Optional[int] = None
    prev_page: Optional[int] = None
    filters: Dict[str, Any]
    pagination: Dict[str, Any]
