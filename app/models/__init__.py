from app.models.employee import (
    Employee,
    EmployeeStatus,
    EmployeeStatusHistory,
    EmployeeType,
    EmploymentStatus,
    Gender,
    InvitationStatus,
)
from app.models.organization import Organization
from app.models.user import Role, User

__all__ = [
    # User
    "User",
    "Role",
    # Organization
    "Organization",
    # Employee
    "Employee",
    "EmployeeStatus",
    "EmployeeStatusHistory",
    "EmployeeType",
    "EmploymentStatus",
    "Gender",
    "InvitationStatus",
]
