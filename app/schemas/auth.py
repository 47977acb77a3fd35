"""Login and session schemas."""

from typing import Optional

from pydantic import EmailStr, Field

from app.models.user import Role
from app.schemas.base import BaseSchema
from app.schemas.employee import EmployeeResponse


class LoginRequest(BaseSchema):
    """Schema for login with email and password."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminUserResponse(BaseSchema):
    """Admin principal as returned by login and setup."""

    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: Role
    organization_id: str


class EmployeeUserResponse(EmployeeResponse):
    """Employee principal as returned by login."""

    role: Role = Role.EMPLOYEE


class TokenResponse(BaseSchema):
    """OAuth2 token response used by the interactive docs."""

    access_token: str
    token_type: str = "bearer"
