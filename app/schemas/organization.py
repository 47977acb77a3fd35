"""Organization setup schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, model_validator

from app.schemas.base import PHONE_PATTERN, BaseSchema


class OrganizationCreate(BaseSchema):
    """Organization details submitted during setup."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)
    street_address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    province: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field("India", min_length=1, max_length=100)
    website: Optional[str] = Field(None, max_length=255)
    industry: str = Field(..., min_length=1, max_length=100)
    practice_areas: List[str] = Field(..., min_length=1)


class SuperAdminCreate(BaseSchema):
    """First admin of a new organization."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=6, max_length=100)
    confirm_password: str = Field(..., min_length=6, max_length=100)

    @model_validator(mode="after")
    def validate_passwords_match(self) -> "SuperAdminCreate":
        if self.password != self.confirm_password:
            raise ValueError(
                "Password and confirm password do not match. "
                "Please make sure both passwords are identical."
            )
        return self


class SetupRequest(BaseSchema):
    """Body of the one-shot organization setup call."""

    organization: OrganizationCreate
    super_admin: SuperAdminCreate


class OrganizationResponse(BaseSchema):
    id: str
    name: str
    email: str
    phone: str
    city: str
    province: str
    country: str
    industry: str
    practice_areas: List[str]
    super_admin_id: Optional[str] = None
    created_at: datetime
