from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with ORM attribute support."""

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
    )


PHONE_PATTERN = r"^\d{10}$"
NATIONAL_ID_PATTERN = r"^\d{12}$"
