from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
PHONE_PATTERN = r"^[\d\s\-+()]{10,}$"


class CustomerCreate(BaseModel):
    """Input schema to create a customer."""
    full_name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    phone_number: str = Field(..., pattern=PHONE_PATTERN)
    address: str = Field(..., min_length=5, max_length=500)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "fullName": "John Anderson",
                "email": "john.anderson@example.com",
                "phoneNumber": "+1 (555) 123-4567",
                "address": "123 Main Street, New York, NY 10001",
            }
        },
    )

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class CustomerUpdate(BaseModel):
    """Partial update schema for a customer.

    Blank values are treated like missing ones: the stored value is kept.
    """
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    address: Optional[str] = Field(None, min_length=5, max_length=500)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v
