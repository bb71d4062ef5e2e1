from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CustomerDTO(BaseModel):
    """Customer as served over the wire (camelCase keys)."""
    id: str
    full_name: str
    email: str
    phone_number: str
    address: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    # sqlite hands back naive datetimes
    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
