from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Literal, Mapping, Optional, TypeVar

T = TypeVar("T")

SortBy = Literal["name", "date"]
SortOrder = Literal["asc", "desc"]
FilterType = Literal["all", "recent", "alphabetical"]


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into an aware datetime."""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


@dataclass(slots=True)
class Customer:
    """Server-confirmed customer as held by the store."""
    id: str
    full_name: str
    email: str
    phone_number: str
    address: str
    created_date: datetime

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Customer":
        return cls(
            id=str(data["id"]),
            full_name=data["fullName"],
            email=data["email"],
            phone_number=data["phoneNumber"],
            address=data["address"],
            created_date=parse_timestamp(data["createdAt"]),
        )

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in self.full_name.split() if part).upper()[:2]

    def to_payload(self) -> "CustomerPayload":
        return CustomerPayload(
            full_name=self.full_name,
            email=self.email,
            phone_number=self.phone_number,
            address=self.address,
        )


@dataclass(slots=True)
class DeletedCustomer:
    """Snapshot of a deleted customer kept for undo."""
    customer: Customer
    deleted_at: datetime


@dataclass(slots=True)
class CustomerFormData:
    full_name: str = ""
    email: str = ""
    phone_number: str = ""
    address: str = ""

    @classmethod
    def from_customer(cls, customer: Customer) -> "CustomerFormData":
        return cls(
            full_name=customer.full_name,
            email=customer.email,
            phone_number=customer.phone_number,
            address=customer.address,
        )

    def to_payload(self) -> "CustomerPayload":
        return CustomerPayload(
            full_name=self.full_name,
            email=self.email,
            phone_number=self.phone_number,
            address=self.address,
        )


_WIRE_NAMES = {
    "full_name": "fullName",
    "email": "email",
    "phone_number": "phoneNumber",
    "address": "address",
}


@dataclass(slots=True)
class CustomerPayload:
    """Request body for create (all fields) or update (any subset)."""
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None

    def to_json(self) -> Dict[str, str]:
        return {
            _WIRE_NAMES[f.name]: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass(slots=True)
class SortOption:
    by: SortBy = "date"
    order: SortOrder = "desc"


@dataclass(slots=True)
class PageDTO(Generic[T]):
    """Generic pagination envelope."""
    items: List[T]
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


@dataclass(slots=True)
class ImportFailure:
    row: int
    email: str
    message: str


@dataclass(slots=True)
class ImportResult:
    created: List[Customer] = field(default_factory=list)
    failures: List[ImportFailure] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.created)


@dataclass(slots=True)
class CustomerStats:
    total: int
    recent: int
    deleted_count: int

    @property
    def has_deleted(self) -> bool:
        return self.deleted_count > 0
