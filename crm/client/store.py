import asyncio
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from crm.core.logger import logger
from . import csv_codec
from .entities import (
    Customer,
    CustomerFormData,
    CustomerPayload,
    CustomerStats,
    DeletedCustomer,
    FilterType,
    ImportFailure,
    ImportResult,
    PageDTO,
    SortOption,
)
from .errors import CustomerAPIError, FormValidationError
from .pipeline import apply_pipeline, filter_recent
from .preferences import ThemePreference
from .remote import RemoteCustomerService
from .validation import validate_customer

UNDO_LIMIT = 5

Notifier = Callable[[str, str], None]
CustomerInput = Union[CustomerFormData, CustomerPayload, Customer]


def _log_notifier(level: str, message: str) -> None:
    if level == "error":
        logger.error("[CustomerStore] %s", message)
    else:
        logger.info("[CustomerStore] %s", message)


def _as_payload(data: CustomerInput) -> CustomerPayload:
    return data if isinstance(data, CustomerPayload) else data.to_payload()


class CustomerStore:
    """Client-side state container for the customer screens.

    The collection only ever holds server-confirmed records. Mutations go
    through the remote service one at a time; ``is_loading`` is set while
    one is in flight. On any failure the collection keeps its last
    known-good state.
    """

    def __init__(
        self,
        api: RemoteCustomerService,
        preferences: Optional[ThemePreference] = None,
        *,
        page_size: int = 10,
        import_concurrency: int = 10,
        recent_days: int = 7,
        notify: Optional[Notifier] = None,
    ) -> None:
        self.api = api
        self.preferences = preferences
        self.import_concurrency = import_concurrency
        self.recent_days = recent_days
        self._notify = notify or _log_notifier
        self._lock = asyncio.Lock()

        self._customers: List[Customer] = []
        self._deleted: List[DeletedCustomer] = []

        self.search_term = ""
        self.filter_type: FilterType = "all"
        self.sort_option = SortOption()
        self.current_page = 1
        self.page_size = page_size
        self.is_dark_mode = preferences.load() == "dark" if preferences else False
        self.is_loading = False

        self.selected_customer_id: Optional[str] = None
        self.is_form_open = False
        self.editing_customer_id: Optional[str] = None

    # ---------------------------------------------------------------------
    # Read access
    # ---------------------------------------------------------------------

    @property
    def customers(self) -> Tuple[Customer, ...]:
        return tuple(self._customers)

    @property
    def deleted_customers(self) -> Tuple[DeletedCustomer, ...]:
        return tuple(self._deleted)

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return next((c for c in self._customers if c.id == customer_id), None)

    def visible_page(self, now: Optional[datetime] = None) -> PageDTO[Customer]:
        return apply_pipeline(
            self._customers,
            term=self.search_term,
            sort=self.sort_option,
            page=self.current_page,
            page_size=self.page_size,
            filter_type=self.filter_type,
            recent_days=self.recent_days,
            now=now,
        )

    def stats(self, now: Optional[datetime] = None) -> CustomerStats:
        return CustomerStats(
            total=len(self._customers),
            recent=len(filter_recent(self._customers, self.recent_days, now)),
            deleted_count=len(self._deleted),
        )

    # ---------------------------------------------------------------------
    # Remote mutations
    # ---------------------------------------------------------------------

    @asynccontextmanager
    async def _mutation(self) -> AsyncIterator[None]:
        async with self._lock:
            self.is_loading = True
            try:
                yield
            finally:
                self.is_loading = False

    async def load_customers(self) -> bool:
        """Replace the collection with the server listing.

        Returns False (collection untouched) when the listing fails.
        """
        async with self._mutation():
            try:
                customers = await self.api.fetch_customers()
            except CustomerAPIError as e:
                logger.error("[CustomerStore] load failed: %s", e.message, exc_info=True)
                self._notify("error", "Failed to load customers")
                return False
            self._customers = list(customers)
        logger.info("[CustomerStore] loaded %d customers", len(self._customers))
        return True

    async def add_customer(self, data: CustomerInput) -> Customer:
        async with self._mutation():
            try:
                created = await self.api.create_customer(_as_payload(data))
            except CustomerAPIError as e:
                logger.error("[CustomerStore] add failed: %s", e.message)
                self._notify("error", e.message or "Failed to add customer")
                raise
            self._customers.insert(0, created)
        self._notify("success", "Customer added successfully!")
        return created

    async def update_customer(self, customer_id: str, changes: CustomerInput) -> Customer:
        """Send partial changes; the matching record keeps its position."""
        async with self._mutation():
            try:
                updated = await self.api.update_customer(customer_id, _as_payload(changes))
            except CustomerAPIError as e:
                logger.error("[CustomerStore] update failed ID=%s: %s", customer_id, e.message)
                self._notify("error", e.message or "Failed to update customer")
                raise
            self._customers = [
                replace(
                    c,
                    full_name=updated.full_name,
                    email=updated.email,
                    phone_number=updated.phone_number,
                    address=updated.address,
                )
                if c.id == customer_id
                else c
                for c in self._customers
            ]
        self._notify("success", "Customer updated successfully!")
        return self.get_customer(customer_id) or updated

    async def delete_customer(self, customer_id: str) -> Optional[DeletedCustomer]:
        """Delete remotely, then keep a snapshot at the front of the undo buffer.

        Unknown ids are ignored and return None.
        """
        async with self._mutation():
            customer = self.get_customer(customer_id)
            if customer is None:
                logger.warning("[CustomerStore] delete ignored, unknown ID=%s", customer_id)
                return None
            try:
                await self.api.delete_customer(customer_id)
            except CustomerAPIError as e:
                logger.error("[CustomerStore] delete failed ID=%s: %s", customer_id, e.message)
                self._notify("error", e.message or "Failed to delete customer")
                raise
            entry = DeletedCustomer(customer=customer, deleted_at=datetime.now(timezone.utc))
            self._customers = [c for c in self._customers if c.id != customer_id]
            self._deleted = [entry, *self._deleted][:UNDO_LIMIT]
        logger.warning("[CustomerStore] deleted ID=%s (undo buffer=%d)", customer_id, len(self._deleted))
        self._notify("success", "Customer deleted successfully!")
        return entry

    async def undo_delete(self) -> Optional[Customer]:
        """Re-create the most recently deleted customer under a new id.

        A failed restore puts the snapshot back at the front of the buffer
        and returns None.
        """
        async with self._mutation():
            if not self._deleted:
                return None
            entry, self._deleted = self._deleted[0], self._deleted[1:]
            try:
                restored = await self.api.create_customer(entry.customer.to_payload())
            except CustomerAPIError as e:
                self._deleted = [entry, *self._deleted][:UNDO_LIMIT]
                logger.error("[CustomerStore] undo failed for %s: %s", entry.customer.email, e.message)
                self._notify("error", "Failed to restore customer")
                return None
            self._customers.insert(0, restored)
        self._notify("success", "Customer restored successfully!")
        return restored

    async def import_customers(self, records: Iterable[CustomerInput]) -> ImportResult:
        """Create every record concurrently and prepend the ones that succeed.

        At most ``import_concurrency`` requests are open at a time. Rows
        that fail are reported in ``ImportResult.failures`` (1-based).
        """
        payloads = [_as_payload(r) for r in records]
        sem = asyncio.Semaphore(self.import_concurrency)

        async def _create(payload: CustomerPayload) -> Customer:
            async with sem:
                return await self.api.create_customer(payload)

        result = ImportResult()
        async with self._mutation():
            outcomes = await asyncio.gather(*(_create(p) for p in payloads), return_exceptions=True)
            for row, (payload, outcome) in enumerate(zip(payloads, outcomes), start=1):
                if isinstance(outcome, Customer):
                    result.created.append(outcome)
                    continue
                if not isinstance(outcome, Exception):
                    raise outcome
                message = outcome.message if isinstance(outcome, CustomerAPIError) else str(outcome)
                logger.warning("[CustomerStore] import row=%d failed: %s", row, message)
                result.failures.append(ImportFailure(row=row, email=payload.email or "", message=message))
            self._customers = [*result.created, *self._customers]

        if result.count:
            self._notify("success", f"Successfully imported {result.count} customers!")
        if result.failures:
            self._notify("error", f"{len(result.failures)} customers could not be imported")
        return result

    async def import_csv(self, text: str) -> ImportResult:
        return await self.import_customers(csv_codec.import_csv(text))

    async def submit_form(self, form: CustomerFormData) -> Customer:
        """Validate the form, then update the record being edited or create one."""
        errors = validate_customer(form)
        if errors:
            raise FormValidationError(errors)
        if self.editing_customer_id:
            customer = await self.update_customer(self.editing_customer_id, form)
        else:
            customer = await self.add_customer(form)
        self.close_form()
        return customer

    # ---------------------------------------------------------------------
    # Local-only operations
    # ---------------------------------------------------------------------

    def reorder_customers(self, customers: Sequence[Customer]) -> None:
        """Replace the local ordering; the server is never contacted."""
        if sorted(c.id for c in customers) != sorted(c.id for c in self._customers):
            raise ValueError("reorder must contain exactly the current customers")
        self._customers = list(customers)

    def export_csv(self) -> str:
        return csv_codec.export_csv(self._customers)

    def set_search_term(self, term: str) -> None:
        self.search_term = term
        self.current_page = 1

    def set_filter_type(self, filter_type: FilterType) -> None:
        self.filter_type = filter_type
        self.current_page = 1

    def set_sort_option(self, option: SortOption) -> None:
        self.sort_option = option

    def set_current_page(self, page: int) -> None:
        self.current_page = page

    def set_page_size(self, size: int) -> None:
        if size <= 0:
            raise ValueError("page size must be > 0")
        self.page_size = size
        self.current_page = 1

    def set_dark_mode(self, is_dark: bool) -> None:
        self.is_dark_mode = is_dark
        if self.preferences:
            self.preferences.save("dark" if is_dark else "light")

    def toggle_dark_mode(self) -> None:
        self.set_dark_mode(not self.is_dark_mode)

    def select_customer(self, customer_id: Optional[str]) -> None:
        self.selected_customer_id = customer_id

    def open_form(self, editing_customer_id: Optional[str] = None) -> None:
        self.is_form_open = True
        self.editing_customer_id = editing_customer_id

    def close_form(self) -> None:
        self.is_form_open = False
        self.editing_customer_id = None
