"""Filter, sort and paginate the customer collection, always in that order."""
import unicodedata
from datetime import datetime, timedelta, timezone
from math import ceil
from typing import Iterable, List, Optional, Sequence, Tuple

from .entities import Customer, FilterType, PageDTO, SortBy, SortOption, SortOrder


def search_customers(customers: Iterable[Customer], term: str) -> List[Customer]:
    """Case-insensitive substring match on full name or email."""
    items = list(customers)
    needle = (term or "").strip().casefold()
    if not needle:
        return items
    return [
        c for c in items
        if needle in c.full_name.casefold() or needle in c.email.casefold()
    ]


def name_sort_key(name: str) -> Tuple[str, str, str]:
    """Collation key close to a root-locale compare.

    Letters are compared without accents or case first; accents, then case
    (lowercase first), only break ties.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), name.casefold(), name.swapcase()


def filter_recent(
    customers: Iterable[Customer],
    days: int,
    now: Optional[datetime] = None,
) -> List[Customer]:
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    return [c for c in customers if c.created_date > cutoff]


def sort_customers(
    customers: Iterable[Customer],
    by: SortBy = "date",
    order: SortOrder = "asc",
) -> List[Customer]:
    """Stable sort by name or creation date.

    ``sorted(reverse=True)`` keeps equal keys in input order, so descending
    sorts are stable too.
    """
    if by == "name":
        key = lambda c: name_sort_key(c.full_name)  # noqa: E731
    elif by == "date":
        key = lambda c: c.created_date.timestamp()  # noqa: E731
    else:
        raise ValueError(f"Unsupported sort key: {by}")
    return sorted(customers, key=key, reverse=(order == "desc"))


def paginate_customers(
    customers: Sequence[Customer],
    page: int,
    page_size: int,
) -> PageDTO[Customer]:
    """Slice ``[(page-1)*size, page*size)``; out-of-range pages come back empty."""
    if page_size <= 0:
        raise ValueError("page_size must be > 0")

    total = len(customers)
    total_pages = ceil(total / page_size)
    start = (page - 1) * page_size
    items = list(customers[start:start + page_size]) if page >= 1 else []

    return PageDTO(
        items=items,
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def apply_pipeline(
    customers: Iterable[Customer],
    *,
    term: str = "",
    sort: Optional[SortOption] = None,
    page: int = 1,
    page_size: int = 10,
    filter_type: FilterType = "all",
    recent_days: int = 7,
    now: Optional[datetime] = None,
) -> PageDTO[Customer]:
    """Search, optional recent filter, sort, then paginate.

    The "alphabetical" filter replaces the chosen sort option with name
    ascending.
    """
    items = search_customers(customers, term)
    if filter_type == "recent":
        items = filter_recent(items, recent_days, now)
    if filter_type == "alphabetical":
        items = sort_customers(items, "name", "asc")
    else:
        sort = sort or SortOption()
        items = sort_customers(items, sort.by, sort.order)
    return paginate_customers(items, page, page_size)
