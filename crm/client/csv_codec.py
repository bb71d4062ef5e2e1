"""CSV export/import of the customer collection.

Export quotes every data cell and doubles embedded quotes. Import is a plain
comma split that strips one layer of surrounding quotes per field, so a
comma or an escaped quote *inside* a field does not survive a round trip.
Files produced by older versions of the app rely on exactly this reading,
which is why it is kept as is.
"""
import csv
import io
import random
import re
import string
import time
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional

from .entities import Customer, parse_timestamp

CSV_HEADERS = ["ID", "Full Name", "Email", "Phone Number", "Address", "Created Date"]

_SURROUNDING_QUOTE = re.compile(r'^"|"$')
_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id() -> str:
    """Client-side identifier, replaced by the server's on submission."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"CUST-{int(time.time() * 1000)}-{suffix}"


def export_filename(today: Optional[date] = None) -> str:
    return f"customers-{(today or date.today()).isoformat()}.csv"


def _cell(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, datetime):
        return v.isoformat()
    return str(v)


def export_csv(customers: Iterable[Customer]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for c in customers:
        w.writerow([
            _cell(c.id),
            _cell(c.full_name),
            _cell(c.email),
            _cell(c.phone_number),
            _cell(c.address),
            _cell(c.created_date),
        ])
    body = buf.getvalue().rstrip("\n")
    header = ",".join(CSV_HEADERS)
    return f"{header}\n{body}" if body else header


def _created(values: List[str], fallback: datetime) -> datetime:
    if len(values) < 6 or not values[5].strip():
        return fallback
    try:
        return parse_timestamp(values[5])
    except ValueError:
        return fallback


def import_csv(text: str, now: Optional[datetime] = None) -> List[Customer]:
    """Parse exported CSV text back into (client-identified) customers.

    The first line is taken as the header. Blank lines and rows with fewer
    than five fields are skipped.
    """
    fallback = now or datetime.now(timezone.utc)
    out: List[Customer] = []

    for line in text.split("\n")[1:]:
        if not line.strip():
            continue
        values = [_SURROUNDING_QUOTE.sub("", v) for v in line.rstrip("\r").split(",")]
        if len(values) < 5:
            continue
        out.append(
            Customer(
                id=values[0] or generate_id(),
                full_name=values[1],
                email=values[2],
                phone_number=values[3],
                address=values[4],
                created_date=_created(values, fallback),
            )
        )
    return out
