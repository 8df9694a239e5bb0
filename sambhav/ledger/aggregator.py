"""
Ledger Aggregation

Turns the flat list of finance records into the ledger the dashboard
shows: one row per client with a running total.

DESIGN DECISION: This module is pure. It takes a snapshot of records by
value, does no I/O, and builds every row from scratch on each call, so it
can run on every keystroke of the search box. Calling it twice with the
same input gives equal output.

Pipeline:
1. Filter  - free-text substring search across name, mobile, amount, location
2. Group   - by user_name, case-insensitively
3. Sort    - latest_date descending, ties keep first-appearance order
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from sambhav.models.record import FinanceRecord, LedgerRow, LedgerView


class LedgerInputError(ValueError):
    """A record is missing a field the ledger needs."""
    pass


def plain_amount(amount: Decimal) -> str:
    """
    Render an amount the way the search box matches it.

    No currency symbol, no thousands separator, no exponent, and no
    fractional part for whole numbers: 1500.00 -> "1500", 12.50 -> "12.5".
    """
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), "f")


def _require_text(record: FinanceRecord, attr: str) -> str:
    value = getattr(record, attr, None)
    if not isinstance(value, str) or not value:
        record_id = getattr(record, "id", "<unknown>")
        raise LedgerInputError(f"Record {record_id} has no {attr}")
    return value


def _require_amount(record: FinanceRecord) -> Decimal:
    value = getattr(record, "amount", None)
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, float)):
        raise LedgerInputError(f"Record {getattr(record, 'id', '<unknown>')} has no amount")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value


def _require_created_at(record: FinanceRecord) -> datetime:
    value = getattr(record, "created_at", None)
    if not isinstance(value, datetime):
        raise LedgerInputError(f"Record {getattr(record, 'id', '<unknown>')} has no created_at")
    return value


def _bill_url(record: FinanceRecord) -> str:
    image = getattr(record, "bill_image", None)
    url = getattr(image, "url", None)
    if not url:
        raise LedgerInputError(f"Record {getattr(record, 'id', '<unknown>')} has no bill image")
    return url


def _validate(record: FinanceRecord) -> None:
    """Check every field the ledger reads, so no record is half-aggregated."""
    for attr in ("id", "user_name", "mobile_number", "location"):
        _require_text(record, attr)
    _require_amount(record)
    _require_created_at(record)
    _bill_url(record)


def _matches(record: FinanceRecord, needle: str) -> bool:
    """needle is already stripped and lower-cased; record is validated."""
    return (
        needle in record.user_name.lower()
        or needle in record.mobile_number.lower()
        or needle in plain_amount(_require_amount(record))
        or needle in record.location.lower()
    )


def filter_records(
    records: Iterable[FinanceRecord],
    filter_text: str = "",
) -> list[FinanceRecord]:
    """
    Keep the records that match the search text.

    Blank or whitespace-only text keeps everything. Matching is a plain
    substring test, so "500" matches an amount of 1500.
    """
    records = list(records)
    for record in records:
        _validate(record)

    needle = (filter_text or "").strip().lower()
    if not needle:
        return records
    return [record for record in records if _matches(record, needle)]


@dataclass
class _Group:
    """Running totals for one client while grouping."""

    user_name: str
    mobile_number: str
    location: str
    latest_date: datetime
    total_amount: Decimal = Decimal("0")
    entry_count: int = 0
    bill_image_urls: list[str] = field(default_factory=list)
    record_ids: list[str] = field(default_factory=list)

    def add(self, record: FinanceRecord) -> None:
        """record has already passed _validate."""
        self.total_amount += _require_amount(record)
        self.entry_count += 1
        if record.created_at > self.latest_date:
            self.latest_date = record.created_at
        self.bill_image_urls.append(record.bill_image.url)
        self.record_ids.append(record.id)

    def to_row(self) -> LedgerRow:
        return LedgerRow(
            user_name=self.user_name,
            mobile_number=self.mobile_number,
            location=self.location,
            total_amount=self.total_amount,
            entry_count=self.entry_count,
            latest_date=self.latest_date,
            bill_image_urls=list(self.bill_image_urls),
            record_ids=list(self.record_ids),
        )


def group_records(records: Iterable[FinanceRecord]) -> list[LedgerRow]:
    """
    Group records by client name, ignoring case.

    Rows come back in first-appearance order (unsorted). The first record
    seen for a client decides the displayed name, mobile and location.
    """
    groups: dict[str, _Group] = {}

    for record in records:
        _validate(record)
        user_name = record.user_name
        key = user_name.lower()
        group = groups.get(key)
        if group is None:
            group = _Group(
                user_name=user_name,
                mobile_number=record.mobile_number,
                location=record.location,
                latest_date=record.created_at,
            )
            groups[key] = group
        group.add(record)

    return [group.to_row() for group in groups.values()]


def aggregate(
    records: Sequence[FinanceRecord],
    filter_text: str = "",
) -> list[LedgerRow]:
    """
    Build the ledger rows for a record snapshot.

    Input order is not trusted for recency; latest_date is recomputed
    from created_at. sorted() is stable, so clients with the same
    latest_date keep the order they first appeared in.

    Raises:
        LedgerInputError: If a record is missing a required field
    """
    rows = group_records(filter_records(records, filter_text))
    return sorted(rows, key=lambda row: row.latest_date, reverse=True)


def grand_total(rows: Iterable[LedgerRow]) -> Decimal:
    """Sum of every row's total_amount."""
    return sum((row.total_amount for row in rows), Decimal("0"))


def build_ledger_view(
    records: Sequence[FinanceRecord],
    filter_text: str = "",
) -> LedgerView:
    """Rows plus the header figures: clients, entries and grand total."""
    rows = aggregate(records, filter_text)
    return LedgerView(
        rows=rows,
        grand_total=grand_total(rows),
        client_count=len(rows),
        entry_count=len(records),
        filter_text=filter_text or "",
    )
