"""Display and form helpers for the ledger (INR amounts, short dates, form input)."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal


def _indian_grouping(digits: str) -> str:
    """1234567 -> 12,34,567 (last three digits, then pairs)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_inr(amount: Decimal) -> str:
    """
    Format an amount as whole rupees with Indian digit grouping.

    Rounding happens here and only here: 150000.5 -> "₹1,50,001".
    """
    rounded = Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}₹{_indian_grouping(str(abs(int(rounded))))}"


def format_ledger_date(value: datetime) -> str:
    """e.g. 05 Mar 2025"""
    return value.strftime("%d %b %Y")


def form_amount(value: float) -> str:
    """A float from a number input as exact paise text: 0.1 + 0.2 -> "0.30"."""
    return f"{value:.2f}"
