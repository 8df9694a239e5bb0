"""Ledger aggregation and display package."""

from sambhav.ledger.aggregator import (
    LedgerInputError,
    aggregate,
    build_ledger_view,
    filter_records,
    grand_total,
    group_records,
    plain_amount,
)
from sambhav.ledger.formatting import form_amount, format_inr, format_ledger_date

__all__ = [
    "LedgerInputError",
    "aggregate",
    "build_ledger_view",
    "filter_records",
    "form_amount",
    "format_inr",
    "format_ledger_date",
    "grand_total",
    "group_records",
    "plain_amount",
]
