"""
Data Models Package

This package contains all Pydantic models used in SAMBHAV.
All data flowing through the system must conform to these schemas.
"""

from sambhav.models.record import (
    BillImageRef,
    BillUpload,
    BulkDeleteResult,
    FinanceRecord,
    LedgerRow,
    LedgerView,
    RecordFields,
)

__all__ = [
    "BillImageRef",
    "BillUpload",
    "BulkDeleteResult",
    "FinanceRecord",
    "LedgerRow",
    "LedgerView",
    "RecordFields",
]
