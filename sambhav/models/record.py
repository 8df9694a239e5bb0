"""
Core Data Models for SAMBHAV

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce required fields at the storage boundary
2. Provide clear validation error messages
3. Be serializable for storage and the HTTP API

DESIGN DECISION: Amounts are Decimal end to end. Totals are summed
exactly and rounding happens only when a value is displayed.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    return uuid4().hex


# =============================================================================
# FINANCE RECORDS
# =============================================================================

class BillImageRef(BaseModel):
    """
    Pointer to an uploaded bill in the blob store.

    storage_id is what the blob store needs to delete the file later,
    so a reference without one is useless and rejected.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    url: str = Field(
        ...,
        min_length=1,
        description="Public URL of the uploaded bill"
    )
    storage_id: str = Field(
        ...,
        min_length=1,
        description="Blob store identifier used for deletion"
    )


class RecordFields(BaseModel):
    """
    The user-editable part of a finance record.

    This is what the add/edit form submits. Whitespace is stripped and
    every field is required.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    user_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Client name (ledger grouping key)"
    )
    mobile_number: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Contact number, free-form"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Bill amount in INR"
    )
    location: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Where the bill was raised"
    )

    @field_validator('amount')
    @classmethod
    def reject_non_finite(cls, v: Decimal) -> Decimal:
        """NaN and Infinity are not amounts."""
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v


class FinanceRecord(RecordFields):
    """
    A persisted finance record: one bill, one amount.

    created_at is set once when the record is created and never changes.
    updated_at moves on every update.
    """

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Opaque unique record ID"
    )
    bill_image: BillImageRef = Field(
        ...,
        description="Uploaded bill image (required)"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        description="When the record was created"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last update timestamp"
    )

    def with_changes(
        self,
        fields: RecordFields,
        bill_image: Optional[BillImageRef] = None,
    ) -> "FinanceRecord":
        """Return an updated copy; id and created_at are preserved."""
        return FinanceRecord(
            id=self.id,
            created_at=self.created_at,
            updated_at=utcnow(),
            bill_image=bill_image or self.bill_image,
            **fields.model_dump(),
        )


# =============================================================================
# UPLOAD MODELS
# =============================================================================

class BillUpload(BaseModel):
    """Metadata for a bill file before it is sent to the blob store."""

    filename: str = Field(
        ...,
        min_length=1,
    )
    content_type: Optional[str] = None
    size_bytes: int = Field(ge=0)

    @property
    def extension(self) -> str:
        """Lower-cased file extension without the dot ('' if none)."""
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot else ""

    @property
    def is_pdf(self) -> bool:
        return self.extension == "pdf" or (self.content_type or "").lower() == "application/pdf"


# =============================================================================
# LEDGER MODELS (derived, never persisted)
# =============================================================================

class LedgerRow(BaseModel):
    """
    One ledger line per client.

    Display fields come from the first record seen for the client.
    bill_image_urls and record_ids are in input order; record_ids is the
    unit for "delete all entries for this client".
    """
    model_config = ConfigDict(frozen=True)

    user_name: str
    mobile_number: str
    location: str
    total_amount: Decimal
    entry_count: int = Field(ge=1)
    latest_date: datetime
    bill_image_urls: list[str] = Field(default_factory=list)
    record_ids: list[str] = Field(default_factory=list)


class LedgerView(BaseModel):
    """What the dashboard renders: rows plus the header figures."""
    model_config = ConfigDict(frozen=True)

    rows: list[LedgerRow] = Field(default_factory=list)
    grand_total: Decimal = Decimal("0")
    client_count: int = Field(ge=0, default=0)
    entry_count: int = Field(
        ge=0,
        default=0,
        description="Records in the store before the search filter"
    )
    filter_text: str = ""


class BulkDeleteResult(BaseModel):
    """
    Outcome of deleting several records independently.

    There is no transaction: some ids may be deleted while others fail.
    """

    deleted: list[str] = Field(default_factory=list)
    not_found: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(
        default_factory=dict,
        description="record_id -> error message"
    )

    @property
    def ok(self) -> bool:
        return not self.failed
