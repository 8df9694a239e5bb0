"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for record storage.
This allows us to:
1. Keep Google Sheets, or swap in a real database later
2. Use in-memory storage for testing and unconfigured installs
3. Keep the ledger and the HTTP layer decoupled from storage

The store only persists records. Blob cleanup on update/delete is done by
the orchestrator, which owns both collaborators.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

from pydantic import ValidationError

from sambhav.models.record import BillImageRef, FinanceRecord, RecordFields


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class RecordValidationError(StorageError):
    """A record is missing a required field or its bill image."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


FieldsInput = Union[RecordFields, dict]


class RecordStoreInterface(ABC):
    """
    Abstract interface for finance record storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @staticmethod
    def validate_fields(fields: FieldsInput) -> RecordFields:
        """
        Coerce raw form data into RecordFields.

        Raises:
            RecordValidationError: If a required field is missing or invalid
        """
        if isinstance(fields, RecordFields):
            return fields
        try:
            return RecordFields.model_validate(fields)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise RecordValidationError(f"Invalid record: {problems}") from e

    @staticmethod
    def require_image(bill_image: Optional[BillImageRef]) -> BillImageRef:
        if bill_image is None:
            raise RecordValidationError("Bill image is required")
        return bill_image

    @abstractmethod
    async def list_all(self) -> list[FinanceRecord]:
        """
        List every record, newest first (created_at descending).

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def get_by_id(self, record_id: str) -> Optional[FinanceRecord]:
        """
        Retrieve a record by its ID.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(
        self,
        fields: FieldsInput,
        bill_image: Optional[BillImageRef],
    ) -> FinanceRecord:
        """
        Create and persist a new record.

        Raises:
            RecordValidationError: If a field or the bill image is missing
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update(
        self,
        record_id: str,
        fields: FieldsInput,
        bill_image: Optional[BillImageRef] = None,
    ) -> Optional[FinanceRecord]:
        """
        Replace a record's editable fields (and its image, if given).

        Returns:
            The updated record, or None if it does not exist
        """
        pass

    @abstractmethod
    async def delete_by_id(self, record_id: str) -> bool:
        """
        Delete a record by ID.

        Returns:
            True if deleted, False if there was no such record
        """
        pass
