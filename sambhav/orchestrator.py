"""
Main Orchestrator for SAMBHAV

This module ties the record store and the blob store together and
defines the end-to-end record flows:
1. Create  (file → blob store → record)
2. Update  (optional new file → record → old blob removed)
3. Delete  (blob removed → record removed), singly or per client
4. Ledger  (all records → search filter → grouped rows + totals)

DESIGN DECISION: Blob cleanup is best effort. A record delete never
fails because Cloudinary could not remove the file; the failure is
logged and the orphaned file is left behind.
"""

import asyncio
from typing import Optional

from sambhav.ledger import build_ledger_view
from sambhav.logging_setup import get_logger
from sambhav.models.record import (
    BillImageRef,
    BulkDeleteResult,
    FinanceRecord,
    LedgerView,
)
from sambhav.services.image import BlobStoreError, BlobStoreInterface, CloudinaryBlobStore
from sambhav.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    RecordStoreInterface,
    RecordValidationError,
)
from sambhav.services.storage.interface import FieldsInput

logger = get_logger(__name__)


class BillFile:
    """An uploaded bill file as received from a form."""

    __slots__ = ("content", "filename", "content_type")

    def __init__(self, content: bytes, filename: str, content_type: Optional[str] = None):
        self.content = content
        self.filename = filename
        self.content_type = content_type


class RecordService:
    """
    Orchestrates record CRUD across the record store and blob store.

    Every method that changes the record collection leaves it to the
    caller to rebuild the ledger view (ledger_view) afterwards.
    """

    def __init__(
        self,
        record_store: RecordStoreInterface,
        blob_store: BlobStoreInterface,
    ):
        self._records = record_store
        self._blobs = blob_store

    @property
    def blob_store(self) -> BlobStoreInterface:
        return self._blobs

    async def _discard_blob(self, image: BillImageRef, reason: str) -> None:
        """Delete a blob, logging instead of raising on failure."""
        try:
            deleted = await self._blobs.delete(image.storage_id)
        except BlobStoreError as e:
            logger.error(
                "blob_delete_failed",
                storage_id=image.storage_id,
                reason=reason,
                error=str(e),
            )
            return
        if not deleted:
            logger.warning("blob_not_found", storage_id=image.storage_id, reason=reason)

    async def list_records(self) -> list[FinanceRecord]:
        """All records, newest first."""
        return await self._records.list_all()

    async def get_record(self, record_id: str) -> FinanceRecord:
        """
        Fetch one record.

        Raises:
            NotFoundError: If there is no such record
        """
        record = await self._records.get_by_id(record_id)
        if record is None:
            raise NotFoundError(f"Record not found: {record_id}")
        return record

    async def create_record(
        self,
        fields: FieldsInput,
        bill: Optional[BillFile],
    ) -> FinanceRecord:
        """
        Upload the bill and create the record.

        Fields are validated before the upload so a bad form never leaves
        a file behind. If the record write fails the fresh upload is
        removed again.

        Raises:
            RecordValidationError: If a field or the bill file is missing
            BlobStoreError: If the upload is rejected or fails
            StorageError: If the record cannot be written
        """
        validated = self._records.validate_fields(fields)
        if bill is None:
            raise RecordValidationError("Bill image is required")

        image = await self._blobs.store(bill.content, bill.filename, bill.content_type)
        try:
            record = await self._records.create(validated, image)
        except Exception:
            await self._discard_blob(image, reason="record_create_failed")
            raise

        logger.info(
            "record_created",
            record_id=record.id,
            user_name=record.user_name,
            amount=str(record.amount),
        )
        return record

    async def update_record(
        self,
        record_id: str,
        fields: FieldsInput,
        bill: Optional[BillFile] = None,
    ) -> FinanceRecord:
        """
        Update a record, optionally replacing its bill.

        When a new bill is supplied the old blob is deleted once the
        record points at the new one.

        Raises:
            NotFoundError: If there is no such record
            RecordValidationError: If a field is invalid
            BlobStoreError: If the new upload is rejected or fails
        """
        validated = self._records.validate_fields(fields)
        existing = await self.get_record(record_id)

        new_image = None
        if bill is not None:
            new_image = await self._blobs.store(bill.content, bill.filename, bill.content_type)

        try:
            updated = await self._records.update(record_id, validated, new_image)
        except Exception:
            if new_image is not None:
                await self._discard_blob(new_image, reason="record_update_failed")
            raise

        if updated is None:
            # Deleted between the lookup and the write
            if new_image is not None:
                await self._discard_blob(new_image, reason="record_vanished")
            raise NotFoundError(f"Record not found: {record_id}")

        if new_image is not None:
            await self._discard_blob(existing.bill_image, reason="bill_replaced")

        logger.info("record_updated", record_id=record_id, bill_replaced=new_image is not None)
        return updated

    async def delete_record(self, record_id: str) -> None:
        """
        Delete a record and its bill.

        Raises:
            NotFoundError: If there is no such record
        """
        record = await self.get_record(record_id)
        await self._discard_blob(record.bill_image, reason="record_deleted")
        if not await self._records.delete_by_id(record_id):
            raise NotFoundError(f"Record not found: {record_id}")
        logger.info("record_deleted", record_id=record_id)

    async def delete_records(self, record_ids: list[str]) -> BulkDeleteResult:
        """
        Delete several records independently and concurrently.

        There is no transaction. Each id ends up in exactly one of
        deleted / not_found / failed.
        """
        unique_ids = list(dict.fromkeys(record_ids))
        outcomes = await asyncio.gather(
            *(self.delete_record(record_id) for record_id in unique_ids),
            return_exceptions=True,
        )

        result = BulkDeleteResult()
        for record_id, outcome in zip(unique_ids, outcomes):
            if outcome is None:
                result.deleted.append(record_id)
            elif isinstance(outcome, NotFoundError):
                result.not_found.append(record_id)
            elif isinstance(outcome, Exception):
                result.failed[record_id] = str(outcome)
            else:
                raise outcome

        if result.failed:
            logger.error(
                "bulk_delete_partial_failure",
                deleted=len(result.deleted),
                failed=list(result.failed),
            )
        else:
            logger.info("bulk_delete_completed", deleted=len(result.deleted))
        return result

    async def ledger_view(self, filter_text: str = "") -> LedgerView:
        """Build the ledger from a fresh snapshot of the store."""
        records = await self._records.list_all()
        return build_ledger_view(records, filter_text)


def create_app_components(
    use_storage: bool = True,
    blob_store: Optional[BlobStoreInterface] = None,
) -> tuple[RecordService, Optional[GoogleSheetsClient]]:
    """
    Factory function to create the application components.

    Args:
        use_storage: Whether to use Google Sheets storage.
                    Falls back to in-memory storage when False or
                    when Sheets is not configured.
        blob_store: Override the blob store (Cloudinary by default).

    Returns:
        (record_service, sheets_client)
    """
    sheets_client = None
    record_store: RecordStoreInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            record_store = GoogleSheetsRecordStore(sheets_client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            record_store = InMemoryRecordStore()
    else:
        record_store = InMemoryRecordStore()

    service = RecordService(
        record_store=record_store,
        blob_store=blob_store or CloudinaryBlobStore(),
    )
    return service, sheets_client
