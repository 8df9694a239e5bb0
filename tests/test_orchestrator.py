"""
Integration tests for the record flows.

Records live in InMemoryRecordStore and bills in FakeBlobStore, so the
tests can check both sides of every create/update/delete.
"""

import asyncio
from decimal import Decimal

import pytest

from conftest import FakeBlobStore, make_record, png_bytes
from sambhav.orchestrator import BillFile, RecordService, create_app_components
from sambhav.services.image import BlobTooLargeError, UnsupportedFormatError
from sambhav.services.storage import (
    InMemoryRecordStore,
    NotFoundError,
    RecordValidationError,
    StorageError,
)

FIELDS = {
    "user_name": "Raj",
    "mobile_number": "9876543210",
    "amount": "500",
    "location": "Pune",
}


def bill(name: str = "bill.png") -> BillFile:
    return BillFile(content=png_bytes(), filename=name, content_type="image/png")


class FailingWriteStore(InMemoryRecordStore):
    """Accepts reads, fails every write."""

    async def create(self, fields, bill_image):
        raise StorageError("sheet is read-only")

    async def update(self, record_id, fields, bill_image=None):
        raise StorageError("sheet is read-only")


class FlakyDeleteStore(InMemoryRecordStore):
    """Fails to delete one particular record."""

    def __init__(self, records, broken_id):
        super().__init__(records)
        self.broken_id = broken_id

    async def delete_by_id(self, record_id):
        if record_id == self.broken_id:
            raise StorageError("row is locked")
        return await super().delete_by_id(record_id)


class TestCreateRecord:
    """Create: file -> blob store -> record."""

    def test_create(self, service, blob_store):
        record = asyncio.run(service.create_record(FIELDS, bill()))

        assert record.user_name == "Raj"
        assert record.amount == Decimal("500")
        assert record.bill_image.storage_id in blob_store.files
        assert asyncio.run(service.list_records()) == [record]

    def test_bill_is_required(self, service, blob_store):
        with pytest.raises(RecordValidationError, match="Bill image is required"):
            asyncio.run(service.create_record(FIELDS, None))
        assert blob_store.files == {}

    def test_invalid_fields_upload_nothing(self, service, blob_store):
        """Test that a bad form never leaves a file behind."""
        with pytest.raises(RecordValidationError, match="amount"):
            asyncio.run(service.create_record({**FIELDS, "amount": "-10"}, bill()))
        assert blob_store.files == {}
        assert asyncio.run(service.list_records()) == []

    def test_rejected_file_creates_nothing(self, service):
        with pytest.raises(UnsupportedFormatError):
            asyncio.run(service.create_record(FIELDS, bill("bill.exe")))
        assert asyncio.run(service.list_records()) == []

    def test_oversized_file_creates_nothing(self, record_store):
        service = RecordService(record_store, FakeBlobStore(max_size_bytes=10))
        with pytest.raises(BlobTooLargeError):
            asyncio.run(service.create_record(FIELDS, bill()))
        assert asyncio.run(service.list_records()) == []

    def test_failed_write_removes_upload(self, blob_store):
        service = RecordService(FailingWriteStore(), blob_store)

        with pytest.raises(StorageError):
            asyncio.run(service.create_record(FIELDS, bill()))

        assert blob_store.files == {}
        assert blob_store.deleted == ["sambhav_bills/bill-1"]


class TestUpdateRecord:
    """Update: optional new file -> record -> old blob removed."""

    def test_update_fields_only(self, service, blob_store):
        record = asyncio.run(service.create_record(FIELDS, bill()))

        updated = asyncio.run(service.update_record(record.id, {**FIELDS, "amount": "750"}))

        assert updated.amount == Decimal("750")
        assert updated.bill_image == record.bill_image
        assert updated.created_at == record.created_at
        assert blob_store.deleted == []

    def test_new_bill_replaces_old_blob(self, service, blob_store):
        record = asyncio.run(service.create_record(FIELDS, bill()))
        old_id = record.bill_image.storage_id

        updated = asyncio.run(service.update_record(record.id, FIELDS, bill("new.png")))

        assert updated.bill_image.storage_id != old_id
        assert blob_store.deleted == [old_id]
        assert list(blob_store.files) == [updated.bill_image.storage_id]

    def test_missing_record(self, service, blob_store):
        with pytest.raises(NotFoundError):
            asyncio.run(service.update_record("nope", FIELDS, bill()))
        assert blob_store.files == {}

    def test_invalid_fields(self, service):
        record = asyncio.run(service.create_record(FIELDS, bill()))
        with pytest.raises(RecordValidationError):
            asyncio.run(service.update_record(record.id, {**FIELDS, "user_name": ""}))

    def test_failed_write_keeps_old_bill(self, blob_store):
        existing = make_record()
        blob_store.files[existing.bill_image.storage_id] = b"old"
        service = RecordService(FailingWriteStore([existing]), blob_store)

        with pytest.raises(StorageError):
            asyncio.run(service.update_record(existing.id, FIELDS, bill()))

        assert list(blob_store.files) == [existing.bill_image.storage_id]


class TestDeleteRecord:
    """Delete: blob removed, then record removed."""

    def test_delete(self, service, blob_store):
        record = asyncio.run(service.create_record(FIELDS, bill()))

        asyncio.run(service.delete_record(record.id))

        assert asyncio.run(service.list_records()) == []
        assert blob_store.files == {}

    def test_delete_missing(self, service):
        with pytest.raises(NotFoundError):
            asyncio.run(service.delete_record("nope"))

    def test_blob_failure_does_not_block_delete(self):
        """Test that an unreachable blob store leaves an orphan, not a stuck record."""
        blobs = FakeBlobStore(fail_deletes=True)
        record = make_record()
        store = InMemoryRecordStore([record])
        service = RecordService(store, blobs)

        asyncio.run(service.delete_record(record.id))

        assert asyncio.run(store.list_all()) == []


class TestBulkDelete:
    """Deleting every entry of one client."""

    def test_delete_all_for_client(self, blob_store):
        records = [
            make_record("Raj", minutes=1, record_id="r1"),
            make_record("Asha", minutes=2, record_id="a1"),
            make_record("raj", minutes=3, record_id="r2"),
        ]
        service = RecordService(InMemoryRecordStore(records), blob_store)
        raj_row = next(
            row for row in asyncio.run(service.ledger_view()).rows
            if row.user_name.lower() == "raj"
        )

        result = asyncio.run(service.delete_records(raj_row.record_ids))

        assert result.ok
        assert sorted(result.deleted) == ["r1", "r2"]
        view = asyncio.run(service.ledger_view())
        assert [row.user_name for row in view.rows] == ["Asha"]
        assert sorted(blob_store.deleted) == ["sambhav_bills/r1", "sambhav_bills/r2"]

    def test_partial_failure_is_reported_per_id(self, blob_store):
        records = [make_record("Raj", minutes=i, record_id=f"r{i}") for i in range(3)]
        service = RecordService(FlakyDeleteStore(records, broken_id="r1"), blob_store)

        result = asyncio.run(service.delete_records(["r0", "r1", "r2", "missing"]))

        assert not result.ok
        assert sorted(result.deleted) == ["r0", "r2"]
        assert result.not_found == ["missing"]
        assert list(result.failed) == ["r1"]
        assert "row is locked" in result.failed["r1"]
        assert [r.id for r in asyncio.run(service.list_records())] == ["r1"]

    def test_duplicate_ids_are_deleted_once(self, blob_store):
        service = RecordService(InMemoryRecordStore([make_record(record_id="r1")]), blob_store)
        result = asyncio.run(service.delete_records(["r1", "r1"]))
        assert result.deleted == ["r1"]
        assert result.not_found == []

    def test_empty_list(self, service):
        result = asyncio.run(service.delete_records([]))
        assert result.ok and result.deleted == []


class TestLedgerView:
    """The ledger always reflects the current store."""

    def test_ledger_follows_changes(self, service):
        first = asyncio.run(service.create_record(FIELDS, bill()))
        asyncio.run(service.create_record({**FIELDS, "user_name": "raj", "amount": "300"}, bill()))

        view = asyncio.run(service.ledger_view())
        assert view.client_count == 1
        assert view.grand_total == Decimal("800")

        asyncio.run(service.delete_record(first.id))
        view = asyncio.run(service.ledger_view())
        assert view.grand_total == Decimal("300")
        assert view.rows[0].user_name == "raj"

    def test_search(self, service):
        asyncio.run(service.create_record(FIELDS, bill()))
        asyncio.run(service.create_record({**FIELDS, "user_name": "Asha", "amount": "1500"}, bill()))
        asyncio.run(service.create_record({**FIELDS, "user_name": "Bala", "amount": "250"}, bill()))

        view = asyncio.run(service.ledger_view("500"))

        assert sorted(row.user_name for row in view.rows) == ["Asha", "Raj"]
        assert view.entry_count == 3


class TestCreateAppComponents:

    def test_falls_back_to_memory_without_sheets(self, blob_store):
        service, sheets_client = create_app_components(use_storage=False, blob_store=blob_store)
        assert sheets_client is None
        assert service.blob_store is blob_store
        assert asyncio.run(service.list_records()) == []
