"""
In-Memory Record Storage

Used by the tests and as the fallback when Google Sheets is not
configured. Data lives for the life of the process only.
"""

from typing import Optional

from sambhav.models.record import BillImageRef, FinanceRecord
from sambhav.services.storage.interface import FieldsInput, RecordStoreInterface


class InMemoryRecordStore(RecordStoreInterface):
    """Dict-backed record store."""

    def __init__(self, records: Optional[list[FinanceRecord]] = None):
        self._records: dict[str, FinanceRecord] = {}
        for record in records or []:
            self._records[record.id] = record

    async def list_all(self) -> list[FinanceRecord]:
        return sorted(
            self._records.values(),
            key=lambda r: r.created_at,
            reverse=True,
        )

    async def get_by_id(self, record_id: str) -> Optional[FinanceRecord]:
        return self._records.get(record_id)

    async def create(
        self,
        fields: FieldsInput,
        bill_image: Optional[BillImageRef],
    ) -> FinanceRecord:
        validated = self.validate_fields(fields)
        image = self.require_image(bill_image)
        record = FinanceRecord(bill_image=image, **validated.model_dump())
        self._records[record.id] = record
        return record

    async def update(
        self,
        record_id: str,
        fields: FieldsInput,
        bill_image: Optional[BillImageRef] = None,
    ) -> Optional[FinanceRecord]:
        validated = self.validate_fields(fields)
        existing = self._records.get(record_id)
        if existing is None:
            return None
        updated = existing.with_changes(validated, bill_image)
        self._records[record_id] = updated
        return updated

    async def delete_by_id(self, record_id: str) -> bool:
        return self._records.pop(record_id, None) is not None
