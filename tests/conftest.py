"""
Shared fixtures.

No test talks to Cloudinary or Google Sheets: records live in the
in-memory store and bills go to FakeBlobStore.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from io import BytesIO
from typing import Optional

import pytest
from PIL import Image

from sambhav.auth import CredentialGate
from sambhav.config import get_settings
from sambhav.models.record import BillImageRef, BillUpload, FinanceRecord
from sambhav.orchestrator import RecordService
from sambhav.services.image import BlobDeleteError, BlobStoreInterface
from sambhav.services.storage import InMemoryRecordStore

BASE_TIME = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


class FakeBlobStore(BlobStoreInterface):
    """Blob store that keeps files in a dict and never touches the network."""

    def __init__(self, fail_deletes: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.files: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_deletes = fail_deletes
        self._counter = 0

    async def store(
        self,
        file_bytes: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> BillImageRef:
        self.validate_upload(
            BillUpload(filename=filename, content_type=content_type, size_bytes=len(file_bytes))
        )
        self._counter += 1
        storage_id = f"sambhav_bills/bill-{self._counter}"
        self.files[storage_id] = file_bytes
        return BillImageRef(url=f"https://cdn.test/{storage_id}.png", storage_id=storage_id)

    async def delete(self, storage_id: str) -> bool:
        if self.fail_deletes:
            raise BlobDeleteError("blob store unreachable")
        self.deleted.append(storage_id)
        return self.files.pop(storage_id, None) is not None


def make_record(
    user_name: str = "Raj",
    amount="500",
    created_at: Optional[datetime] = None,
    mobile_number: str = "9876543210",
    location: str = "Pune",
    record_id: Optional[str] = None,
    minutes: int = 0,
) -> FinanceRecord:
    """Build a valid record; ``minutes`` offsets created_at from BASE_TIME."""
    created = created_at or BASE_TIME + timedelta(minutes=minutes)
    rid = record_id or f"rec-{user_name.lower()}-{minutes}-{amount}"
    return FinanceRecord(
        id=rid,
        user_name=user_name,
        mobile_number=mobile_number,
        amount=Decimal(str(amount)),
        location=location,
        bill_image=BillImageRef(
            url=f"https://cdn.test/{rid}.png",
            storage_id=f"sambhav_bills/{rid}",
        ),
        created_at=created,
        updated_at=created,
    )


def png_bytes(size: tuple[int, int] = (40, 30)) -> bytes:
    """A small, real PNG."""
    buffer = BytesIO()
    Image.new("RGB", size, color=(200, 200, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def _fresh_settings(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Keep settings hermetic: no .env from the working tree."""
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def service(record_store, blob_store) -> RecordService:
    return RecordService(record_store=record_store, blob_store=blob_store)


@pytest.fixture
def gate() -> CredentialGate:
    return CredentialGate(
        username="admin",
        password="admin123",
        secret_key="test-secret-key-0123456789",
    )
