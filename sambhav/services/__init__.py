"""Services package."""

from sambhav.services.image import (
    BlobDeleteError,
    BlobStoreError,
    BlobStoreInterface,
    BlobTooLargeError,
    BlobUploadError,
    CloudinaryBlobStore,
    UnsupportedFormatError,
)
from sambhav.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    RecordStoreInterface,
    RecordValidationError,
    StorageError,
)

__all__ = [
    # Blob services
    "BlobDeleteError",
    "BlobStoreError",
    "BlobStoreInterface",
    "BlobTooLargeError",
    "BlobUploadError",
    "CloudinaryBlobStore",
    "UnsupportedFormatError",
    # Storage services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryRecordStore",
    "NotFoundError",
    "RecordStoreInterface",
    "RecordValidationError",
    "StorageError",
]
