"""
Storage Services Package

Provides the abstract record store interface and its implementations.
Google Sheets is the persistent backend; the in-memory store backs the
tests and unconfigured installs.
"""

from sambhav.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    RecordStoreInterface,
    RecordValidationError,
    StorageError,
)
from sambhav.services.storage.memory import InMemoryRecordStore
from sambhav.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)

__all__ = [
    # Interface
    "RecordStoreInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "RecordValidationError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryRecordStore",
]
