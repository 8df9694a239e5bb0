"""Bill file (blob) storage package."""

from sambhav.services.image.interface import (
    BlobDeleteError,
    BlobStoreError,
    BlobStoreInterface,
    BlobTooLargeError,
    BlobUploadError,
    UnsupportedFormatError,
)
from sambhav.services.image.cloudinary_service import CloudinaryBlobStore

__all__ = [
    "BlobDeleteError",
    "BlobStoreError",
    "BlobStoreInterface",
    "BlobTooLargeError",
    "BlobUploadError",
    "CloudinaryBlobStore",
    "UnsupportedFormatError",
]
