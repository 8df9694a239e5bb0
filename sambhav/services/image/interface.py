"""
Abstract Blob Store Interface

Bills are kept outside the record store. The blob store takes the raw
file, hands back a URL plus a storage ID, and can delete by that ID.
"""

from abc import ABC, abstractmethod
from typing import Optional

from sambhav.config import get_settings
from sambhav.models.record import BillImageRef, BillUpload


class BlobStoreError(Exception):
    """Base exception for blob store errors."""
    pass


class BlobTooLargeError(BlobStoreError):
    """Upload is over the size ceiling."""
    pass


class UnsupportedFormatError(BlobStoreError):
    """Upload is not one of the accepted formats (or is not what it claims)."""
    pass


class BlobUploadError(BlobStoreError):
    """The blob store could not be reached or refused the upload."""
    pass


class BlobDeleteError(BlobStoreError):
    """The blob store could not delete a file."""
    pass


class BlobStoreInterface(ABC):
    """
    Abstract interface for bill file storage.

    Size and format checks are shared by every implementation and run
    before anything leaves the process.
    """

    def __init__(
        self,
        max_size_bytes: Optional[int] = None,
        allowed_formats: Optional[list[str]] = None,
    ):
        app_settings = get_settings().app
        self._max_size_bytes = max_size_bytes or app_settings.max_upload_size_bytes
        self._allowed_formats = allowed_formats or app_settings.supported_formats_list

    @property
    def allowed_formats(self) -> list[str]:
        return list(self._allowed_formats)

    @property
    def max_size_bytes(self) -> int:
        return self._max_size_bytes

    def check_size(self, size_bytes: int) -> None:
        """
        Raises:
            BlobTooLargeError: If size_bytes is over the ceiling
        """
        if size_bytes > self._max_size_bytes:
            limit_mb = self._max_size_bytes / (1024 * 1024)
            raise BlobTooLargeError(
                f"File is {size_bytes} bytes; the limit is {limit_mb:g} MB"
            )

    def validate_upload(self, upload: BillUpload) -> None:
        """
        Reject oversized files and disallowed formats.

        Raises:
            BlobTooLargeError: If the file is over the size ceiling
            UnsupportedFormatError: If the extension is not allowed
        """
        if upload.size_bytes == 0:
            raise UnsupportedFormatError("Uploaded file is empty")
        self.check_size(upload.size_bytes)
        if upload.extension not in self._allowed_formats:
            raise UnsupportedFormatError(
                f"Unsupported file type: '{upload.extension or upload.filename}'. "
                f"Allowed: {', '.join(self._allowed_formats)}"
            )

    @abstractmethod
    async def store(
        self,
        file_bytes: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> BillImageRef:
        """
        Upload a bill file.

        Returns:
            BillImageRef with the public URL and storage ID

        Raises:
            BlobTooLargeError: If the file is too big
            UnsupportedFormatError: If the format is not allowed
            BlobUploadError: If the upload itself fails
        """
        pass

    @abstractmethod
    async def delete(self, storage_id: str) -> bool:
        """
        Delete a stored file.

        Returns:
            True if deleted, False if the store had no such file

        Raises:
            BlobDeleteError: If the store could not be reached
        """
        pass
