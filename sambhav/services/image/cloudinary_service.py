"""
Bill Storage using Cloudinary

DESIGN DECISION: We use Cloudinary because:
1. Handles images and PDFs behind one API
2. Resizes on upload, so huge phone photos don't bloat the ledger
3. Reliable cloud infrastructure
4. Free tier sufficient for a single small business

This service handles:
1. Size/format checks before upload
2. Checking that image uploads really decode as images
3. Upload with a size-limit transformation
4. Deleting files when their record goes away
"""

import asyncio
import hashlib
from io import BytesIO
from typing import Optional
from uuid import uuid4

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from PIL import Image, UnidentifiedImageError
from tenacity import retry, stop_after_attempt, wait_exponential

from sambhav.config import get_settings
from sambhav.config.settings import CloudinarySettings
from sambhav.models.record import BillImageRef, BillUpload
from sambhav.services.image.interface import (
    BlobDeleteError,
    BlobStoreInterface,
    BlobUploadError,
    UnsupportedFormatError,
)


class CloudinaryBlobStore(BlobStoreInterface):
    """
    Blob store backed by Cloudinary.

    Flow:
    1. Validate size and extension
    2. Verify raster images with Pillow (PDFs are passed through)
    3. Upload into the configured folder, limited to max_dimension
    4. Return the secure URL and public ID
    """

    def __init__(
        self,
        settings: Optional[CloudinarySettings] = None,
        max_size_bytes: Optional[int] = None,
        allowed_formats: Optional[list[str]] = None,
    ):
        super().__init__(max_size_bytes, allowed_formats)
        self._settings = settings or get_settings().cloudinary
        self._configured = False

    def _configure(self):
        """Configure Cloudinary SDK."""
        if not self._configured:
            cloudinary.config(
                cloud_name=self._settings.cloud_name,
                api_key=self._settings.api_key,
                api_secret=self._settings.api_secret,
                secure=True,
            )
            self._configured = True

    def _generate_public_id(self, filename: str) -> str:
        """
        Generate a unique public ID for Cloudinary.

        Format: {random}_{filename_hash}
        """
        filename_hash = hashlib.md5(filename.encode()).hexdigest()[:8]
        return f"{uuid4().hex}_{filename_hash}"

    def _verify_image(self, file_bytes: bytes, upload: BillUpload) -> None:
        """
        Make sure an image upload is really an image.

        A renamed text file with a .png extension is rejected here
        instead of failing later inside Cloudinary.
        """
        if upload.is_pdf:
            if not file_bytes.startswith(b"%PDF"):
                raise UnsupportedFormatError("File is not a valid PDF")
            return
        try:
            with Image.open(BytesIO(file_bytes)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise UnsupportedFormatError(f"File is not a readable image: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _upload(self, file_bytes: bytes, public_id: str) -> dict:
        self._configure()
        return cloudinary.uploader.upload(
            file_bytes,
            public_id=public_id,
            folder=self._settings.folder,
            resource_type="image",
            allowed_formats=self.allowed_formats,
            transformation=[
                {
                    "width": self._settings.max_dimension,
                    "height": self._settings.max_dimension,
                    "crop": "limit",
                },
            ],
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _destroy(self, storage_id: str) -> dict:
        self._configure()
        return cloudinary.uploader.destroy(storage_id, resource_type="image")

    async def store(
        self,
        file_bytes: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> BillImageRef:
        """Validate and upload a bill file."""
        upload = BillUpload(
            filename=filename,
            content_type=content_type,
            size_bytes=len(file_bytes),
        )
        self.validate_upload(upload)
        self._verify_image(file_bytes, upload)

        try:
            result = await asyncio.to_thread(
                self._upload, file_bytes, self._generate_public_id(filename)
            )
        except cloudinary.exceptions.Error as e:
            raise BlobUploadError(f"Cloudinary error: {e}")
        except Exception as e:
            raise BlobUploadError(f"Failed to upload bill: {e}")

        url = result.get("secure_url", result.get("url", ""))
        storage_id = result.get("public_id", "")
        if not url or not storage_id:
            raise BlobUploadError("No URL returned from Cloudinary")

        return BillImageRef(url=url, storage_id=storage_id)

    async def delete(self, storage_id: str) -> bool:
        """Delete a bill file; 'not found' is reported as False."""
        try:
            result = await asyncio.to_thread(self._destroy, storage_id)
        except cloudinary.exceptions.Error as e:
            raise BlobDeleteError(f"Cloudinary error: {e}")
        except Exception as e:
            raise BlobDeleteError(f"Failed to delete bill {storage_id}: {e}")
        return result.get("result") == "ok"
