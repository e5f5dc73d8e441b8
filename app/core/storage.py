"""
Photo storage.

The declaration flow only needs a URL back for an uploaded image; where the
bytes end up (local disk, S3 or a Supabase Storage bucket) is chosen with
``STORAGE_BACKEND``.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
import logging
import os
import uuid

import aiofiles

from app.core.config import Settings, settings as default_settings
from app.core.errors import DependencyError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def generate_file_key(filename: str, user_id: str) -> str:
    """
    Generate a unique key for a stored file.
    Format: {user_id}/{year}/{month}/{uuid}{ext}
    """
    now = datetime.now()
    ext = os.path.splitext(filename or "")[1].lower()
    return f"{user_id}/{now.year}/{now.month:02d}/{uuid.uuid4().hex}{ext}"


def validate_image(filename: Optional[str], content_type: Optional[str], size: int, max_bytes: int) -> None:
    """
    Only images are accepted, up to ``max_bytes``.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in ALLOWED_EXTENSIONS or content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Only jpeg, png, gif and webp images are allowed", field="photo")
    if size == 0:
        raise ValidationError("Uploaded file is empty", field="photo")
    if size > max_bytes:
        limit = f"{max_bytes // (1024 * 1024)} MB" if max_bytes >= 1024 * 1024 else f"{max_bytes} bytes"
        raise ValidationError(f"File is larger than {limit}", field="photo")


class BlobStorage(ABC):
    @abstractmethod
    async def save(self, data: bytes, key: str, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its public URL."""


class LocalStorage(BlobStorage):
    """Files on disk, served by the app under ``/uploads``."""

    def __init__(self, upload_dir: str, public_base_url: str):
        self.upload_dir = upload_dir
        self.public_base_url = public_base_url.rstrip("/")

    async def save(self, data: bytes, key: str, content_type: str) -> str:
        file_path = os.path.join(self.upload_dir, *key.split("/"))
        try:
            os.makedirs(os.path.dirname(file_path), exist_ok=True)
            async with aiofiles.open(file_path, "wb") as out_file:
                await out_file.write(data)
        except OSError as e:
            logger.error(f"Could not write upload {key}: {e}")
            raise DependencyError("Could not store the uploaded file") from e
        return f"{self.public_base_url}/uploads/{key}"


def build_blob_storage(settings: Optional[Settings] = None) -> BlobStorage:
    settings = settings or default_settings
    if settings.STORAGE_BACKEND == "s3":
        from app.core.s3 import S3Storage
        return S3Storage(
            bucket_name=settings.S3_BUCKET_NAME,
            region=settings.AWS_REGION,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        )
    if settings.STORAGE_BACKEND == "supabase":
        from app.core.supabase import SupabaseStorage
        return SupabaseStorage(
            bucket=settings.SUPABASE_STORAGE_BUCKET,
            url=settings.SUPABASE_URL,
            key=settings.SUPABASE_SERVICE_ROLE_KEY,
        )
    return LocalStorage(settings.UPLOAD_DIR, settings.PUBLIC_BASE_URL)
