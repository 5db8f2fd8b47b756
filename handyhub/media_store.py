"""
Media store for worker documents.
Uploads identity documents and certifications to Cloudflare R2 and deletes
replaced objects.
"""

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from .config import (
    MAX_UPLOAD_SIZE_BYTES,
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_URL,
    R2_SECRET_ACCESS_KEY,
)

logger = logging.getLogger(__name__)

WORKER_DOCUMENTS_FOLDER = "handyhub/worker-documents"
ALLOWED_DOCUMENT_MIME_TYPES = ["image/jpeg", "image/jpg", "image/png", "application/pdf"]
ALLOWED_DOCUMENT_EXTENSIONS = ["jpg", "jpeg", "png", "pdf"]


class MediaStoreError(Exception):
    """Raised when the storage backend rejects an upload or delete"""


@dataclass(frozen=True)
class StoredMedia:
    url: str
    public_id: str


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def validate_document_file(filename: str, size_bytes: int, mime_type: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a worker document before upload.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if size_bytes > MAX_UPLOAD_SIZE_BYTES:
        return False, f"File size exceeds maximum of {MAX_UPLOAD_SIZE_BYTES / (1024 * 1024):.0f}MB"

    if mime_type not in ALLOWED_DOCUMENT_MIME_TYPES:
        return False, "Only JPEG, PNG, and PDF files are allowed"

    ext = filename.lower().rsplit(".", 1)[-1] if "." in filename else ""
    if ext not in ALLOWED_DOCUMENT_EXTENSIONS:
        return False, f"File extension not allowed. Use: {', '.join(ALLOWED_DOCUMENT_EXTENSIONS)}"

    return True, None


def generate_document_key(folder: str, filename: str) -> str:
    """
    Generate a unique object key.

    Format: {folder}/{timestamp}_{hash}_{filename}
    """
    timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S_%f")
    file_hash = hashlib.md5(f"{folder}{timestamp}{filename}".encode()).hexdigest()[:8]
    safe_filename = "".join(c for c in filename if c.isalnum() or c in "._-")[:100]
    return f"{folder}/{timestamp}_{file_hash}_{safe_filename}"


class MediaStore:
    """R2-backed object storage returning a public URL and an opaque deletion id"""

    def __init__(self, client=None, bucket: str = R2_BUCKET_NAME, public_url: str = R2_PUBLIC_URL):
        self._client = client
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")

    @property
    def client(self):
        if self._client is None:
            self._client = get_r2_client()
        return self._client

    def upload(
        self,
        data: bytes,
        filename: str,
        folder: str = WORKER_DOCUMENTS_FOLDER,
        content_type: Optional[str] = None,
    ) -> StoredMedia:
        key = generate_document_key(folder, filename)
        extra_args = {"ContentType": content_type} if content_type else {}
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, **extra_args)
        except ClientError as e:
            logger.error(f"❌ R2 upload failed for {key}: {e}")
            raise MediaStoreError("Failed to upload file") from e
        logger.info(f"✅ Uploaded {filename} to R2 as {key} ({len(data)} bytes)")
        return StoredMedia(url=f"{self.public_url}/{key}", public_id=key)

    def delete(self, public_id: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=public_id)
            logger.info(f"🗑️ Deleted R2 object {public_id}")
        except ClientError as e:
            logger.error(f"❌ R2 delete failed for {public_id}: {e}")
            raise MediaStoreError("Failed to delete file") from e


def get_media_store() -> MediaStore:
    return MediaStore()
