"""
Object storage for task forms.

Files live in an S3 bucket under forms/ and filled-forms/. Downloads never
stream through the API: callers get a signed URL that expires after an hour.
"""

import asyncio
import logging
import os
import secrets
import time
from typing import Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import status

from county_portal.core.config import Settings
from county_portal.errors import UploadError

logger = logging.getLogger(__name__)

FORM_FOLDER = "forms"
FILLED_FORM_FOLDER = "filled-forms"

# Extension -> MIME types accepted for it
ALLOWED_UPLOAD_TYPES: Dict[str, frozenset] = {
    "pdf": frozenset({"application/pdf"}),
    "doc": frozenset({"application/msword"}),
    "docx": frozenset({"application/vnd.openxmlformats-officedocument.wordprocessingml.document"}),
    "xls": frozenset({"application/vnd.ms-excel"}),
    "xlsx": frozenset({"application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"}),
    "txt": frozenset({"text/plain"}),
    "jpg": frozenset({"image/jpeg"}),
    "jpeg": frozenset({"image/jpeg"}),
    "png": frozenset({"image/png"}),
}

UPLOAD_TYPES_MESSAGE = "Only PDF, Word, Excel, images, and text files are allowed"


def _format_limit(max_bytes: int) -> str:
    if max_bytes >= 1024 * 1024:
        return f"{max_bytes // (1024 * 1024)}MB"
    return f"{max_bytes} byte"


def validate_upload(
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    max_bytes: int,
) -> None:
    """
    Reject files with a disallowed extension/MIME pair or above max_bytes.

    Both the extension and the declared MIME type must belong to the same
    allowed family.
    """
    if not filename:
        raise UploadError("No file uploaded")
    if size <= 0:
        raise UploadError("Uploaded file is empty")
    if size > max_bytes:
        raise UploadError(
            f"File exceeds the {_format_limit(max_bytes)} limit",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )

    extension = os.path.splitext(filename)[1].lower().lstrip(".")
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime not in ALLOWED_UPLOAD_TYPES.get(extension, frozenset()):
        raise UploadError(UPLOAD_TYPES_MESSAGE, details={"filename": filename, "content_type": mime})


def build_storage_key(folder: str, original_name: str) -> str:
    """forms/<millis>-<random>-<name>, with path separators stripped from the name."""
    safe_name = os.path.basename(original_name.replace("\\", "/")) or "upload"
    return f"{folder}/{int(time.time() * 1000)}-{secrets.randbelow(10**9)}-{safe_name}"


class FileStorage:
    """Interface over the object store used for task files."""

    @property
    def configured(self) -> bool:
        return True

    async def put(self, key: str, data: bytes, content_type: str, metadata: Dict[str, str]) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError

    async def signed_url(self, key: str, expires_seconds: int) -> Optional[str]:
        raise NotImplementedError


class S3FileStorage(FileStorage):
    """S3-backed storage. The boto3 client is blocking, so calls run in a thread."""

    def __init__(
        self,
        bucket: Optional[str],
        region: str = "us-east-1",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
    ):
        self.bucket = bucket
        self._client = None
        if bucket and access_key_id and secret_access_key:
            self._client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
            )
            logger.info("S3 storage configured for bucket %s", bucket)

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3FileStorage":
        return cls(
            bucket=settings.AWS_S3_BUCKET,
            region=settings.AWS_REGION,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        )

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def put(self, key: str, data: bytes, content_type: str, metadata: Dict[str, str]) -> None:
        if not self.configured:
            raise UploadError(
                "S3 storage not configured. Please check AWS credentials.",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata=metadata,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("S3 upload failed for %s", key)
            raise UploadError(
                "File upload failed. Please check S3 configuration.",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            ) from exc

    async def delete(self, key: str) -> None:
        if not self.configured or not key:
            return
        await asyncio.to_thread(self._client.delete_object, Bucket=self.bucket, Key=key)
        logger.info("Deleted file from S3: %s", key)

    async def signed_url(self, key: str, expires_seconds: int) -> Optional[str]:
        if not self.configured or not key:
            return None
        try:
            return await asyncio.to_thread(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_seconds,
            )
        except (BotoCoreError, ClientError):
            logger.exception("Error generating signed URL for %s", key)
            return None
