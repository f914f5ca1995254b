"""
Object storage for uploaded documents and photos.
Stores bytes in Cloudflare R2 (S3 compatible) and returns a URL for them.
"""

import logging
import secrets
import string
import time
import uuid
from typing import Optional
from urllib.parse import urlparse

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import (
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_URL,
    R2_SECRET_ACCESS_KEY,
)
from ..errors import UploadError
from ..shared.validators import validate_filename

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE_BYTES = 5 * 1024 * 1024  # 5MB
ALLOWED_DOCUMENT_TYPES = ["image/jpeg", "image/png", "image/webp", "application/pdf"]
ALLOWED_PHOTO_TYPES = ["image/jpeg", "image/png", "image/webp"]

# Presigned URL lifetime when the bucket has no public domain (7 days, the S3 maximum)
PRESIGNED_URL_EXPIRATION = 7 * 24 * 3600


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


def validate_upload(
    filename: Optional[str],
    content_type: Optional[str],
    size_bytes: int,
    allowed_types: list[str],
    max_size: int = MAX_UPLOAD_SIZE_BYTES,
) -> None:
    """
    Raises:
        UploadError: missing file, disallowed type, oversize or unsafe filename
    """
    if not filename or size_bytes == 0:
        raise UploadError("No file provided")

    if content_type not in allowed_types:
        readable = ", ".join(t.split("/")[-1].upper() for t in allowed_types)
        raise UploadError(f"Invalid file type. Only {readable} are allowed.")

    if size_bytes > max_size:
        raise UploadError(
            f"File size exceeds {max_size // (1024 * 1024)}MB limit. "
            f"Your file is {size_bytes / (1024 * 1024):.2f}MB."
        )

    try:
        validate_filename(filename)
    except ValueError as e:
        raise UploadError(str(e)) from e


def file_extension(filename: str, default: str = "bin") -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else default


def document_key(user_id: str, filename: str) -> str:
    """<user id>/<epoch millis>-<random>.<ext>"""
    random_part = "".join(secrets.choice(string.ascii_lowercase + string.digits) for _ in range(13))
    return f"{user_id}/{int(time.time() * 1000)}-{random_part}.{file_extension(filename)}"


def photo_key(user_id: str, filename: str) -> str:
    return f"profile-photos/{user_id}/{uuid.uuid4()}.{file_extension(filename, 'png')}"


class ObjectStorage:
    """store(bytes, content_type, key) -> URL"""

    def __init__(self, client=None, bucket: str = R2_BUCKET_NAME, public_base_url: Optional[str] = R2_PUBLIC_URL):
        self._client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    @property
    def client(self):
        if self._client is None:
            self._client = get_r2_client()
        return self._client

    def store(self, data: bytes, content_type: str, key: str) -> str:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ Upload of {key} failed: {e}")
            raise UploadError("Failed to upload document", status_code=502) from e
        logger.info(f"✅ Stored {key} ({len(data)} bytes, {content_type})")
        return self.url_for(key)

    def url_for(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key, "ResponseContentDisposition": "inline"},
                ExpiresIn=PRESIGNED_URL_EXPIRATION,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ Failed to generate presigned URL for key {key}: {e}")
            raise UploadError("Failed to generate document URL", status_code=502) from e

    def owns(self, url: str, user_id: str) -> bool:
        """True when url points at an object stored under user_id's key prefix"""
        parsed = urlparse(url)
        if ".." in parsed.path:
            return False
        if self.public_base_url:
            return url.startswith(f"{self.public_base_url}/{user_id}/")
        # Presigned URLs, path style or virtual-hosted style
        endpoint_host = f"{R2_ACCOUNT_ID}.r2.cloudflarestorage.com"
        if parsed.scheme != "https":
            return False
        if parsed.hostname == endpoint_host:
            return parsed.path.startswith(f"/{self.bucket}/{user_id}/")
        if parsed.hostname == f"{self.bucket}.{endpoint_host}":
            return parsed.path.startswith(f"/{user_id}/")
        return False


def get_object_storage() -> ObjectStorage:
    """Dependency injection for the object store"""
    return ObjectStorage()
