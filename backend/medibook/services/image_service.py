"""
Profile photo storage on an S3-compatible image host.
Handles validation, upload and removal; only the returned {url, public_id} pair is persisted.
"""
import logging
import mimetypes
import uuid
from typing import Optional, Tuple

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from medibook.config import get_settings
from medibook.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE_BYTES = 5 * 1024 * 1024  # 5MB
ALLOWED_IMAGE_MIME_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
]


def validate_image_file(filename: str, size_bytes: int, mime_type: str) -> Tuple[bool, Optional[str]]:
    """
    Validate an image before upload.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if size_bytes == 0:
        return False, "No file uploaded!"

    if size_bytes > MAX_IMAGE_SIZE_BYTES:
        return False, f"Image exceeds maximum size of {MAX_IMAGE_SIZE_BYTES / (1024 * 1024):.0f}MB"

    if mime_type not in ALLOWED_IMAGE_MIME_TYPES:
        return False, "Image format not supported. Allowed formats: JPEG, PNG, GIF, WebP"

    ext = filename.lower().rsplit(".", 1)[-1] if filename and "." in filename else ""
    allowed_extensions = ["jpg", "jpeg", "png", "gif", "webp"]
    if ext not in allowed_extensions:
        return False, f"File extension not allowed. Use: {', '.join(allowed_extensions)}"

    return True, None


class ImageStorage:
    """Thin wrapper over a boto3 S3 client for profile photos."""

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self.bucket = self.settings.s3_bucket_name
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.settings.s3_endpoint_url or None,
                aws_access_key_id=self.settings.s3_access_key_id or None,
                aws_secret_access_key=self.settings.s3_secret_access_key or None,
                config=Config(signature_version="s3v4"),
                region_name=self.settings.s3_region,
            )
        return self._client

    def public_url(self, public_id: str) -> str:
        base = self.settings.s3_public_base_url or f"{self.settings.s3_endpoint_url}/{self.bucket}"
        return f"{base.rstrip('/')}/{public_id}"

    def upload_image(self, content: bytes, filename: str, content_type: Optional[str] = None) -> dict:
        """Upload an image and return {"url", "public_id"}."""
        content_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        public_id = f"profile-photos/{uuid.uuid4().hex}.{ext}"

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=public_id,
                Body=content,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Image upload failed for {filename}: {e}")
            raise UpstreamFailure("Image upload failed!") from e

        logger.info(f"Uploaded profile photo {public_id} ({len(content)} bytes)")
        return {"url": self.public_url(public_id), "public_id": public_id}

    def remove_image(self, public_id: str) -> None:
        """Delete a hosted image. Deleting a missing key is not an error."""
        try:
            self.client.delete_object(Bucket=self.bucket, Key=public_id)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return
            logger.error(f"Image removal failed for {public_id}: {e}")
            raise UpstreamFailure("Failed to remove photo from the image host.") from e
        except BotoCoreError as e:
            logger.error(f"Image removal failed for {public_id}: {e}")
            raise UpstreamFailure("Failed to remove photo from the image host.") from e


image_storage = ImageStorage()


def get_image_storage() -> ImageStorage:
    return image_storage
