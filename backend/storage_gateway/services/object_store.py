"""Object storage for file bytes. S3-compatible bucket (DigitalOcean Spaces in production)."""
import asyncio
import logging
from typing import Optional
from urllib.parse import quote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from storage_gateway.config import settings
from storage_gateway.exceptions import (
    StoreDeleteError,
    StoreObjectNotFound,
    StoreReadError,
    StoreWriteError,
)
from storage_gateway.schemas.file import StoreResult

logger = logging.getLogger(__name__)

KEY_PREFIX = "uploads"


def file_key(wallet_address: str, filename: str) -> str:
    """Object key for a wallet's file: uploads/<wallet>/<filename>."""
    return f"{KEY_PREFIX}/{wallet_address}/{filename}"


def folder_key(wallet_address: str, folder_name: str) -> str:
    """Object key for a folder marker. The trailing slash makes it a prefix."""
    return f"{KEY_PREFIX}/{wallet_address}/{folder_name.strip('/')}/"


def content_disposition(filename: str) -> str:
    """Attachment header value. Non-ASCII names use the RFC 5987 form."""
    encoded = quote(filename)
    if encoded != filename:
        return f"attachment; filename*=utf-8''{encoded}"
    return f'attachment; filename="{filename}"'


class ObjectStoreService:
    """Handles put/get/delete against a single bucket.

    boto3 is blocking, so every call is pushed to a worker thread.
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: Optional[str] = None,
        access_key: str = "",
        secret_key: str = "",
        region: Optional[str] = None,
    ):
        self.bucket = bucket
        self.endpoint_url = endpoint_url or None
        self._access_key = access_key or None
        self._secret_key = secret_key or None
        self._region = region or None
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self._access_key,
                aws_secret_access_key=self._secret_key,
                region_name=self._region,
            )
        return self._client

    def public_url(self, key: str) -> str:
        """Virtual-host style URL for a public-read object."""
        if self.endpoint_url:
            endpoint = urlparse(self.endpoint_url)
            scheme = endpoint.scheme or "https"
            host = endpoint.netloc or endpoint.path
            return f"{scheme}://{self.bucket}.{host}/{quote(key)}"
        return f"https://{self.bucket}.s3.amazonaws.com/{quote(key)}"

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str],
        disposition_filename: str,
    ) -> StoreResult:
        """Store bytes as a public-read object that downloads under its original name."""
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
            "ACL": "public-read",
            "ContentType": content_type or "application/octet-stream",
            "ContentDisposition": content_disposition(disposition_filename),
        }
        try:
            logger.info("Uploading object to bucket %s: %s", self.bucket, key)
            response = await asyncio.to_thread(self.client.put_object, **params)
        except (BotoCoreError, ClientError) as e:
            logger.exception("Failed to upload object: %s", key)
            raise StoreWriteError(key, f"Failed to upload {key}: {e}") from e

        return StoreResult(
            key=key,
            bucket=self.bucket,
            location=self.public_url(key),
            etag=response.get("ETag"),
        )

    async def put_empty(self, key: str) -> StoreResult:
        """Create a zero-byte public-read marker object."""
        try:
            logger.info("Creating marker object in bucket %s: %s", self.bucket, key)
            response = await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=b"",
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception("Failed to create marker object: %s", key)
            raise StoreWriteError(key, f"Failed to create {key}: {e}") from e

        return StoreResult(
            key=key,
            bucket=self.bucket,
            location=self.public_url(key),
            etag=response.get("ETag"),
        )

    async def get(self, key: str) -> tuple[bytes, Optional[str]]:
        """Read an object's bytes and the content type stored with it."""

        def _read() -> tuple[bytes, Optional[str]]:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read(), response.get("ContentType")

        try:
            return await asyncio.to_thread(_read)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in ("NoSuchKey", "404", "NotFound"):
                raise StoreObjectNotFound(key, f"Object not found: {key}") from e
            logger.exception("Failed to read object: %s", key)
            raise StoreReadError(key, f"Failed to read {key}: {e}") from e
        except BotoCoreError as e:
            logger.exception("Failed to read object: %s", key)
            raise StoreReadError(key, f"Failed to read {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error."""
        try:
            logger.info("Deleting object from bucket %s: %s", self.bucket, key)
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.exception("Failed to delete object: %s", key)
            raise StoreDeleteError(key, f"Failed to delete {key}: {e}") from e


object_store = ObjectStoreService(
    bucket=settings.SPACES_BUCKET,
    endpoint_url=settings.SPACES_ENDPOINT,
    access_key=settings.SPACES_ACCESS_KEY_ID,
    secret_key=settings.SPACES_SECRET_ACCESS_KEY,
    region=settings.SPACES_REGION,
)


def get_object_store() -> ObjectStoreService:
    """FastAPI dependency for the configured object store."""
    return object_store
