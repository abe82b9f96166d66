"""S3-compatible object store for photos (AWS S3, MinIO, etc.).

boto3 is synchronous; every call runs via asyncio.to_thread. Install the
"storage" extra to use this driver.
"""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote, unquote, urlsplit

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from fieldlog.core.config import BackendConfig
from fieldlog.core.constants import PHOTO_ROOT
from fieldlog.infrastructure.drivers.firebase_storage import object_key
from fieldlog.schemas.results import DriverResult, PhotoLocation

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class S3PhotoDriver:
    """Uploads photos with put_object and returns the object URL.

    Compatible with AWS S3, MinIO and DigitalOcean Spaces. Objects are
    not presigned: the bucket policy must allow reads of photos/.
    """

    name = "s3"

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        client=None,
    ) -> None:
        """Initialize S3 client.

        Args:
            bucket: Bucket name.
            region: AWS region.
            endpoint_url: Custom endpoint (MinIO/Spaces).
            access_key: Optional; uses env/IAM if not set.
            secret_key: Optional.
            client: Pre-built boto3 client (tests).
        """
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        if client is None:
            extra = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                **extra,
            )
        self._client = client

    @classmethod
    def from_config(cls, config: BackendConfig, client=None) -> S3PhotoDriver:
        creds = config.credentials
        return cls(
            creds["bucket"],
            region=creds.get("region") or "us-east-1",
            endpoint_url=creds.get("endpoint_url"),
            access_key=creds.get("access_key"),
            secret_key=creds.get("secret_key"),
            client=client,
        )

    @property
    def bucket_url(self) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com"

    def object_url(self, key: str) -> str:
        return f"{self.bucket_url}/{quote(key)}"

    def key_for_reference(self, reference: str) -> str | None:
        """Object key encoded in a URL this driver produced, else None."""
        if not self.owns_reference(reference):
            return None
        path = urlsplit(reference[len(self.bucket_url):]).path
        return unquote(path.lstrip("/")) or None

    async def upload_photo(
        self, data: bytes, location: PhotoLocation, content_type: str
    ) -> DriverResult[str]:
        key = object_key(location)

        def _put() -> None:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )

        try:
            await asyncio.to_thread(_put)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload of %s failed: %s", key, e)
            return DriverResult.fail(str(e))
        logger.info("S3 upload succeeded: %s", key)
        return DriverResult.ok(self.object_url(key))

    async def check_connection(self) -> bool:
        def _head_bucket() -> None:
            self._client.head_bucket(Bucket=self.bucket)

        try:
            await asyncio.to_thread(_head_bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.warning("S3 connectivity check on %s failed: %s", self.bucket, e)
            return False

    def owns_reference(self, reference: str) -> bool:
        return reference.startswith(self.bucket_url + "/")

    async def reference_exists(self, reference: str) -> bool | None:
        """head_object on the referenced key; None when the error is not a 404."""
        key = self.key_for_reference(reference)
        if key is None:
            return None

        def _exists() -> bool | None:
            try:
                self._client.head_object(Bucket=self.bucket, Key=key)
                return True
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                    return False
                logger.warning("S3 head_object %s failed: %s", key, e)
                return None
            except BotoCoreError as e:
                logger.warning("S3 head_object %s failed: %s", key, e)
                return None

        return await asyncio.to_thread(_exists)

    async def count_objects(self, prefix: str = f"{PHOTO_ROOT}/") -> DriverResult[int]:
        def _count() -> int:
            paginator = self._client.get_paginator("list_objects_v2")
            return sum(
                page.get("KeyCount", len(page.get("Contents") or []))
                for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix)
            )

        try:
            return DriverResult.ok(await asyncio.to_thread(_count))
        except (ClientError, BotoCoreError) as e:
            logger.warning("S3 listing of %s failed: %s", prefix, e)
            return DriverResult.fail(str(e), value=0)
