"""Firebase Storage object-store driver over the v0 REST API (httpx).

Uploads return the durable download URL
https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{encoded key}?alt=media&token={token},
which fetches the object without further credentials.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from fieldlog.core.config import BackendConfig
from fieldlog.core.constants import FIREBASE_STORAGE_DOMAIN, PHOTO_ROOT
from fieldlog.infrastructure.firebase._rest_client import get_access_token
from fieldlog.infrastructure.firebase.client import service_account_credentials
from fieldlog.schemas.results import DriverResult, PhotoLocation

logger = logging.getLogger(__name__)

_STORAGE_SCOPE = "https://www.googleapis.com/auth/devstorage.read_write"
_BASE = f"https://{FIREBASE_STORAGE_DOMAIN}/v0/b"
_LIST_PAGE_SIZE = 1000


def object_key(location: PhotoLocation) -> str:
    """Object name for a photo: everything lives under the photos/ root."""
    return f"{PHOTO_ROOT}/{location.full_path}"


def download_url(bucket: str, key: str, token: str | None) -> str:
    url = f"{_BASE}/{bucket}/o/{quote(key, safe='')}?alt=media"
    return f"{url}&token={token}" if token else url


async def probe_reference(
    http: httpx.AsyncClient, reference: str, timeout: float = 5.0
) -> bool | None:
    """Fetch the first byte of reference.

    Returns True (object served), False (404), or None when the answer
    says nothing about existence (transport error, 5xx, auth failures).
    """
    try:
        resp = await http.get(reference, headers={"Range": "bytes=0-0"}, timeout=timeout)
    except httpx.HTTPError as e:
        logger.debug("Probe of %s failed: %s", reference, e)
        return None
    if resp.status_code in (200, 206):
        return True
    if resp.status_code == 404:
        return False
    return None


class FirebaseStorageDriver:
    """Photo uploads to a Firebase Storage bucket.

    Authenticates with a service-account bearer token when one is
    configured; otherwise the web API key is sent and the bucket's
    security rules decide.
    """

    name = "firebase_storage"

    def __init__(
        self,
        bucket: str,
        *,
        api_key: str | None = None,
        credentials: Any = None,
        http_client: httpx.AsyncClient | None = None,
        connect_timeout: float = 5.0,
        timeout: float = 30.0,
    ) -> None:
        self.bucket = bucket
        self._api_key = api_key
        self._credentials = credentials
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None
        self._connect_timeout = connect_timeout

    @classmethod
    def from_config(
        cls,
        config: BackendConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        connect_timeout: float = 5.0,
        timeout: float = 30.0,
    ) -> FirebaseStorageDriver:
        return cls(
            config.credentials["bucket"],
            api_key=config.credentials.get("api_key"),
            credentials=service_account_credentials(config, [_STORAGE_SCOPE]),
            http_client=http_client,
            connect_timeout=connect_timeout,
            timeout=timeout,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    @property
    def objects_url(self) -> str:
        return f"{_BASE}/{self.bucket}/o"

    async def _auth(self) -> tuple[dict[str, str], dict[str, str]]:
        """Headers and query params that authenticate one request."""
        if self._credentials is not None:
            token = await asyncio.to_thread(get_access_token, self._credentials)
            return {"Authorization": f"Bearer {token}"}, {}
        if self._api_key:
            return {}, {"key": self._api_key}
        return {}, {}

    async def upload_photo(
        self, data: bytes, location: PhotoLocation, content_type: str
    ) -> DriverResult[str]:
        key = object_key(location)
        try:
            headers, params = await self._auth()
            resp = await self._http.post(
                self.objects_url,
                params={**params, "name": key},
                content=data,
                headers={**headers, "Content-Type": content_type or "application/octet-stream"},
            )
            resp.raise_for_status()
            meta = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Firebase Storage upload of %s failed: %s", key, e)
            return DriverResult.fail(str(e) or type(e).__name__)
        token = str(meta.get("downloadTokens") or "").split(",")[0] or None
        logger.info("Firebase Storage upload succeeded: %s", key)
        return DriverResult.ok(download_url(self.bucket, key, token))

    async def check_connection(self) -> bool:
        """List at most one object under the photo root."""
        try:
            headers, params = await self._auth()
            resp = await self._http.get(
                self.objects_url,
                params={**params, "prefix": f"{PHOTO_ROOT}/", "maxResults": "1"},
                headers=headers,
                timeout=self._connect_timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("Firebase Storage connectivity check failed: %s", e)
            return False
        return resp.is_success

    def owns_reference(self, reference: str) -> bool:
        return FIREBASE_STORAGE_DOMAIN in reference

    async def reference_exists(self, reference: str) -> bool | None:
        return await probe_reference(self._http, reference, self._connect_timeout)

    async def count_objects(self, prefix: str = f"{PHOTO_ROOT}/") -> DriverResult[int]:
        """Count objects under prefix, following nextPageToken."""
        total = 0
        page_token: str | None = None
        try:
            headers, params = await self._auth()
            while True:
                query = {**params, "prefix": prefix, "maxResults": str(_LIST_PAGE_SIZE)}
                if page_token:
                    query["pageToken"] = page_token
                resp = await self._http.get(self.objects_url, params=query, headers=headers)
                resp.raise_for_status()
                body = resp.json()
                total += len(body.get("items") or [])
                page_token = body.get("nextPageToken")
                if not page_token:
                    break
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Firebase Storage listing of %s failed: %s", prefix, e)
            return DriverResult.fail(str(e) or type(e).__name__, value=0)
        return DriverResult.ok(total)
