"""WebDAV photo driver: PROPFIND to probe, MKCOL per directory, PUT to upload."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from fieldlog.schemas.results import DriverResult, PhotoLocation

logger = logging.getLogger(__name__)

_PROPFIND_BODY = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<propfind xmlns="DAV:"><prop></prop></propfind>'
)
# 405: collection already exists; 301: some servers redirect to the trailing-slash form
_MKCOL_OK = {201, 301, 405}
_PUT_OK = {200, 201, 204}


def normalize_path(path: str) -> str:
    """Strip leading/trailing slashes and collapse empty segments."""
    return "/".join(part for part in path.split("/") if part)


def encode_path(path: str) -> str:
    """Percent-encode each segment of a slash-delimited path."""
    return "/".join(quote(part, safe="") for part in normalize_path(path).split("/") if part)


class WebDAVPhotoDriver:
    """Uploads photos to a WebDAV server with basic auth.

    Directory creation is best effort: MKCOL failures are logged and the
    PUT is attempted regardless, since some servers create parents
    themselves. MKCOL is idempotent from the caller's view, so concurrent
    submissions racing on the same directory are harmless.
    """

    name = "webdav"

    def __init__(
        self,
        url: str,
        username: str | None,
        password: str | None,
        *,
        base_path: str = "",
        http_client: httpx.AsyncClient | None = None,
        connect_timeout: float = 5.0,
        timeout: float = 30.0,
    ) -> None:
        self.url = url.rstrip("/")
        self.base_path = normalize_path(base_path or "")
        self._auth = httpx.BasicAuth(username, password or "") if username else None
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None
        self._connect_timeout = connect_timeout

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _url(self, path: str) -> str:
        encoded = encode_path(path)
        return f"{self.url}/{encoded}" if encoded else self.url

    def remote_path(self, location: PhotoLocation) -> str:
        """Server path of a photo: base path + synthesized key + filename."""
        parts = [self.base_path, location.full_path]
        return normalize_path("/".join(p for p in parts if p))

    async def check_connection(self) -> bool:
        """PROPFIND Depth 0 on the root URL; 200 or 207 means healthy."""
        try:
            resp = await self._http.request(
                "PROPFIND",
                self.url,
                headers={"Depth": "0", "Content-Type": "application/xml"},
                content=_PROPFIND_BODY,
                auth=self._auth,
                timeout=self._connect_timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("WebDAV connectivity check against %s failed: %s", self.url, e)
            return False
        logger.debug("WebDAV PROPFIND %s -> %d", self.url, resp.status_code)
        return resp.status_code in (200, 207)

    async def create_directory(self, path: str) -> bool:
        """MKCOL path. True when created or already present."""
        try:
            resp = await self._http.request("MKCOL", self._url(path), auth=self._auth)
        except httpx.HTTPError as e:
            logger.warning("WebDAV MKCOL %s failed: %s", path, e)
            return False
        if resp.status_code in _MKCOL_OK:
            return True
        logger.warning("WebDAV MKCOL %s returned %d", path, resp.status_code)
        return False

    async def ensure_directories(self, directory: str) -> None:
        """MKCOL every cumulative segment of directory, outermost first."""
        segments = normalize_path(directory).split("/")
        for i in range(1, len(segments) + 1):
            await self.create_directory("/".join(segments[:i]))

    async def put(self, data: bytes, path: str, content_type: str) -> DriverResult[str]:
        """PUT data at path; value is the resource URL."""
        upload_url = self._url(path)
        try:
            resp = await self._http.put(
                upload_url,
                content=data,
                headers={"Content-Type": content_type or "application/octet-stream"},
                auth=self._auth,
            )
        except httpx.HTTPError as e:
            logger.error("WebDAV upload to %s failed: %s", upload_url, e)
            return DriverResult.fail(str(e) or type(e).__name__)
        if resp.status_code in _PUT_OK:
            logger.info("WebDAV upload succeeded: %s", path)
            return DriverResult.ok(upload_url)
        logger.error("WebDAV upload to %s returned %d", upload_url, resp.status_code)
        return DriverResult.fail(f"WebDAV upload failed: {resp.status_code} {resp.reason_phrase}")

    async def upload_photo(
        self, data: bytes, location: PhotoLocation, content_type: str
    ) -> DriverResult[str]:
        path = self.remote_path(location)
        directory = path.rsplit("/", 1)[0] if "/" in path else ""
        if directory:
            await self.ensure_directories(directory)
        return await self.put(data, path, content_type)

    def owns_reference(self, reference: str) -> bool:
        return reference.startswith(self.url + "/")
