"""NAS photo driver: generic HTTP upload, Synology File Station API, or WebDAV."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from fieldlog.core.config import BackendConfig
from fieldlog.infrastructure.drivers.webdav import WebDAVPhotoDriver, encode_path, normalize_path
from fieldlog.schemas.results import DriverResult, PhotoLocation

logger = logging.getLogger(__name__)

AUTH_CGI = "/webapi/auth.cgi"
ENTRY_CGI = "/webapi/entry.cgi"
QUERY_CGI = "/webapi/query.cgi"

_INFO_QUERY = {
    "api": "SYNO.API.Info",
    "version": "1",
    "method": "query",
    "query": "SYNO.API.Auth",
}


class FileStationError(Exception):
    """File Station API answered with success=false."""

    def __init__(self, step: str, code: Any) -> None:
        self.step = step
        self.code = code
        super().__init__(f"File Station {step} failed: error code {code}")


class NASPhotoDriver:
    """Uploads photos to a NAS using one of three methods.

    - http: multipart POST of file/path/filename to {url}{endpoint}
    - filestation: SYNO.API.Auth login, SYNO.FileStation.Upload, logout
    - webdav: delegates to WebDAVPhotoDriver rooted at {url}{webdav_path}

    File Station logs in for every upload; sessions are not cached.
    """

    name = "nas"

    def __init__(
        self,
        url: str,
        method: str,
        *,
        endpoint: str = "/upload",
        token: str | None = None,
        username: str | None = None,
        password: str | None = None,
        target_folder: str = "/photos",
        webdav_path: str = "/webdav/photos",
        http_client: httpx.AsyncClient | None = None,
        connect_timeout: float = 5.0,
        timeout: float = 30.0,
    ) -> None:
        if method not in ("http", "filestation", "webdav"):
            raise ValueError(f"Unsupported NAS upload method: {method!r}")
        self.url = url.rstrip("/")
        self.method = method
        self.endpoint = "/" + endpoint.lstrip("/")
        self.token = token
        self.username = username
        self.password = password
        self.target_folder = "/" + normalize_path(target_folder or "/photos")
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None
        self._connect_timeout = connect_timeout
        self._webdav: WebDAVPhotoDriver | None = None
        if method == "webdav":
            self._webdav = WebDAVPhotoDriver(
                f"{self.url}/{normalize_path(webdav_path)}",
                username,
                password,
                http_client=self._http,
                connect_timeout=connect_timeout,
            )

    @classmethod
    def from_config(
        cls,
        config: BackendConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        connect_timeout: float = 5.0,
        timeout: float = 30.0,
    ) -> NASPhotoDriver:
        """Build from a ready 'nas' BackendConfig."""
        creds = dict(config.credentials)
        return cls(
            creds.pop("url"),
            creds.pop("method"),
            http_client=http_client,
            connect_timeout=connect_timeout,
            timeout=timeout,
            **{k: v for k, v in creds.items() if v is not None},
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def public_url(self, location: PhotoLocation) -> str:
        """Fallback URL for files uploaded via http or File Station."""
        return f"{self.url}/photos/{encode_path(location.full_path)}"

    async def upload_photo(
        self, data: bytes, location: PhotoLocation, content_type: str
    ) -> DriverResult[str]:
        if self._webdav is not None:
            return await self._webdav.upload_photo(data, location, content_type)
        try:
            if self.method == "http":
                url = await self._upload_http(data, location, content_type)
            else:
                url = await self._upload_filestation(data, location, content_type)
        except (httpx.HTTPError, FileStationError, ValueError) as e:
            logger.error("NAS %s upload of %s failed: %s", self.method, location.full_path, e)
            return DriverResult.fail(str(e) or type(e).__name__)
        logger.info("NAS %s upload succeeded: %s", self.method, location.full_path)
        return DriverResult.ok(url)

    async def _upload_http(self, data: bytes, location: PhotoLocation, content_type: str) -> str:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        resp = await self._http.post(
            f"{self.url}{self.endpoint}",
            data={"path": location.storage_key, "filename": location.full_path},
            files={"file": (location.filename, data, content_type)},
            headers=headers,
        )
        resp.raise_for_status()
        try:
            body = resp.json()
        except ValueError:
            body = {}
        url = body.get("url") if isinstance(body, dict) else None
        return url or self.public_url(location)

    async def _login(self) -> str:
        resp = await self._http.post(
            f"{self.url}{AUTH_CGI}",
            data={
                "api": "SYNO.API.Auth",
                "version": "3",
                "method": "login",
                "account": self.username or "",
                "passwd": self.password or "",
                "session": "FileStation",
                "format": "sid",
            },
        )
        resp.raise_for_status()
        body = resp.json()
        if not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else None
            raise FileStationError("login", (error or {}).get("code"))
        sid = (body.get("data") or {}).get("sid")
        if not sid:
            raise FileStationError("login", "no session id")
        return sid

    async def _logout(self, sid: str) -> None:
        try:
            await self._http.post(
                f"{self.url}{AUTH_CGI}",
                data={
                    "api": "SYNO.API.Auth",
                    "version": "3",
                    "method": "logout",
                    "session": "FileStation",
                    "_sid": sid,
                },
                timeout=self._connect_timeout,
            )
        except httpx.HTTPError as e:
            logger.debug("File Station logout failed: %s", e)

    async def _upload_filestation(
        self, data: bytes, location: PhotoLocation, content_type: str
    ) -> str:
        sid = await self._login()
        try:
            resp = await self._http.post(
                f"{self.url}{ENTRY_CGI}",
                data={
                    "api": "SYNO.FileStation.Upload",
                    "version": "2",
                    "method": "upload",
                    "_sid": sid,
                    "path": f"{self.target_folder}/{normalize_path(location.storage_key)}",
                    "create_parents": "true",
                    "overwrite": "true",
                },
                files={"file": (location.filename, data, content_type)},
            )
            resp.raise_for_status()
            body = resp.json()
            if not body.get("success"):
                raise FileStationError("upload", (body.get("error") or {}).get("code"))
        finally:
            await self._logout(sid)
        return self.public_url(location)

    async def check_connection(self) -> bool:
        """SYNO.API.Info query (or the WebDAV probe) within the connect timeout."""
        if self._webdav is not None:
            return await self._webdav.check_connection()
        try:
            resp = await self._http.get(
                f"{self.url}{QUERY_CGI}", params=_INFO_QUERY, timeout=self._connect_timeout
            )
        except httpx.HTTPError as e:
            logger.warning("NAS connectivity check against %s failed: %s", self.url, e)
            return False
        return resp.is_success

    def owns_reference(self, reference: str) -> bool:
        return reference.startswith(self.url + "/")
