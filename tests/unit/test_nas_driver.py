"""NASPhotoDriver: http, File Station and WebDAV variants."""

import httpx
import pytest

from fieldlog.core.config import resolve_backends
from fieldlog.infrastructure.drivers.nas import NASPhotoDriver
from fieldlog.schemas.results import PhotoLocation

LOCATION = PhotoLocation("Harbor/coordinator/2024-03-06/water", "2024-03-06_09-00-00_coordinator_water-record.jpg")


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_http_upload_uses_server_url() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = request.content
        return httpx.Response(200, json={"url": "https://nas.example/share/x.jpg"})

    driver = NASPhotoDriver("https://nas.example", "http", token="tok", http_client=_client(handler))
    result = await driver.upload_photo(b"jpeg", LOCATION, "image/jpeg")
    assert result.success
    assert result.value == "https://nas.example/share/x.jpg"
    assert seen["url"] == "https://nas.example/upload"
    assert seen["auth"] == "Bearer tok"
    assert b'name="file"' in seen["body"]
    assert b'name="path"' in seen["body"]
    assert LOCATION.full_path.encode() in seen["body"]


@pytest.mark.asyncio
async def test_http_upload_default_url_when_server_omits_it() -> None:
    driver = NASPhotoDriver(
        "https://nas.example", "http", http_client=_client(lambda r: httpx.Response(200, json={}))
    )
    result = await driver.upload_photo(b"jpeg", LOCATION, "image/jpeg")
    assert result.value == (
        "https://nas.example/photos/Harbor/coordinator/2024-03-06/water/"
        "2024-03-06_09-00-00_coordinator_water-record.jpg"
    )


@pytest.mark.asyncio
async def test_http_upload_error_status() -> None:
    driver = NASPhotoDriver(
        "https://nas.example", "http", http_client=_client(lambda r: httpx.Response(401))
    )
    result = await driver.upload_photo(b"jpeg", LOCATION, "image/jpeg")
    assert not result.success


def _filestation_handler(calls: list, *, upload_ok: bool = True):
    def handler(request: httpx.Request) -> httpx.Response:
        body = request.content
        if request.url.path == "/webapi/auth.cgi" and b"login" in body:
            calls.append("login")
            return httpx.Response(200, json={"success": True, "data": {"sid": "SID42"}})
        if request.url.path == "/webapi/auth.cgi":
            calls.append("logout")
            return httpx.Response(200, json={"success": True})
        assert request.url.path == "/webapi/entry.cgi"
        assert b"SID42" in body
        assert b"SYNO.FileStation.Upload" in body
        assert b"/photos/Harbor/coordinator/2024-03-06/water" in body
        calls.append("upload")
        if upload_ok:
            return httpx.Response(200, json={"success": True})
        return httpx.Response(200, json={"success": False, "error": {"code": 408}})

    return handler


@pytest.mark.asyncio
async def test_filestation_logs_in_once_per_upload() -> None:
    calls: list[str] = []
    driver = NASPhotoDriver(
        "https://nas.example:5001",
        "filestation",
        username="field",
        password="secret",
        http_client=_client(_filestation_handler(calls)),
    )
    first = await driver.upload_photo(b"jpeg", LOCATION, "image/jpeg")
    second = await driver.upload_photo(b"jpeg", LOCATION, "image/jpeg")
    assert first.success and second.success
    assert calls == ["login", "upload", "logout", "login", "upload", "logout"]


@pytest.mark.asyncio
async def test_filestation_upload_error_code() -> None:
    calls: list[str] = []
    driver = NASPhotoDriver(
        "https://nas.example:5001",
        "filestation",
        username="field",
        password="secret",
        http_client=_client(_filestation_handler(calls, upload_ok=False)),
    )
    result = await driver.upload_photo(b"jpeg", LOCATION, "image/jpeg")
    assert not result.success
    assert "408" in result.error
    assert calls[-1] == "logout"


@pytest.mark.asyncio
async def test_filestation_login_failure() -> None:
    driver = NASPhotoDriver(
        "https://nas.example:5001",
        "filestation",
        username="field",
        password="wrong",
        http_client=_client(lambda r: httpx.Response(200, json={"success": False, "error": {"code": 400}})),
    )
    result = await driver.upload_photo(b"jpeg", LOCATION, "image/jpeg")
    assert not result.success
    assert "login" in result.error


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"success": True}, {"success": True, "data": None}, {"success": True, "data": {}}, []])
async def test_filestation_login_without_sid(body) -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json=body)

    driver = NASPhotoDriver(
        "https://nas.example:5001",
        "filestation",
        username="field",
        password="secret",
        http_client=_client(handler),
    )
    result = await driver.upload_photo(b"jpeg", LOCATION, "image/jpeg")
    assert not result.success
    assert "login" in result.error
    assert "/webapi/entry.cgi" not in calls


@pytest.mark.asyncio
async def test_webdav_variant_delegates() -> None:
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append((request.method, request.url.path))
        return httpx.Response(201)

    driver = NASPhotoDriver("https://nas.example", "webdav", http_client=_client(handler))
    result = await driver.upload_photo(b"jpeg", LOCATION, "image/jpeg")
    assert result.success
    assert paths[-1] == ("PUT", "/webdav/photos/" + LOCATION.full_path)


@pytest.mark.asyncio
async def test_check_connection_queries_api_info() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["api"] = request.url.params["api"]
        return httpx.Response(200, json={"success": True})

    driver = NASPhotoDriver("https://nas.example", "http", http_client=_client(handler))
    assert await driver.check_connection() is True
    assert seen == {"path": "/webapi/query.cgi", "api": "SYNO.API.Info"}


@pytest.mark.asyncio
async def test_check_connection_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route to host", request=request)

    driver = NASPhotoDriver("https://nas.example", "filestation", http_client=_client(handler))
    assert await driver.check_connection() is False


def test_from_config(make_settings) -> None:
    config = resolve_backends(
        make_settings(
            nas_url="https://nas.example/",
            nas_upload_method="filestation",
            nas_api_user="field",
            nas_api_pass="secret",
            nas_target_folder="/share/photos/",
        )
    ).nas
    driver = NASPhotoDriver.from_config(config)
    assert driver.method == "filestation"
    assert driver.url == "https://nas.example"
    assert driver.target_folder == "/share/photos"
    assert driver.username == "field"


def test_unsupported_method() -> None:
    with pytest.raises(ValueError):
        NASPhotoDriver("https://nas.example", "ftp")
