"""Driver factory and adapter construction."""

import logging

import httpx
import pytest

from fieldlog.application.storage_adapter import StorageAdapter
from fieldlog.core.config import resolve_backends
from fieldlog.infrastructure.drivers import (
    FirebaseStorageDriver,
    LocalRecordStore,
    NASPhotoDriver,
    WebDAVPhotoDriver,
)
from fieldlog.infrastructure.factory import build_drivers, create_storage_adapter
from fieldlog.infrastructure.firebase import FirestoreRecordDriver


@pytest.mark.asyncio
async def test_nothing_configured_builds_local_only(settings) -> None:
    drivers = build_drivers(resolve_backends(settings), settings)
    assert isinstance(drivers.local, LocalRecordStore)
    assert drivers.documents is None
    assert drivers.object_store is None
    assert drivers.photo_chain() == []
    assert drivers.owns_http_client
    await drivers.aclose()


@pytest.mark.asyncio
async def test_configured_backends_share_http_client(make_settings) -> None:
    s = make_settings(
        firebase_api_key="AIza-real",
        firebase_project_id="fieldlog-prod",
        firebase_storage_bucket="fieldlog-prod.appspot.com",
        webdav_url="https://dav.example/dav",
        webdav_username="field",
        webdav_password="secret",
        nas_url="https://nas.example",
        nas_upload_method="http",
    )
    http = httpx.AsyncClient()
    drivers = build_drivers(resolve_backends(s), s, http_client=http)

    assert isinstance(drivers.documents, FirestoreRecordDriver)
    assert isinstance(drivers.object_store, FirebaseStorageDriver)
    assert isinstance(drivers.webdav, WebDAVPhotoDriver)
    assert isinstance(drivers.nas, NASPhotoDriver)
    assert [kind.value for kind, _ in drivers.photo_chain()] == ["object_store", "webdav", "nas"]
    assert drivers.http_client is http
    assert not drivers.owns_http_client

    await drivers.aclose()
    assert not http.is_closed
    await http.aclose()


def test_backend_states_are_logged(make_settings, caplog) -> None:
    s = make_settings(webdav_url="https://dav.example")
    with caplog.at_level(logging.INFO, logger="fieldlog.infrastructure.factory"):
        build_drivers(resolve_backends(s), s, http_client=httpx.AsyncClient())
    assert any("webdav" in r.getMessage() and "invalid" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_create_storage_adapter_uses_given_settings(settings) -> None:
    adapter = create_storage_adapter(settings)
    assert isinstance(adapter, StorageAdapter)
    assert not adapter.is_cloud_mode()
    assert adapter.settings is settings
    await adapter.aclose()
