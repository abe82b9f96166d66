"""Driver factory: builds the drivers for a resolved configuration.

Implementations are created only for backends whose BackendConfig is
ready. All HTTP drivers share one httpx.AsyncClient; the S3 driver (and
boto3) is only imported when OBJECT_STORE_BACKEND=s3.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from fieldlog.core.config import BackendConfig, ResolvedBackends, get_settings, resolve_backends
from fieldlog.domain.exceptions import ConfigurationException
from fieldlog.infrastructure.drivers.firebase_storage import FirebaseStorageDriver
from fieldlog.infrastructure.drivers.local_store import LocalRecordStore
from fieldlog.infrastructure.drivers.nas import NASPhotoDriver
from fieldlog.infrastructure.drivers.protocol import ObjectStoreDriver, StorageDrivers
from fieldlog.infrastructure.drivers.webdav import WebDAVPhotoDriver
from fieldlog.infrastructure.firebase import FirestoreRecordDriver, create_firestore_client

if TYPE_CHECKING:
    from fieldlog.application.storage_adapter import StorageAdapter
    from fieldlog.core.config import Settings

logger = logging.getLogger(__name__)


def _build_object_store(
    config: BackendConfig, settings: Settings, http: httpx.AsyncClient
) -> ObjectStoreDriver | None:
    if not config.is_ready:
        return None
    if config.name == "s3":
        try:
            from fieldlog.infrastructure.drivers.s3_storage import S3PhotoDriver
        except ImportError as e:
            raise ConfigurationException(
                "s3", "S3 backend requires boto3. Install with: pip install 'fieldlog[storage]'"
            ) from e
        return S3PhotoDriver.from_config(config)
    return FirebaseStorageDriver.from_config(
        config,
        http_client=http,
        connect_timeout=settings.connect_timeout_seconds,
        timeout=settings.operation_timeout_seconds,
    )


def build_drivers(
    backends: ResolvedBackends,
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> StorageDrivers:
    """Create drivers for every ready backend plus the local store.

    Args:
        backends: Resolved backend configuration.
        settings: Application settings; if None, uses get_settings().
        http_client: Shared transport; created (and owned) when omitted.

    Raises:
        ConfigurationException: A ready backend cannot be constructed
            (malformed service account key, boto3 missing).
    """
    s = settings or get_settings()
    http = http_client or httpx.AsyncClient(
        timeout=httpx.Timeout(s.operation_timeout_seconds, connect=s.connect_timeout_seconds)
    )
    drivers = StorageDrivers(
        local=LocalRecordStore(s.local_storage_root),
        http_client=http,
        owns_http_client=http_client is None,
    )

    if backends.document_store.is_ready:
        client = create_firestore_client(
            backends.document_store, http_client=http, timeout=s.operation_timeout_seconds
        )
        drivers.documents = FirestoreRecordDriver(client)

    drivers.object_store = _build_object_store(backends.object_store, s, http)

    if backends.webdav.is_ready:
        creds = backends.webdav.credentials
        drivers.webdav = WebDAVPhotoDriver(
            creds["url"],
            creds.get("username"),
            creds.get("password"),
            base_path=creds.get("base_path") or "",
            http_client=http,
            connect_timeout=s.connect_timeout_seconds,
        )

    if backends.nas.is_ready:
        drivers.nas = NASPhotoDriver.from_config(
            backends.nas, http_client=http, connect_timeout=s.connect_timeout_seconds
        )

    for config in (backends.document_store, *backends.photo_backends()):
        if config.is_ready:
            logger.info("Storage backend %s: ready", config.name)
        elif config.reason:
            logger.info("Storage backend %s: %s (%s)", config.name, config.state.value, config.reason)
        else:
            logger.debug("Storage backend %s: %s", config.name, config.state.value)
    return drivers


def create_storage_adapter(settings: Settings | None = None) -> StorageAdapter:
    """Resolve configuration from settings and build a ready-to-use StorageAdapter.

    Close it with ``await adapter.aclose()`` when done.
    """
    from fieldlog.application.storage_adapter import StorageAdapter

    s = settings or get_settings()
    backends = resolve_backends(s)
    return StorageAdapter(backends, build_drivers(backends, s), settings=s)
