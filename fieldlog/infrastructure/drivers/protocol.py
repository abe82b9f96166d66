"""Driver protocols (DIP). Implementations: Firestore, local JSON store, object stores, WebDAV, NAS.

Drivers return DriverResult for every expected failure (HTTP errors,
transport errors, timeouts, missing documents) instead of raising, so
the storage adapter decides on fallback without exception coupling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from fieldlog.domain.enums import BackendKind
from fieldlog.schemas.results import DriverResult, PhotoLocation


class RecordDriver(Protocol):
    """Structured record storage (document store or local fallback)."""

    name: str

    async def store(self, collection: str, data: dict[str, Any]) -> DriverResult[dict[str, Any]]:
        """Persist data; the stored document carries the assigned id and createdAt."""
        ...

    async def list(
        self, collection: str, project_id: str | None = None
    ) -> DriverResult[list[dict[str, Any]]]:
        """Documents ordered by createdAt descending, filtered by projectId when given."""
        ...

    async def update(
        self, collection: str, record_id: str, partial: dict[str, Any]
    ) -> DriverResult[bool]:
        """Overwrite the given fields. not_found=True when record_id does not exist."""
        ...

    async def delete(self, collection: str, record_id: str) -> DriverResult[bool]:
        """Remove the document. not_found=True when record_id does not exist."""
        ...

    async def check_connection(self) -> bool:
        """Return True if the backend answers within the connectivity timeout."""
        ...


class PhotoDriver(Protocol):
    """Binary photo upload target (object store, WebDAV, NAS)."""

    name: str

    async def upload_photo(
        self, data: bytes, location: PhotoLocation, content_type: str
    ) -> DriverResult[str]:
        """Upload data at location; value is a durable fetch URL."""
        ...

    async def check_connection(self) -> bool:
        """Return True if the backend answers within the connectivity timeout."""
        ...

    def owns_reference(self, reference: str) -> bool:
        """Return True if reference is a URL this backend produced."""
        ...


class ObjectStoreDriver(PhotoDriver, Protocol):
    """Photo driver that can also verify and count stored objects."""

    async def reference_exists(self, reference: str) -> bool | None:
        """True/False when the object's existence is known; None when the probe failed."""
        ...

    async def count_objects(self, prefix: str) -> DriverResult[int]:
        """Number of objects under prefix."""
        ...


@dataclass
class StorageDrivers:
    """The drivers built for one resolved configuration.

    Only backends whose configuration is ready get a driver; None means
    the backend is not in use. http_client is the shared transport the
    HTTP drivers were built with (closed by aclose when owned).
    """

    local: RecordDriver
    documents: RecordDriver | None = None
    object_store: ObjectStoreDriver | None = None
    webdav: PhotoDriver | None = None
    nas: PhotoDriver | None = None
    http_client: Any = None
    owns_http_client: bool = False

    def photo_chain(self) -> list[tuple[BackendKind, PhotoDriver]]:
        """Remote photo drivers in upload preference order."""
        chain = [
            (BackendKind.OBJECT_STORE, self.object_store),
            (BackendKind.WEBDAV, self.webdav),
            (BackendKind.NAS, self.nas),
        ]
        return [(kind, driver) for kind, driver in chain if driver is not None]

    async def aclose(self) -> None:
        if self.owns_http_client and self.http_client is not None:
            await self.http_client.aclose()
