"""Storage adapter: single facade for records and photos with graceful fallback.

Records go to the document store when it is configured and answering,
otherwise to the local store. Photos go to the first remote backend
that accepts them (object store, WebDAV, NAS) and otherwise become an
inline data URI. Every result says which backend served it and whether
that was a degraded fallback.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from fieldlog.application.image_normalizer import normalize_to_budget_async, sniff_mime_type
from fieldlog.application.naming import location_from_options
from fieldlog.core.config import ResolvedBackends, Settings, get_settings, resolve_backends
from fieldlog.core.constants import (
    COLLECTION_COORDINATOR_RECORDS,
    COLLECTION_PERSONAL_RECORDS,
    COLLECTION_PROJECTS,
)
from fieldlog.domain.enums import BackendKind, RecordType, StorageMode
from fieldlog.domain.exceptions import StorageFatalException, ValidationException
from fieldlog.infrastructure.drivers.protocol import RecordDriver, StorageDrivers
from fieldlog.infrastructure.factory import build_drivers
from fieldlog.schemas.records import (
    CoordinatorRecord,
    CoordinatorRecordCreate,
    PersonalRecord,
    PersonalRecordCreate,
    Project,
    ProjectCreate,
    ProjectUpdate,
)
from fieldlog.schemas.results import (
    BackendHealth,
    DriverResult,
    PhotoUploadOptions,
    StorageInfo,
    StorageResult,
    StorageStatus,
)
from fieldlog.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

RECORD_COLLECTIONS = {
    RecordType.PERSONAL: COLLECTION_PERSONAL_RECORDS,
    RecordType.COORDINATOR: COLLECTION_COORDINATOR_RECORDS,
}

DriverBuilder = Callable[[ResolvedBackends, Settings], StorageDrivers]
ProgressCallback = Callable[[int], Any]

_MODE_DESCRIPTIONS = {
    StorageMode.CLOUD: "Records in the cloud document store, photos in cloud object storage",
    StorageMode.HYBRID: "Records in the cloud document store, photos inline or on WebDAV/NAS",
    StorageMode.LOCAL: "Records in local storage, photos inline or on WebDAV/NAS",
}


def _coerce(model: type[M], data: M | Mapping[str, Any]) -> M:
    """Validate caller input into model, raising ValidationException on bad data."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationException(f"Invalid {model.__name__}: {first.get('msg')}", field) from e


def _parse_documents(model: type[M], docs: Iterable[dict[str, Any]]) -> list[M]:
    """Parse stored documents, skipping (and logging) malformed ones."""
    parsed = []
    for doc in docs:
        try:
            parsed.append(model.model_validate(doc))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed %s document %s: %d validation error(s)",
                model.__name__,
                doc.get("id"),
                e.error_count(),
            )
    return parsed


class StorageAdapter:
    """Facade over the document store, photo backends and the local fallback.

    Construct with create_storage_adapter() or directly with resolved
    backends and their drivers. Configuration is fixed until
    reload_configuration() is called; a backend that fails mid-session is
    detected on the next call because every operation tries the primary
    first.
    """

    def __init__(
        self,
        backends: ResolvedBackends,
        drivers: StorageDrivers,
        *,
        settings: Settings | None = None,
        driver_builder: DriverBuilder | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._backends = backends
        self._drivers = drivers
        self._driver_builder = driver_builder or build_drivers

    @property
    def backends(self) -> ResolvedBackends:
        return self._backends

    @property
    def drivers(self) -> StorageDrivers:
        return self._drivers

    @property
    def settings(self) -> Settings:
        return self._settings

    async def reload_configuration(self, settings: Settings | None = None) -> ResolvedBackends:
        """Re-resolve configuration from settings and swap in freshly built drivers."""
        s = settings or get_settings()
        backends = resolve_backends(s)
        drivers = self._driver_builder(backends, s)
        previous = self._drivers
        self._settings, self._backends, self._drivers = s, backends, drivers
        await previous.aclose()
        logger.info("Storage configuration reloaded (mode: %s)", self.get_storage_info().mode.value)
        return backends

    async def aclose(self) -> None:
        await self._drivers.aclose()

    # ------------------------------------------------------------------
    # Fallback policy
    # ------------------------------------------------------------------

    async def _try_primary(
        self, operation: str, call: Callable[[RecordDriver], Awaitable[DriverResult[T]]]
    ) -> tuple[DriverResult[T] | None, str | None]:
        """Run call on the document store. Returns (result, None) or (None, error)."""
        driver = self._drivers.documents
        if driver is None:
            return None, None
        timeout = self._settings.operation_timeout_seconds
        try:
            result = await asyncio.wait_for(call(driver), timeout)
        except TimeoutError:
            error = f"timed out after {timeout:g}s"
        except Exception as e:
            error = str(e) or type(e).__name__
        else:
            if result.success:
                return result, None
            error = result.error or "unknown error"
        logger.warning("%s on %s failed (%s); falling back to local storage", operation, driver.name, error)
        return None, error

    async def _run(
        self, operation: str, call: Callable[[RecordDriver], Awaitable[DriverResult[T]]]
    ) -> tuple[DriverResult[T], BackendKind, bool]:
        """Primary first, then the local store. Raises StorageFatalException when both fail."""
        result, primary_error = await self._try_primary(operation, call)
        if result is not None:
            return result, BackendKind.DOCUMENT_STORE, False
        try:
            result = await call(self._drivers.local)
        except (OSError, ValueError, TypeError) as e:
            logger.error("%s on local storage failed: %s", operation, e)
            raise StorageFatalException(operation, str(e) or type(e).__name__, primary_error) from e
        if not result.success:
            raise StorageFatalException(operation, result.error or "unknown error", primary_error)
        return result, BackendKind.LOCAL, primary_error is not None

    async def _create(
        self, operation: str, collection: str, data: dict[str, Any], model: type[M]
    ) -> StorageResult[M]:
        result, backend, degraded = await self._run(
            operation, lambda driver: driver.store(collection, data)
        )
        return StorageResult(model.model_validate(result.value), backend, degraded)

    async def _list(
        self, operation: str, collection: str, model: type[M], project_id: str | None = None
    ) -> StorageResult[list[M]]:
        result, backend, degraded = await self._run(
            operation, lambda driver: driver.list(collection, project_id)
        )
        return StorageResult(_parse_documents(model, result.value or []), backend, degraded)

    async def _update(
        self, operation: str, collection: str, record_id: str, partial: dict[str, Any]
    ) -> StorageResult[bool]:
        result, backend, degraded = await self._run(
            operation, lambda driver: driver.update(collection, record_id, partial)
        )
        return StorageResult(bool(result.value) and not result.not_found, backend, degraded)

    async def _delete(self, operation: str, collection: str, record_id: str) -> StorageResult[bool]:
        result, backend, degraded = await self._run(
            operation, lambda driver: driver.delete(collection, record_id)
        )
        return StorageResult(bool(result.value) and not result.not_found, backend, degraded)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(self, data: ProjectCreate | Mapping[str, Any]) -> StorageResult[Project]:
        """Persist a new project. The result carries the assigned id and created_at."""
        project = _coerce(ProjectCreate, data)
        return await self._create("create_project", COLLECTION_PROJECTS, project.to_document(), Project)

    async def get_projects(self) -> StorageResult[list[Project]]:
        """All projects, newest first."""
        return await self._list("get_projects", COLLECTION_PROJECTS, Project)

    async def update_project(
        self, project_id: str, updates: ProjectUpdate | Mapping[str, Any]
    ) -> StorageResult[bool]:
        """Apply a partial update. value is False when the project does not exist."""
        partial = _coerce(ProjectUpdate, updates).to_document()
        return await self._update("update_project", COLLECTION_PROJECTS, project_id, partial)

    async def delete_project(self, project_id: str) -> StorageResult[bool]:
        """Delete a project; its records are kept."""
        return await self._delete("delete_project", COLLECTION_PROJECTS, project_id)

    # ------------------------------------------------------------------
    # Personal records
    # ------------------------------------------------------------------

    async def create_personal_record(
        self, data: PersonalRecordCreate | Mapping[str, Any]
    ) -> StorageResult[PersonalRecord]:
        record = _coerce(PersonalRecordCreate, data)
        return await self._create(
            "create_personal_record", COLLECTION_PERSONAL_RECORDS, record.to_document(), PersonalRecord
        )

    async def get_personal_records(
        self, project_id: str | None = None
    ) -> StorageResult[list[PersonalRecord]]:
        return await self._list(
            "get_personal_records", COLLECTION_PERSONAL_RECORDS, PersonalRecord, project_id
        )

    async def delete_personal_record(self, record_id: str) -> StorageResult[bool]:
        return await self._delete("delete_personal_record", COLLECTION_PERSONAL_RECORDS, record_id)

    # ------------------------------------------------------------------
    # Coordinator records
    # ------------------------------------------------------------------

    async def create_coordinator_record(
        self, data: CoordinatorRecordCreate | Mapping[str, Any]
    ) -> StorageResult[CoordinatorRecord]:
        record = _coerce(CoordinatorRecordCreate, data)
        return await self._create(
            "create_coordinator_record",
            COLLECTION_COORDINATOR_RECORDS,
            record.to_document(),
            CoordinatorRecord,
        )

    async def get_coordinator_records(
        self, project_id: str | None = None
    ) -> StorageResult[list[CoordinatorRecord]]:
        return await self._list(
            "get_coordinator_records", COLLECTION_COORDINATOR_RECORDS, CoordinatorRecord, project_id
        )

    async def delete_coordinator_record(self, record_id: str) -> StorageResult[bool]:
        return await self._delete(
            "delete_coordinator_record", COLLECTION_COORDINATOR_RECORDS, record_id
        )

    async def update_record_fields(
        self, record_type: RecordType, record_id: str, fields: dict[str, Any]
    ) -> StorageResult[bool]:
        """Overwrite stored fields (camelCase keys) of one record.

        Only used by diagnostics cleanup to clear photo references; records
        are otherwise immutable through this facade.
        """
        return await self._update(
            f"update_{record_type.value}_record", RECORD_COLLECTIONS[record_type], record_id, fields
        )

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------

    async def upload_photo(
        self,
        image_bytes: bytes,
        hint_path: str | None = None,
        options: PhotoUploadOptions | None = None,
    ) -> StorageResult[str]:
        """Store one photo and return its reference.

        Tries each configured remote backend in order; when none accepts
        the photo it is normalized to an inline data URI.

        Raises:
            PayloadTooLargeException: The inline fallback cannot fit the size budget.
        """
        opts = options or PhotoUploadOptions()
        location = location_from_options(opts, hint_path=hint_path)
        content_type = opts.content_type or sniff_mime_type(image_bytes)
        timeout = self._settings.operation_timeout_seconds
        chain = self._drivers.photo_chain()
        failed: list[str] = []

        for kind, driver in chain:
            try:
                result = await asyncio.wait_for(
                    driver.upload_photo(image_bytes, location, content_type), timeout
                )
            except TimeoutError:
                error = f"timed out after {timeout:g}s"
            except Exception as e:
                error = str(e) or type(e).__name__
            else:
                if result.success and result.value:
                    return StorageResult(result.value, kind, degraded=bool(failed))
                error = result.error or "no reference returned"
            logger.warning("Photo upload to %s failed (%s); trying next backend", driver.name, error)
            failed.append(driver.name)

        if failed:
            logger.warning("All photo backends failed (%s); storing photo inline", ", ".join(failed))
        normalized = await normalize_to_budget_async(
            image_bytes, self._settings.photo_size_budget_bytes
        )
        logger.debug("Photo stored inline (%d bytes)", normalized.byte_size)
        return StorageResult(normalized.data_uri, BackendKind.INLINE, degraded=bool(chain))

    async def upload_photos(
        self,
        items: Iterable[tuple[bytes, PhotoUploadOptions | None]],
        hint_path: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> list[StorageResult[str]]:
        """Upload a submission's photos one after another.

        on_progress receives a percentage after each photo; the sequence
        never decreases and ends at 100. The first failure propagates and
        the remaining photos are not uploaded.
        """
        pending = list(items)
        results = []
        for index, (image_bytes, options) in enumerate(pending, start=1):
            results.append(await self.upload_photo(image_bytes, hint_path, options))
            if on_progress is not None:
                on_progress(round(index * 100 / len(pending)))
        return results

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def is_cloud_mode(self) -> bool:
        """True when records go to the cloud document store."""
        return self._backends.document_store.is_ready

    def get_storage_info(self) -> StorageInfo:
        if self._backends.document_store.is_ready:
            mode = StorageMode.CLOUD if self._backends.object_store.is_ready else StorageMode.HYBRID
            record_backend = BackendKind.DOCUMENT_STORE
        else:
            mode = StorageMode.LOCAL
            record_backend = BackendKind.LOCAL
        photo_backends = [driver.name for _, driver in self._drivers.photo_chain()]
        photo_backends.append(BackendKind.INLINE.value)
        return StorageInfo(
            mode=mode,
            description=_MODE_DESCRIPTIONS[mode],
            record_backend=record_backend,
            photo_backends=photo_backends,
        )

    async def _probe(self, driver) -> BackendHealth:
        timeout = self._settings.connect_timeout_seconds
        try:
            connected = await asyncio.wait_for(driver.check_connection(), timeout)
        except TimeoutError:
            return BackendHealth(True, False, f"no answer within {timeout:g}s")
        except Exception as e:
            return BackendHealth(True, False, str(e) or type(e).__name__)
        return BackendHealth(True, connected, None if connected else "connection check failed")

    async def check_storage_status(self) -> StorageStatus:
        """Probe every configured backend concurrently within the connect timeout."""
        configs = {
            "document_store": (self._backends.document_store, self._drivers.documents),
            "object_store": (self._backends.object_store, self._drivers.object_store),
            "webdav": (self._backends.webdav, self._drivers.webdav),
            "nas": (self._backends.nas, self._drivers.nas),
            "local": (None, self._drivers.local),
        }
        health: dict[str, BackendHealth] = {}
        probes = {}
        for key, (config, driver) in configs.items():
            if driver is not None:
                probes[key] = self._probe(driver)
            else:
                health[key] = BackendHealth(False, False, config.reason if config else None)
        for key, outcome in zip(probes, await asyncio.gather(*probes.values())):
            health[key] = outcome

        primary = health["document_store"]
        if primary.configured:
            connected, error = primary.connected, primary.error
        else:
            connected, error = False, "Document store not configured; using local storage"
        return StorageStatus(
            configured=primary.configured,
            connected=connected,
            error=error,
            storage_type=self.get_storage_info().mode.value,
            backends=dict(sorted(health.items())),
            checked_at=utc_now(),
        )
