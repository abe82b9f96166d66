"""Result types passed across the driver and adapter boundaries (no I/O)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Generic, TypeVar

from fieldlog.domain.enums import BackendKind, PhotoCategory, PhotoRole, RecordType, StorageMode

T = TypeVar("T")


@dataclass(frozen=True)
class DriverResult(Generic[T]):
    """Tagged driver outcome. Drivers return this instead of raising for expected failures.

    not_found marks update/delete against a missing id: a signal for the
    caller, not a backend failure.
    """

    success: bool
    value: T | None = None
    error: str | None = None
    not_found: bool = False

    @classmethod
    def ok(cls, value: T | None = None) -> DriverResult[T]:
        return cls(True, value)

    @classmethod
    def fail(cls, error: str, value: T | None = None) -> DriverResult[T]:
        return cls(False, value, error=error)

    @classmethod
    def missing(cls, value: T | None = None) -> DriverResult[T]:
        return cls(True, value, not_found=True)


@dataclass(frozen=True)
class StorageResult(Generic[T]):
    """Adapter outcome: the value plus which backend served it.

    degraded is True when the value came from a fallback because the
    preferred backend failed, so callers can show a sync-pending hint.
    """

    value: T
    backend: BackendKind
    degraded: bool = False


@dataclass(frozen=True)
class PhotoUploadOptions:
    """Metadata used to name an uploaded photo."""

    project_name: str | None = None
    record_type: RecordType | None = None
    user_name: str | None = None
    date: str | date | None = None
    photo_type: PhotoRole | str | None = None
    category: PhotoCategory | str | None = None
    filename: str | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class PhotoLocation:
    """Synthesized storage key and filename for one photo."""

    storage_key: str
    filename: str

    @property
    def full_path(self) -> str:
        return f"{self.storage_key}/{self.filename}"


@dataclass(frozen=True)
class StorageInfo:
    """Static description of the configured storage layout."""

    mode: StorageMode
    description: str
    record_backend: BackendKind
    photo_backends: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class BackendHealth:
    """Connectivity of one configured backend."""

    configured: bool
    connected: bool
    error: str | None = None


@dataclass(frozen=True)
class StorageStatus:
    """Result of check_storage_status()."""

    configured: bool
    connected: bool
    error: str | None
    storage_type: str
    backends: dict[str, BackendHealth] = field(default_factory=dict)
    checked_at: datetime | None = None
