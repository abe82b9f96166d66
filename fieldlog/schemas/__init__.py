"""Schemas: stored record models and result types."""

from fieldlog.schemas.diagnostics import (
    CleanupResult,
    DiagnosticsReport,
    InconsistentReference,
)
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
    PhotoLocation,
    PhotoUploadOptions,
    StorageInfo,
    StorageResult,
    StorageStatus,
)

__all__ = [
    "BackendHealth",
    "CleanupResult",
    "CoordinatorRecord",
    "CoordinatorRecordCreate",
    "DiagnosticsReport",
    "DriverResult",
    "InconsistentReference",
    "PersonalRecord",
    "PersonalRecordCreate",
    "PhotoLocation",
    "PhotoUploadOptions",
    "Project",
    "ProjectCreate",
    "ProjectUpdate",
    "StorageInfo",
    "StorageResult",
    "StorageStatus",
]
