"""Domain layer: enums and exceptions.

No dependencies on infrastructure. Used by application and
infrastructure layers.
"""

from fieldlog.domain.enums import (
    BackendKind,
    PhotoCategory,
    PhotoRole,
    ProjectStatus,
    RecordType,
    StorageMode,
)
from fieldlog.domain.exceptions import (
    CleanupNotConfirmedException,
    ConfigurationException,
    FieldlogException,
    PayloadTooLargeException,
    StorageFatalException,
    ValidationException,
)

__all__ = [
    # Enums
    "BackendKind",
    "PhotoCategory",
    "PhotoRole",
    "ProjectStatus",
    "RecordType",
    "StorageMode",
    # Exceptions
    "CleanupNotConfirmedException",
    "ConfigurationException",
    "FieldlogException",
    "PayloadTooLargeException",
    "StorageFatalException",
    "ValidationException",
]
