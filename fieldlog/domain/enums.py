"""Domain enumerations for fieldlog."""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class ProjectStatus(_ValuesMixin, str, Enum):
    """Project lifecycle status."""

    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"


class RecordType(_ValuesMixin, str, Enum):
    """Kind of data-collection record a photo belongs to."""

    PERSONAL = "personal"
    COORDINATOR = "coordinator"


class PhotoRole(_ValuesMixin, str, Enum):
    """Role of a photo within a personal record (or a generic site photo)."""

    DEPARTURE = "departure"
    RETURN = "return"
    SITE = "site"


class PhotoCategory(_ValuesMixin, str, Enum):
    """Coordinator data category a site photo documents."""

    ELECTRICITY = "electricity"
    WATER = "water"
    MEAL = "meal"
    RECYCLE = "recycle"


class BackendKind(_ValuesMixin, str, Enum):
    """Backend that served an operation or holds a photo reference."""

    DOCUMENT_STORE = "document_store"
    OBJECT_STORE = "object_store"
    WEBDAV = "webdav"
    NAS = "nas"
    LOCAL = "local"
    INLINE = "inline"
    EXTERNAL = "external"


class StorageMode(_ValuesMixin, str, Enum):
    """Overall storage mode reported by get_storage_info()."""

    CLOUD = "cloud"
    HYBRID = "hybrid"
    LOCAL = "local"
