"""Diagnostics report types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from fieldlog.domain.enums import RecordType


@dataclass(frozen=True)
class InconsistentReference:
    """A remote photo reference whose target no longer exists.

    index is the position in a coordinator record's photo list; None for
    personal record fields.
    """

    record_type: RecordType
    record_id: str
    owner: str
    field: str
    reference: str
    index: int | None = None

    @property
    def locator(self) -> str:
        """Human-readable location, e.g. 'personal/Chen/departure photo'."""
        if self.index is not None:
            where = f"photo {self.index + 1}"
        elif self.field == "departurePhotoUrl":
            where = "departure photo"
        elif self.field == "returnPhotoUrl":
            where = "return photo"
        else:
            where = self.field
        return f"{self.record_type.value}/{self.owner}/{where}"


@dataclass(frozen=True)
class DiagnosticsReport:
    """Result of DiagnosticsScanner.scan()."""

    counts_by_backend: dict[str, int]
    total_referenced_photos: int
    inconsistent_references: list[InconsistentReference] = field(default_factory=list)
    stored_object_count: int = 0
    unavailable_backends: list[str] = field(default_factory=list)
    scanned_at: datetime | None = None


@dataclass(frozen=True)
class CleanupResult:
    """Result of cleanup_inconsistent_references()."""

    cleaned: int
    records_updated: int = 0
