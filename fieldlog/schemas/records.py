"""Record schemas: Project, PersonalRecord, CoordinatorRecord.

Stored documents use camelCase field names (projectId, createdAt, ...)
in both the document store and the local fallback, so a record has the
same shape whichever backend persisted it. Python code uses the
snake_case attribute names.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from fieldlog.domain.enums import ProjectStatus


class _StoredModel(BaseModel):
    """Base for models persisted as camelCase documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict[str, Any]:
        """Return the storable document (camelCase keys, JSON-compatible values)."""
        return self.model_dump(
            by_alias=True, mode="json", exclude={"id", "created_at"}
        )


def _check_decimal(value: str, field: str) -> str:
    value = value.strip()
    if value:
        try:
            float(value)
        except ValueError:
            raise ValueError(f"{field} must be a decimal number, got {value!r}") from None
    return value


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


class ProjectCreate(_StoredModel):
    """Input for creating a project."""

    name: str = Field(min_length=1)
    description: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    status: ProjectStatus = ProjectStatus.PLANNING
    director: str = ""
    budget: str = ""
    notes: str = ""


class Project(ProjectCreate):
    """Persisted project."""

    id: str
    created_at: datetime


class ProjectUpdate(_StoredModel):
    """Partial project update; only fields that were set are written."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    location: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    status: ProjectStatus | None = None
    director: str | None = None
    budget: str | None = None
    notes: str | None = None

    @field_validator("*")
    @classmethod
    def _no_nulls(cls, v: Any, info) -> Any:
        # Stored projects have no nullable fields; omitted fields stay unchanged
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null; omit it to leave it unchanged")
        return v

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_unset=True)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class _RecordBase(_StoredModel):
    notes: str = ""
    project_id: str | None = None
    project_name: str | None = None


class PersonalRecordCreate(_RecordBase):
    """Input for a personal mileage record."""

    name: str = Field(min_length=1)
    date: str
    mileage: str = ""
    start_location: str = ""
    end_location: str = ""
    departure_photo_url: str | None = None
    return_photo_url: str | None = None

    @field_validator("mileage")
    @classmethod
    def _mileage_decimal(cls, v: str) -> str:
        return _check_decimal(v, "mileage")


class PersonalRecord(PersonalRecordCreate):
    """Persisted personal record."""

    id: str
    created_at: datetime

    def photo_fields(self) -> dict[str, str | None]:
        """Photo reference per stored field name."""
        return {
            "departurePhotoUrl": self.departure_photo_url,
            "returnPhotoUrl": self.return_photo_url,
        }


class CoordinatorRecordCreate(_RecordBase):
    """Input for a coordinator site-metrics record."""

    date: str
    coordinator_name: str = Field(min_length=1)
    location: str = ""
    electricity_usage: str = ""
    electricity_start_reading: str = ""
    electricity_end_reading: str = ""
    water_weight: str = ""
    water_bottle_count: str = ""
    food_waste_weight: str = ""
    meal_count: str = ""
    recycle_weight: str = ""
    recycle_types: list[str] = Field(default_factory=list)
    photo_urls: list[str] = Field(default_factory=list)

    @field_validator(
        "electricity_usage",
        "electricity_start_reading",
        "electricity_end_reading",
        "water_weight",
        "water_bottle_count",
        "food_waste_weight",
        "meal_count",
        "recycle_weight",
    )
    @classmethod
    def _readings_decimal(cls, v: str, info) -> str:
        return _check_decimal(v, info.field_name)


class CoordinatorRecord(CoordinatorRecordCreate):
    """Persisted coordinator record."""

    id: str
    created_at: datetime
