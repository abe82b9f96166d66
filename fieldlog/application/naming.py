"""Path/name synthesis for uploaded photos.

One canonical naming scheme shared by every upload driver:

    personal:    {project}/personal/{person}/{date}
    coordinator: {project}/coordinator/{date}[/{category}]
    filename:    {date}_{time}_{discriminator}_{label}.{ext}

Pure functions: the same inputs always give the same output. Only "/"
separates segments; drivers encode segments for their own protocol.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum

from fieldlog.core.constants import (
    COORDINATOR_DISCRIMINATOR,
    DEFAULT_EXTENSION,
    PHOTO_LABELS,
    UNKNOWN_PERSON,
    UNKNOWN_PROJECT,
    UNSPECIFIED_LABEL,
)
from fieldlog.domain.enums import RecordType
from fieldlog.schemas.results import PhotoLocation, PhotoUploadOptions
from fieldlog.shared.utils.datetime import format_capture_time, format_record_date, utc_now

_UNSAFE_SEGMENT = re.compile(r"[/\\\x00-\x1f\x7f]+")
_EXTENSION = re.compile(r"^[a-z0-9]{1,8}$")


def _enum_value(value: Enum | str | None) -> str | None:
    if isinstance(value, Enum):
        return str(value.value)
    return value


def clean_segment(value: str | None, default: str) -> str:
    """Make value usable as a single path segment (no separators, no control chars)."""
    if value is None:
        return default
    cleaned = _UNSAFE_SEGMENT.sub("-", value).strip().strip(".")
    return cleaned or default


def photo_label(key: Enum | str | None) -> str:
    """Label for a photo role or category; 'unspecified' when unmapped."""
    raw = _enum_value(key)
    if not raw:
        return UNSPECIFIED_LABEL
    return PHOTO_LABELS.get(raw.strip().lower(), UNSPECIFIED_LABEL)


def file_extension(original_filename: str | None) -> str:
    """Lower-cased extension of original_filename, or the default when absent or odd."""
    if not original_filename or "." not in original_filename:
        return DEFAULT_EXTENSION
    ext = original_filename.rsplit(".", 1)[1].strip().lower()
    return ext if _EXTENSION.match(ext) else DEFAULT_EXTENSION


def _date_str(record_date: str | date | None, captured_at: datetime) -> str:
    if record_date is None or record_date == "":
        return format_record_date(captured_at)
    if isinstance(record_date, date):
        return format_record_date(record_date)
    return clean_segment(str(record_date), format_record_date(captured_at))


def storage_key(
    project_name: str | None,
    record_type: RecordType | str,
    date_str: str,
    *,
    person_name: str | None = None,
    category: Enum | str | None = None,
) -> str:
    """Hierarchical key for the directory a photo lives in."""
    project = clean_segment(project_name, UNKNOWN_PROJECT)
    if RecordType(_enum_value(record_type)) is RecordType.PERSONAL:
        person = clean_segment(person_name, UNKNOWN_PERSON)
        return f"{project}/personal/{person}/{date_str}"
    key = f"{project}/coordinator/{date_str}"
    raw_category = _enum_value(category)
    if raw_category:
        key = f"{key}/{clean_segment(raw_category.lower(), UNSPECIFIED_LABEL)}"
    return key


def synthesize_photo_location(
    project_name: str | None,
    record_type: RecordType | str,
    *,
    person_name: str | None = None,
    category: Enum | str | None = None,
    photo_role: Enum | str | None = None,
    record_date: str | date | None = None,
    captured_at: datetime | None = None,
    original_filename: str | None = None,
) -> PhotoLocation:
    """Return the storage key and filename for one photo.

    Args:
        project_name: Project the record belongs to (None -> unknown-project).
        record_type: personal or coordinator.
        person_name: Person on a personal record.
        category: Coordinator data category (electricity, water, meal, recycle).
        photo_role: departure / return / site.
        record_date: Record date; defaults to the capture date.
        captured_at: Capture instant; only read from the clock when omitted.
        original_filename: Source filename, used for the extension.

    Raises:
        ValueError: record_type is not personal or coordinator.
    """
    instant = captured_at or utc_now()
    kind = RecordType(_enum_value(record_type))
    date_str = _date_str(record_date, instant)
    time_str = format_capture_time(instant)

    if kind is RecordType.PERSONAL:
        discriminator = clean_segment(person_name, UNKNOWN_PERSON)
        label = photo_label(photo_role)
    else:
        discriminator = COORDINATOR_DISCRIMINATOR
        label = photo_label(category) if _enum_value(category) else photo_label(photo_role)

    key = storage_key(
        project_name, kind, date_str, person_name=person_name, category=category
    )
    filename = f"{date_str}_{time_str}_{discriminator}_{label}.{file_extension(original_filename)}"
    return PhotoLocation(storage_key=key, filename=filename)


def location_from_options(
    options: PhotoUploadOptions,
    *,
    hint_path: str | None = None,
    captured_at: datetime | None = None,
) -> PhotoLocation:
    """Build a PhotoLocation from upload options.

    Without a record type the photo is filed under the hint path (or
    "other") with a generic site label.
    """
    if options.record_type is None:
        instant = captured_at or utc_now()
        date_str = _date_str(options.date, instant)
        base = "/".join(
            clean_segment(part, "other")
            for part in (hint_path or "other").split("/")
            if part.strip()
        ) or "other"
        filename = (
            f"{date_str}_{format_capture_time(instant)}_"
            f"{clean_segment(options.user_name, 'photo')}_{photo_label(options.photo_type)}"
            f".{file_extension(options.filename)}"
        )
        return PhotoLocation(storage_key=f"{base}/{date_str}", filename=filename)
    return synthesize_photo_location(
        options.project_name,
        options.record_type,
        person_name=options.user_name,
        category=options.category,
        photo_role=options.photo_type,
        record_date=options.date,
        captured_at=captured_at,
        original_filename=options.filename,
    )
