"""Shared utilities: timestamps and local id generation."""

from fieldlog.shared.utils.datetime import (
    ensure_utc,
    format_capture_time,
    format_record_date,
    parse_iso_utc,
    to_iso_utc,
    to_rfc3339_z,
    utc_now,
)
from fieldlog.shared.utils.generators import generate_local_id

__all__ = [
    "ensure_utc",
    "format_capture_time",
    "format_record_date",
    "generate_local_id",
    "parse_iso_utc",
    "to_iso_utc",
    "to_rfc3339_z",
    "utc_now",
]
