"""Timestamp helpers shared by the stores and the photo naming scheme.

Stored timestamps are timezone-aware UTC. The local store writes them as
ISO-8601 with an explicit offset; Firestore expects RFC 3339 with a "Z"
suffix. Photo names use the record date and the capture clock time.
"""

from datetime import UTC, date, datetime

RECORD_DATE_FORMAT = "%Y-%m-%d"
CAPTURE_TIME_FORMAT = "%H-%M-%S"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Convert dt to UTC; naive values are taken to already be UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_iso_utc(dt: datetime) -> str:
    """createdAt value for the local store, e.g. 2024-03-05T14:07:09.123456+00:00."""
    return ensure_utc(dt).isoformat()


def to_rfc3339_z(dt: datetime) -> str:
    """Firestore timestampValue, e.g. 2024-03-05T14:07:09.123456Z."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_iso_utc(value: str) -> datetime:
    """Parse a stored timestamp ("Z" or an offset) into an aware UTC datetime.

    Raises:
        ValueError: value is not ISO-8601.
    """
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def format_record_date(value: date | datetime) -> str:
    return value.strftime(RECORD_DATE_FORMAT)


def format_capture_time(value: datetime) -> str:
    return value.strftime(CAPTURE_TIME_FORMAT)
