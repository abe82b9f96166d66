"""Firestore REST value encoding for record documents.

Records hold strings, numbers, booleans, nulls, string lists (photo
URLs, recycle types) and the createdAt timestamp. Anything else is a
programming error and raises TypeError.
"""

import re
from datetime import datetime
from typing import Any

from fieldlog.shared.utils.datetime import ensure_utc, to_rfc3339_z

# Firestore returns up to nanosecond precision; datetime keeps microseconds
_FRACTION = re.compile(r"\.(\d{6})\d+")


def encode_value(value: Any) -> dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": to_rfc3339_z(value)}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    raise TypeError(f"cannot store {type(value).__name__} in a Firestore record")


def encode_fields(data: dict[str, Any]) -> dict[str, Any]:
    return {key: encode_value(value) for key, value in data.items()}


def encode_document(data: dict[str, Any]) -> dict[str, Any]:
    """Request body for createDocument / patch."""
    return {"fields": encode_fields(data)}


def parse_timestamp(raw: str) -> datetime:
    """Firestore timestampValue (RFC 3339, up to nanoseconds) as an aware UTC datetime."""
    return ensure_utc(datetime.fromisoformat(_FRACTION.sub(r".\1", raw).replace("Z", "+00:00")))


_SCALARS = ("stringValue", "booleanValue", "doubleValue")


def decode_value(obj: dict[str, Any]) -> Any:
    for kind in _SCALARS:
        if kind in obj:
            return obj[kind]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "timestampValue" in obj:
        return parse_timestamp(obj["timestampValue"])
    if "arrayValue" in obj:
        return [decode_value(item) for item in obj["arrayValue"].get("values") or []]
    if "mapValue" in obj:
        return {k: decode_value(v) for k, v in (obj["mapValue"].get("fields") or {}).items()}
    # nullValue, and value kinds records never use (bytes, geo points, references)
    return None


def decode_document(document: dict[str, Any] | None) -> dict[str, Any]:
    """Stored fields of a REST Document as plain Python values."""
    if not document:
        return {}
    return {k: decode_value(v) for k, v in (document.get("fields") or {}).items()}


def document_id(document: dict[str, Any]) -> str:
    """Last segment of the Document resource name."""
    return document.get("name", "").rsplit("/", 1)[-1]
