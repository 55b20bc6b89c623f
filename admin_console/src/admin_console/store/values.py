"""
Conversion between Python values and Firestore REST typed values.

Firestore's REST API wraps every field in a single-key object naming its type,
e.g. ``{"stringValue": "hi"}`` or ``{"timestampValue": "2024-01-01T00:00:00Z"}``.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from dateutil import parser as date_parser


def encode_value(value: Any) -> Dict[str, Any]:
    """Wrap a Python value in its Firestore typed-value object."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        # int64 travels as a decimal string
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": format_timestamp(value)}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, bytes):
        raise TypeError("bytes fields are not supported")
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a Firestore value")


def decode_value(typed: Dict[str, Any]) -> Any:
    """Unwrap a Firestore typed-value object into a Python value."""
    if "nullValue" in typed:
        return None
    if "booleanValue" in typed:
        return bool(typed["booleanValue"])
    if "integerValue" in typed:
        return int(typed["integerValue"])
    if "doubleValue" in typed:
        return float(typed["doubleValue"])
    if "timestampValue" in typed:
        return parse_timestamp(typed["timestampValue"])
    if "stringValue" in typed:
        return typed["stringValue"]
    if "referenceValue" in typed:
        return typed["referenceValue"]
    if "mapValue" in typed:
        return decode_fields(typed["mapValue"].get("fields", {}))
    if "arrayValue" in typed:
        return [decode_value(item) for item in typed["arrayValue"].get("values", [])]
    if "geoPointValue" in typed:
        return dict(typed["geoPointValue"])
    if "bytesValue" in typed:
        return typed["bytesValue"]
    raise ValueError(f"Unknown Firestore value type: {sorted(typed)}")


def encode_fields(data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    return {key: encode_value(value) for key, value in data.items()}


def decode_fields(fields: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return {key: decode_value(value) for key, value in fields.items()}


def format_timestamp(value: datetime) -> str:
    """RFC 3339 UTC timestamp with microsecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(value: str) -> datetime:
    # Firestore returns nanosecond precision which fromisoformat rejects.
    return date_parser.isoparse(_trim_fraction(value))


def _trim_fraction(value: str) -> str:
    if "." not in value:
        return value
    head, _, tail = value.partition(".")
    digits = ""
    for char in tail:
        if not char.isdigit():
            break
        digits += char
    return f"{head}.{digits[:6]}{tail[len(digits):]}"
