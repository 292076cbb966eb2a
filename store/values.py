"""Conversion between Python values and the document store's typed values.

The REST API wraps every field in a single-key dict naming its type, e.g.
``{"stringValue": "x"}`` or ``{"mapValue": {"fields": {...}}}``.
"""
from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict

from django.utils.dateparse import parse_datetime


def encode_value(value: Any) -> Dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    # bool first, it is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt_timezone.utc)
        stamp = value.astimezone(dt_timezone.utc).isoformat().replace("+00:00", "Z")
        return {"timestampValue": stamp}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    return {"stringValue": str(value)}


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: encode_value(val) for key, val in data.items()}


def decode_value(value: Dict[str, Any]) -> Any:
    if not value:
        return None
    kind, raw = next(iter(value.items()))
    if kind == "nullValue":
        return None
    if kind == "integerValue":
        return int(raw)
    if kind == "doubleValue":
        return float(raw)
    if kind == "timestampValue":
        return parse_datetime(raw)
    if kind == "mapValue":
        return decode_fields(raw.get("fields", {}))
    if kind == "arrayValue":
        return [decode_value(v) for v in raw.get("values", [])]
    # stringValue, booleanValue, referenceValue, bytesValue
    return raw


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_value(val) for key, val in (fields or {}).items()}


def decode_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a REST document into ``{"id", "create_time", "update_time", "data"}``.

    ``update_time`` stays the raw RFC 3339 string; write preconditions need
    its full nanosecond precision.
    """
    name = document.get("name", "")
    return {
        "id": name.rsplit("/", 1)[-1],
        "create_time": parse_datetime(document["createTime"]) if document.get("createTime") else None,
        "update_time": document.get("updateTime", ""),
        "data": decode_fields(document.get("fields", {})),
    }
