"""Amplitude event to Mixpanel event transform.

Every raw record yields exactly one Mixpanel event. Property precedence,
lowest to highest: event properties, groups, user properties, canonical
fields. Default-property backfill only fills gaps, and leftover raw fields
sit beneath everything.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from core.constants import SOURCE_TAG
from core.errors import TransformError
from core.types import DestinationRecord, RawRecord, TransformOptions
from transforms.default_properties import backfill_default_properties
from transforms.identity import resolve_identity

CONSUMED_FIELDS = (
    "device_id",
    "event_time",
    "$insert_id",
    "user_properties",
    "group_properties",
    "global_user_properties",
    "event_properties",
    "groups",
    "data",
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)
# Numeric timestamps below this are epoch seconds, above it epoch milliseconds.
_SECONDS_CUTOFF = 100_000_000_000
_ISO_PARTS = re.compile(
    r"(?P<stamp>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2})?)"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}(?::?\d{2})?)?"
)


def amplitude_event_to_mixpanel(
    raw_record: RawRecord,
    options: TransformOptions = TransformOptions(),
) -> DestinationRecord:
    """Map one raw Amplitude record to a Mixpanel event.

    Args:
        raw_record: Raw Amplitude export record; left unmodified.
        options: Bound transform options.

    Returns:
        Mixpanel event with ``event`` and ``properties`` keys.

    Raises:
        TransformError: If ``event_time`` cannot be parsed.
    """
    working = dict(raw_record)
    canonical = _canonical_properties(working, options.custom_id_field)
    properties: dict[str, Any] = {
        **_as_mapping(working.get("event_properties")),
        **_as_mapping(working.get("groups")),
        **_as_mapping(working.get("user_properties")),
        **canonical,
    }
    working.pop(options.custom_id_field, None)
    for field_name in CONSUMED_FIELDS:
        working.pop(field_name, None)
    backfill_default_properties(working, properties)
    return {
        "event": raw_record.get("event_type"),
        "properties": {**working, **properties},
    }


def to_epoch_millis(value: Any) -> int:
    """Convert an Amplitude timestamp into UTC epoch milliseconds.

    Args:
        value: ISO-8601 string, Amplitude ``YYYY-MM-DD HH:MM:SS.ffffff``
            string, or epoch seconds/milliseconds. Naive values are UTC.

    Returns:
        Epoch milliseconds. Missing values map to the current time.

    Raises:
        TransformError: If the value cannot be interpreted as a time.
    """
    if value is None or value == "":
        return (datetime.now(timezone.utc) - _EPOCH) // _MILLISECOND
    if isinstance(value, bool):
        raise TransformError(f"Invalid event_time {value!r}: expected timestamp.")
    if isinstance(value, (int, float)):
        return _numeric_to_millis(value)
    if not isinstance(value, str):
        raise TransformError(f"Invalid event_time {value!r}: expected string or number.")
    text = value.strip()
    try:
        return _numeric_to_millis(float(text))
    except ValueError:
        pass
    return _iso_to_millis(text)


def _canonical_properties(record: Mapping[str, Any], custom_id_field: str) -> dict[str, Any]:
    """Build the canonical Mixpanel properties for one record."""
    device_id = record.get("device_id")
    canonical: dict[str, Any] = {
        "$device_id": "" if device_id is None else str(device_id),
        "time": to_epoch_millis(record.get("event_time")),
        "$insert_id": record.get("$insert_id"),
        "ip": record.get("ip_address"),
        "$city": record.get("city"),
        "$region": record.get("region"),
        "mp_country_code": record.get("country"),
        "$source": SOURCE_TAG,
    }
    user_id = resolve_identity(record, custom_id_field)
    if user_id is not None:
        canonical["$user_id"] = user_id
    return canonical


def _iso_to_millis(text: str) -> int:
    """Parse an ISO-8601 style string into epoch milliseconds."""
    normalized = _normalize_iso(text)
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as error:
        raise TransformError(
            f"Invalid event_time '{text}': expected ISO-8601 or epoch timestamp."
        ) from error
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // _MILLISECOND


def _numeric_to_millis(value: float) -> int:
    """Interpret a number as epoch seconds or milliseconds."""
    if value != value or value in (float("inf"), float("-inf")):
        raise TransformError(f"Invalid event_time {value!r}: expected finite number.")
    if abs(value) < _SECONDS_CUTOFF:
        return int(round(value * 1000))
    return int(value)


def _as_mapping(value: Any) -> Mapping[str, Any]:
    """Return value if it is a mapping, else an empty dict."""
    return value if isinstance(value, Mapping) else {}


def _normalize_iso(text: str) -> str:
    """Rewrite fractions to microseconds and offsets to ``+HH:MM``."""
    match = _ISO_PARTS.fullmatch(text)
    if match is None:
        return text
    normalized = match.group("stamp")
    fraction = match.group("fraction")
    if fraction:
        normalized += "." + fraction[:6].ljust(6, "0")
    offset = match.group("offset")
    if offset in ("Z", "z"):
        normalized += "+00:00"
    elif offset:
        digits = offset[1:].replace(":", "").ljust(4, "0")
        normalized += f"{offset[0]}{digits[:2]}:{digits[2:]}"
    return normalized
