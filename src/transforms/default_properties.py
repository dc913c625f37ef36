"""Amplitude to Mixpanel default-property table.

Amplitude ships device and location data as top-level scalar fields;
Mixpanel expects them under its reserved ``$`` property names.
"""

from __future__ import annotations

from typing import Any, MutableMapping

# Order matters: one source field may feed several destinations.
DEFAULT_PROPERTY_PAIRS: tuple[tuple[str, str], ...] = (
    ("app_version", "$app_version_string"),
    ("os_name", "$os"),
    ("os_name", "$browser"),
    ("os_version", "$os_version"),
    ("device_brand", "$brand"),
    ("device_manufacturer", "$manufacturer"),
    ("device_model", "$model"),
    ("region", "$region"),
    ("city", "$city"),
)


def backfill_default_properties(
    raw_record: MutableMapping[str, Any],
    properties: MutableMapping[str, Any],
) -> None:
    """Fill unset destination properties from raw default fields.

    Each populated source field is popped from ``raw_record`` as soon as it
    is copied, so a later pair reading the same field finds nothing.

    Args:
        raw_record: Working copy of the raw record; consumed fields are popped.
        properties: Destination properties; existing values are kept.
    """
    for source_field, destination_field in DEFAULT_PROPERTY_PAIRS:
        value = raw_record.get(source_field)
        if not value:
            continue
        if properties.get(destination_field) is None:
            properties[destination_field] = value
        raw_record.pop(source_field, None)


def assign_default_properties(
    raw_record: MutableMapping[str, Any],
    profile_set: MutableMapping[str, Any],
) -> None:
    """Copy populated raw default fields into a profile ``$set``.

    Unlike ``backfill_default_properties`` this always overwrites.
    """
    for source_field, destination_field in DEFAULT_PROPERTY_PAIRS:
        value = raw_record.get(source_field)
        if value:
            profile_set[destination_field] = value
