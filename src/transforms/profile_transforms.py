"""Amplitude record to Mixpanel profile transforms.

User and group transforms return None when a record has nothing to
contribute; the importer counts those as skipped, not failed.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.types import DestinationRecord, RawRecord, TransformOptions
from transforms.default_properties import assign_default_properties
from transforms.identity import resolve_identity


def amplitude_user_to_mixpanel(
    raw_record: RawRecord,
    options: TransformOptions = TransformOptions(),
) -> DestinationRecord | None:
    """Map one raw record to a Mixpanel user profile update.

    Args:
        raw_record: Raw Amplitude export record; left unmodified.
        options: Bound transform options.

    Returns:
        ``$set`` profile update, or None without user properties or identity.
    """
    user_properties = raw_record.get("user_properties")
    if not isinstance(user_properties, Mapping) or not user_properties:
        return None
    distinct_id = resolve_identity(raw_record, options.custom_id_field)
    if distinct_id is None:
        return None
    profile_set: dict[str, Any] = dict(user_properties)
    assign_default_properties(raw_record, profile_set)
    return {
        "$distinct_id": distinct_id,
        "$ip": raw_record.get("ip_address"),
        "$set": profile_set,
    }


def amplitude_group_to_mixpanel(
    raw_record: RawRecord,
    options: TransformOptions = TransformOptions(),
) -> DestinationRecord | None:
    """Map one raw record to a Mixpanel group profile update.

    Group key and id are left as None; no mapping from Amplitude ``groups``
    onto a Mixpanel group key is defined.

    Args:
        raw_record: Raw Amplitude export record; left unmodified.
        options: Bound transform options.

    Returns:
        ``$set`` group update, or None without group properties or identity.
    """
    group_properties = raw_record.get("group_properties")
    if not isinstance(group_properties, Mapping) or not group_properties:
        return None
    if resolve_identity(raw_record, options.custom_id_field) is None:
        return None
    return {
        "$group_key": None,
        "$group_id": None,
        "$set": dict(group_properties),
    }
