"""Canonical identity resolution for raw Amplitude records."""

from __future__ import annotations

from typing import Any, Mapping

from core.constants import DEFAULT_CUSTOM_ID_FIELD


def resolve_identity(
    record: Mapping[str, Any],
    custom_id_field: str = DEFAULT_CUSTOM_ID_FIELD,
) -> Any | None:
    """Resolve the subject identifier of a raw record.

    The nested ``user_properties`` value is used first; a top-level field
    with the same name overrides it.

    Args:
        record: Raw Amplitude record.
        custom_id_field: Field name holding the subject id.

    Returns:
        The identifier, or None when neither location carries one.
    """
    identity: Any | None = None
    user_properties = record.get("user_properties")
    if isinstance(user_properties, Mapping) and _is_present(user_properties.get(custom_id_field)):
        identity = user_properties[custom_id_field]
    if _is_present(record.get(custom_id_field)):
        identity = record[custom_id_field]
    return identity


def _is_present(value: Any) -> bool:
    """Return whether a raw id value counts as set."""
    return value is not None and value != ""
