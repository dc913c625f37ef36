"""Transform binding per record type."""

from __future__ import annotations

from functools import partial

from core.constants import RECORD_TYPE_EVENT, RECORD_TYPE_GROUP, RECORD_TYPE_USER, RECORD_TYPES
from core.errors import ConfigError
from core.types import Transform, TransformOptions
from transforms.event_transform import amplitude_event_to_mixpanel
from transforms.profile_transforms import amplitude_group_to_mixpanel, amplitude_user_to_mixpanel

_TRANSFORMS = {
    RECORD_TYPE_EVENT: amplitude_event_to_mixpanel,
    RECORD_TYPE_USER: amplitude_user_to_mixpanel,
    RECORD_TYPE_GROUP: amplitude_group_to_mixpanel,
}


def build_transform(record_type: str, options: TransformOptions) -> Transform:
    """Bind the transform for a record type to its options.

    Args:
        record_type: One of ``event``, ``user`` or ``group``.
        options: Options shared by all records of one invocation.

    Returns:
        Single-argument callable mapping a raw record.

    Raises:
        ConfigError: If the record type is unknown.
    """
    transform = _TRANSFORMS.get(record_type)
    if transform is None:
        raise ConfigError(
            f"Unsupported record type '{record_type}'. Supported types: {RECORD_TYPES}."
        )
    return partial(transform, options=options)
