"""Unit tests for the Amplitude to Mixpanel event transform."""

from __future__ import annotations

import copy

import pytest

from core.constants import SOURCE_TAG
from core.errors import TransformError
from core.types import TransformOptions
from transforms.event_transform import amplitude_event_to_mixpanel, to_epoch_millis

_FULL_RECORD = {
    "event_type": "page_view",
    "user_id": "u1",
    "device_id": "d-1",
    "event_time": "2023-04-10 11:00:00.000000",
    "$insert_id": "ins-1",
    "ip_address": "10.0.0.1",
    "city": "Berlin",
    "region": "Berlin",
    "country": "DE",
    "os_name": "Chrome",
    "os_version": "112",
    "app_version": "1.4.0",
    "event_properties": {"page": "/home"},
    "user_properties": {"plan": "free"},
    "group_properties": {"company": "Acme"},
    "global_user_properties": {"ignored": True},
    "groups": {"company_id": "c-1"},
    "data": {"path": "/2/httpapi"},
    "custom_flag": "kept",
}


def test_event_transform_sets_canonical_properties() -> None:
    """Canonical Mixpanel fields should come from the raw record."""
    event = amplitude_event_to_mixpanel(_FULL_RECORD)
    properties = event["properties"]

    assert event["event"] == "page_view"
    assert properties["$user_id"] == "u1"
    assert properties["$device_id"] == "d-1"
    assert properties["time"] == 1681124400000
    assert properties["$insert_id"] == "ins-1"
    assert properties["ip"] == "10.0.0.1"
    assert properties["$city"] == "Berlin"
    assert properties["mp_country_code"] == "DE"
    assert properties["$source"] == SOURCE_TAG


def test_event_transform_merges_nested_and_leftover_properties() -> None:
    """Custom, group, user and leftover fields should all reach properties."""
    properties = amplitude_event_to_mixpanel(_FULL_RECORD)["properties"]

    assert properties["page"] == "/home"
    assert properties["company_id"] == "c-1"
    assert properties["plan"] == "free"
    assert properties["custom_flag"] == "kept"
    assert properties["$os"] == "Chrome" and "$browser" not in properties
    assert properties["$app_version_string"] == "1.4.0"


def test_event_transform_strips_consumed_fields() -> None:
    """Consumed raw fields should not be duplicated into properties."""
    properties = amplitude_event_to_mixpanel(_FULL_RECORD)["properties"]

    for field_name in (
        "user_id",
        "device_id",
        "event_time",
        "event_properties",
        "user_properties",
        "group_properties",
        "global_user_properties",
        "groups",
        "data",
        "os_name",
        "app_version",
    ):
        assert field_name not in properties


def test_event_transform_leaves_raw_record_untouched() -> None:
    """The transform should work on a copy of the raw record."""
    record = copy.deepcopy(_FULL_RECORD)

    amplitude_event_to_mixpanel(record)

    assert record == _FULL_RECORD


def test_event_properties_beat_leftover_fields() -> None:
    """An event property should win over a leftover raw field of the same name."""
    record = {"event_type": "e", "event_time": 0, "event_properties": {"x": 1}, "x": 2}

    properties = amplitude_event_to_mixpanel(record)["properties"]

    assert properties["x"] == 1


def test_user_properties_beat_event_properties() -> None:
    """User properties merge above event properties and groups."""
    record = {
        "event_type": "e",
        "event_time": 0,
        "event_properties": {"plan": "event", "team": "event"},
        "groups": {"team": "group"},
        "user_properties": {"plan": "user"},
    }

    properties = amplitude_event_to_mixpanel(record)["properties"]

    assert (properties["plan"], properties["team"]) == ("user", "group")


def test_canonical_fields_beat_custom_properties() -> None:
    """Canonical fields should override colliding custom properties."""
    record = {
        "event_type": "e",
        "event_time": 0,
        "device_id": "real",
        "event_properties": {"$device_id": "spoofed", "$source": "other"},
    }

    properties = amplitude_event_to_mixpanel(record)["properties"]

    assert properties["$device_id"] == "real" and properties["$source"] == SOURCE_TAG


def test_missing_device_and_identity_are_distinct() -> None:
    """Missing device id becomes an empty string; missing identity has no key."""
    properties = amplitude_event_to_mixpanel({"event_type": "e", "event_time": 0})["properties"]

    assert properties["$device_id"] == ""
    assert "$user_id" not in properties


def test_custom_id_field_drives_user_id() -> None:
    """A configured id field should replace user_id as the identity."""
    record = {
        "event_type": "e",
        "event_time": 0,
        "user_id": "internal",
        "user_properties": {"email": "a@example.com"},
    }

    properties = amplitude_event_to_mixpanel(
        record, TransformOptions(custom_id_field="email")
    )["properties"]

    assert properties["$user_id"] == "a@example.com"
    assert properties["user_id"] == "internal"


@pytest.mark.parametrize(
    ("raw_value", "expected"),
    [
        ("2024-01-01T00:00:00Z", 1704067200000),
        ("2024-01-01T01:00:00+01:00", 1704067200000),
        ("2024-01-01 00:00:00.250000", 1704067200250),
        ("2024-01-01T00:00:00.5Z", 1704067200500),
        ("2024-01-01T00:00:00.123456789Z", 1704067200123),
        ("2024-01-01T05:30:00+0530", 1704067200000),
        ("2023-12-31T19:00:00-05", 1704067200000),
        (1704067200, 1704067200000),
        (1704067200000, 1704067200000),
        ("1704067200", 1704067200000),
    ],
)
def test_to_epoch_millis_normalizes_to_utc(raw_value: object, expected: int) -> None:
    """ISO strings, Amplitude timestamps and epoch numbers should map to UTC ms."""
    assert to_epoch_millis(raw_value) == expected


def test_to_epoch_millis_rejects_garbage() -> None:
    """Unparseable timestamps should raise a transform error."""
    with pytest.raises(TransformError):
        to_epoch_millis("yesterday-ish")


def test_event_transform_never_skips() -> None:
    """Even an almost empty record should produce an event."""
    event = amplitude_event_to_mixpanel({})

    assert event["event"] is None
    assert isinstance(event["properties"]["$device_id"], str)
    assert isinstance(event["properties"]["time"], int)


def test_event_transform_sets_os_but_not_browser() -> None:
    """os_name should fill $os and be consumed before the $browser pair."""
    properties = amplitude_event_to_mixpanel({"event_type": "e", "event_time": 0, "os_name": "iOS"})[
        "properties"
    ]

    assert properties["$os"] == "iOS"
    assert "$browser" not in properties
    assert "os_name" not in properties
