from __future__ import annotations

import pytest

from pastestore.domain.codec import MalformedRecord, decode, encode
from pastestore.domain.models import PasteRecord, PasteState, ms_to_iso
from pastestore.domain.state_machine import (
    InvalidPasteStateTransition,
    state_of,
    validate_transition,
)


NOW = 1_700_000_000_000


# ---------------------------------------------------------------------------
# Record codec
# ---------------------------------------------------------------------------


def test_decode_inverts_encode() -> None:
    record = PasteRecord(
        content="multi\nline <b>text</b> ünïcode",
        ttl_seconds=3600,
        max_views=7,
        created_at=NOW,
        views=3,
    )

    assert decode(encode(record)) == record


def test_decode_accepts_bytes_and_mappings() -> None:
    payload = {"content": "hi", "ttl_seconds": 0, "max_views": 1, "created_at": NOW, "views": 0}

    from_bytes = decode(b'{"content": "hi", "max_views": 1, "created_at": 1700000000000}')
    from_mapping = decode(payload)

    assert from_bytes == from_mapping == PasteRecord(content="hi", max_views=1, created_at=NOW)


def test_decode_defaults_missing_and_ill_typed_fields() -> None:
    record = decode(
        '{"content": 42, "ttl_seconds": "10", "max_views": -3, "views": true}',
        clock=lambda: NOW,
    )

    assert record == PasteRecord(content="", ttl_seconds=0, max_views=0, created_at=NOW, views=0)


def test_decode_accepts_integral_floats() -> None:
    record = decode('{"content": "x", "views": 2.0, "created_at": 1700000000000.0}')

    assert record.views == 2
    assert record.created_at == NOW


@pytest.mark.parametrize("raw", ["not json", "[1, 2, 3]", '"just a string"', "null", b"\xff\xfe"])
def test_decode_rejects_unparsable_payloads(raw: object) -> None:
    with pytest.raises(MalformedRecord):
        decode(raw)


# ---------------------------------------------------------------------------
# Expiry rules
# ---------------------------------------------------------------------------


def test_time_expiry_is_exclusive_of_the_expiry_instant() -> None:
    record = PasteRecord(content="x", ttl_seconds=5, created_at=NOW)

    assert record.expires_at == NOW + 5000
    assert not record.is_time_expired(NOW + 5000)
    assert record.is_time_expired(NOW + 5001)


def test_zero_limits_mean_unlimited() -> None:
    record = PasteRecord(content="x", created_at=NOW, views=10_000)

    assert record.expires_at is None
    assert record.remaining_views is None
    assert not record.is_expired(NOW + 10**12)


def test_view_rules_differ_before_and_after_increment() -> None:
    at_cap = PasteRecord(content="x", max_views=2, created_at=NOW, views=2)
    past_cap = PasteRecord(content="x", max_views=2, created_at=NOW, views=3)

    assert at_cap.is_view_exhausted()
    assert not at_cap.is_view_overdrawn()
    assert past_cap.is_view_overdrawn()
    assert past_cap.remaining_views == 0


def test_ms_to_iso_uses_millisecond_utc_format() -> None:
    assert ms_to_iso(NOW + 7) == "2023-11-14T22:13:20.007Z"


def test_ms_to_iso_clamps_instants_past_year_9999() -> None:
    assert ms_to_iso(10**15) == "9999-12-31T23:59:59.999Z"
    assert ms_to_iso(10**18) == "9999-12-31T23:59:59.999Z"


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


def test_state_of_classifies_records() -> None:
    active = PasteRecord(content="x", max_views=1, created_at=NOW)
    used_up = PasteRecord(content="x", max_views=1, created_at=NOW, views=1)

    assert state_of(None, NOW) is PasteState.ABSENT
    assert state_of(active, NOW) is PasteState.ACTIVE
    assert state_of(used_up, NOW) is PasteState.EXPIRED


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (PasteState.ABSENT, PasteState.ACTIVE),
        (PasteState.ACTIVE, PasteState.EXPIRED),
        (PasteState.ACTIVE, PasteState.ABSENT),
        (PasteState.EXPIRED, PasteState.ABSENT),
        (PasteState.ACTIVE, PasteState.ACTIVE),
    ],
)
def test_allowed_transitions_pass(current: PasteState, target: PasteState) -> None:
    validate_transition(current, target)


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (PasteState.EXPIRED, PasteState.ACTIVE),
        (PasteState.ABSENT, PasteState.EXPIRED),
    ],
)
def test_invalid_state_transition_fails(current: PasteState, target: PasteState) -> None:
    with pytest.raises(InvalidPasteStateTransition):
        validate_transition(current, target)
