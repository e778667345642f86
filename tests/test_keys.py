"""Tests for the key codec."""

from __future__ import annotations

import pytest

from chronotrie_core.hlc.models import Timestamp
from chronotrie_core.merkle import (
    Key,
    KeyCodec,
    MalformedKeyError,
    OutOfRangeError,
    decode,
    encode,
)

MINUTE = 60_000


# ── Key ──────────────────────────────────────────────────────────────


def test_key_from_base3_str():
    assert Key.from_base3_str("0120").digits == (0, 1, 2, 0)


def test_key_str_roundtrip():
    assert str(Key.from_base3_str("2101")) == "2101"


def test_key_rejects_bad_digit():
    with pytest.raises(MalformedKeyError):
        Key((0, 1, 3))


def test_key_rejects_bad_string():
    with pytest.raises(MalformedKeyError):
        Key.from_base3_str("0193")


def test_pop_front_most_significant_first():
    """The first digit popped is the leftmost one."""
    digit, rest = Key.from_base3_str("120").pop_front()
    assert digit == 1
    assert str(rest) == "20"


def test_pop_front_leaves_original_untouched():
    key = Key.from_base3_str("210")
    key.pop_front()
    assert str(key) == "210"


def test_pop_front_empty_raises():
    with pytest.raises(IndexError):
        Key().pop_front()


def test_keys_order_like_their_digits():
    assert Key.from_base3_str("0012") < Key.from_base3_str("0020")


# ── encode / decode ──────────────────────────────────────────────────


def test_encode_ten_minutes():
    """Minute 10 is 101 in base 3, left-padded to 16 digits."""
    assert str(encode(10 * MINUTE)) == "0000000000000101"


@pytest.mark.parametrize("millis", [0, 1, 59_999, 60_000, 1_700_000_000_000, 3**16 * MINUTE - 1])
def test_encode_fixed_length_base3(millis: int):
    key = encode(millis)
    assert len(key) == 16
    assert set(str(key)) <= {"0", "1", "2"}


@pytest.mark.parametrize("millis", [0, 59_999, 60_000, 123_456_789, 1_700_000_000_123])
def test_decode_recovers_minute_floor(millis: int):
    """Round trip is lossy: only the minute bucket survives."""
    assert decode(encode(millis)) == (millis // MINUTE) * MINUTE


def test_bucket_boundary():
    assert encode(59_999) == encode(0)
    assert str(encode(59_999)) == "0" * 16
    assert str(encode(60_000)) == "0" * 15 + "1"


def test_encode_out_of_range():
    with pytest.raises(OutOfRangeError):
        encode(3**16 * MINUTE)


def test_encode_negative_millis():
    with pytest.raises(OutOfRangeError):
        encode(-1)


def test_out_of_range_is_value_error():
    assert issubclass(OutOfRangeError, ValueError)


def test_decode_wrong_length():
    with pytest.raises(MalformedKeyError):
        decode(Key.from_base3_str("101"))


# ── KeyCodec ─────────────────────────────────────────────────────────


def test_codec_custom_depth():
    codec = KeyCodec(depth=4)
    assert str(codec.encode(10 * MINUTE)) == "0101"
    assert codec.max_bucket == 80


def test_codec_custom_bucket():
    codec = KeyCodec(depth=4, bucket_ms=1000)
    assert str(codec.encode(10_999)) == "0101"
    assert codec.decode(Key.from_base3_str("0101")) == 10_000


def test_codec_small_depth_overflows():
    with pytest.raises(OutOfRangeError):
        KeyCodec(depth=2).encode(9 * MINUTE)


def test_codec_rejects_nonpositive_depth():
    with pytest.raises(ValueError):
        KeyCodec(depth=0)


def test_prefix_start():
    """A prefix covers the range starting at its zero-padded key."""
    codec = KeyCodec(depth=4)
    assert codec.prefix_start(Key.from_base3_str("01")) == 9 * MINUTE
    assert codec.prefix_start(Key()) == 0


def test_prefix_start_too_long():
    with pytest.raises(MalformedKeyError):
        KeyCodec(depth=2).prefix_start(Key.from_base3_str("000"))


def test_key_for_ignores_counter_and_origin():
    codec = KeyCodec()
    a = Timestamp(10 * MINUTE + 5, 0, "a")
    b = Timestamp(10 * MINUTE + 50_000, 7, "b")
    assert codec.key_for(a) == codec.key_for(b)


def test_timestamp_for_is_partial_inverse():
    codec = KeyCodec()
    ts = codec.timestamp_for(Key.from_base3_str("0000000000000101"))
    assert ts == Timestamp.from_millis(10 * MINUTE)
    assert ts.counter == 0
    assert ts.origin == ""


def test_codec_equality():
    assert KeyCodec() == KeyCodec(depth=16, bucket_ms=60_000)
    assert KeyCodec(depth=8) != KeyCodec()
