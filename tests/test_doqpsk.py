import random

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lrptdemod.doqpsk import (
    INTLV_BRANCHES,
    INTLV_DATA_LEN,
    DiffDecoder,
    byte_at_offset,
    deinterleave,
    find_sync,
    isqrt,
    resync_stream,
)

SYNC_WORD = 0x27


def encode_byte(value):
    return [0 if (value >> bit) & 1 else 255 for bit in range(8)]


def make_stream(frames, lead=0, seed=1):
    rng = random.Random(seed)
    stream = [rng.randrange(256) for _ in range(lead)]
    payloads = []
    for _ in range(frames):
        payload = [rng.randrange(256) for _ in range(INTLV_DATA_LEN)]
        payloads.append(payload)
        stream.extend(encode_byte(SYNC_WORD))
        stream.extend(payload)
    return stream, payloads


@given(st.integers(0, 255))
def test_byte_at_offset_round_trip(value):
    assert byte_at_offset(encode_byte(value)) == value


def test_byte_at_offset_uses_offset():
    data = [255] * 3 + encode_byte(SYNC_WORD)
    assert byte_at_offset(data, 3) == SYNC_WORD


def test_byte_at_offset_short_data_raises():
    with pytest.raises(ValueError):
        byte_at_offset([0, 0, 0], 0)


def test_find_sync_locates_train():
    stream, _ = make_stream(8, lead=5)
    assert find_sync(stream, 0) == (5, SYNC_WORD)


def test_find_sync_relative_to_start():
    stream, _ = make_stream(8, lead=21)
    assert find_sync(stream, 10) == (11, SYNC_WORD)


def test_find_sync_none_on_noise():
    rng = random.Random(7)
    noise = [rng.randrange(256) for _ in range(400)]
    assert find_sync(noise, 0) is None


def test_resync_stream_strips_sync_words():
    stream, payloads = make_stream(20)
    out = resync_stream(stream)
    expected = bytes(sym for payload in payloads[:-1] for sym in payload)
    assert out == expected


def test_resync_stream_skips_leading_garbage():
    stream, payloads = make_stream(20, lead=37)
    out = resync_stream(stream)
    assert len(out) % INTLV_DATA_LEN == 0
    assert out[:INTLV_DATA_LEN] == bytes(payloads[0])


def test_resync_stream_too_short_is_empty():
    assert resync_stream([0] * 100) == b""


def test_deinterleave_short_stream_keeps_branch_zero():
    stream, _ = make_stream(20)
    resync = resync_stream(stream)
    out = deinterleave(stream)
    assert len(out) == len(resync)
    for idx, value in enumerate(out):
        if idx % INTLV_BRANCHES == 0:
            assert value == resync[idx]
        else:
            assert value == 0


def test_deinterleave_without_sync_raises():
    with pytest.raises(ValueError):
        deinterleave([0] * 100)


@given(st.integers(0, 16383))
def test_isqrt_is_floor_root(value):
    root = isqrt(value)
    assert root * root <= value < (root + 1) * (root + 1)


@given(st.integers(1, 16383))
def test_isqrt_is_odd(value):
    assert isqrt(-value) == -isqrt(value)


def test_isqrt_out_of_range():
    with pytest.raises(ValueError):
        isqrt(16385)
    with pytest.raises(ValueError):
        isqrt(-20000)


def test_diff_decoder_fresh_first_pair_is_zero():
    out = DiffDecoder().decode([50, -70, 3, 4])
    assert out[:2] == [0, 0]
    assert len(out) == 4


def test_diff_decoder_odd_length_raises():
    with pytest.raises(ValueError):
        DiffDecoder().decode([1, 2, 3])


pairs = st.lists(
    st.tuples(st.integers(-128, 127), st.integers(-128, 127)), min_size=1, max_size=20
)


@given(pairs, st.integers(0, 20))
def test_diff_decoder_state_carries_between_calls(symbols, split):
    flat = [value for pair in symbols for value in pair]
    cut = 2 * min(split, len(symbols))
    whole = DiffDecoder().decode(flat)
    decoder = DiffDecoder()
    parts = decoder.decode(flat[:cut]) + decoder.decode(flat[cut:])
    assert parts == whole
    assert (decoder.prev_i, decoder.prev_q) == symbols[-1]


@given(pairs)
def test_diff_decoder_sign_follows_product(symbols):
    flat = [value for pair in symbols for value in pair]
    out = DiffDecoder().decode(flat)
    for idx in range(2, len(flat), 2):
        product = flat[idx] * flat[idx - 2]
        if 0 < product < 16384:
            assert out[idx] > 0 or product < 1
        elif -16384 < product < 0:
            assert out[idx] < 0