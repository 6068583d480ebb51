"""Resynchronisation, de-interleaving and differential decoding of OQPSK soft symbols."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

INTLV_BRANCHES = 36
INTLV_DELAY = 2048
INTLV_BASE_LEN = INTLV_BRANCHES * INTLV_DELAY
INTLV_DATA_LEN = 72
INTLV_SYNCDATA = 80

SYNCD_DEPTH = 4
SYNCD_BUF_MARGIN = SYNCD_DEPTH * INTLV_SYNCDATA
SYNCD_BLOCK_SIZ = (SYNCD_DEPTH + 1) * INTLV_SYNCDATA
SYNCD_BUF_STEP = (SYNCD_DEPTH - 1) * INTLV_SYNCDATA

_LOOKAHEAD_FRAMES = 128
_ISQRT_MAX = 16384
_ISQRT_TABLE = tuple(math.isqrt(idx) for idx in range(_ISQRT_MAX + 1))

__all__ = [
    "DiffDecoder",
    "byte_at_offset",
    "find_sync",
    "resync_stream",
    "deinterleave",
    "isqrt",
    "INTLV_BASE_LEN",
    "INTLV_BRANCHES",
    "INTLV_DATA_LEN",
    "INTLV_SYNCDATA",
]


def _to_int8(value: int) -> int:
    return (value + 128) % 256 - 128


def byte_at_offset(data: Sequence[int], offset: int = 0) -> int:
    """Hard-decide 8 soft symbols starting at ``offset`` into a byte, LSB first.

    A symbol below 128 is taken as a one bit.
    """
    symbols = data[offset:offset + 8]
    if offset < 0 or len(symbols) < 8:
        raise ValueError("need 8 symbols at the given offset")
    result = 0
    for bit, symbol in enumerate(symbols):
        if symbol < 128:
            result |= 1 << bit
    return result


def find_sync(
    data: Sequence[int],
    start: int = 0,
    block_size: int = SYNCD_BLOCK_SIZ,
    step: int = INTLV_SYNCDATA,
    depth: int = SYNCD_DEPTH,
) -> tuple[int, int] | None:
    """Find a byte repeated ``depth`` more times at ``step`` intervals.

    Returns ``(offset, sync_byte)`` with ``offset`` relative to ``start``,
    or ``None`` when no such train begins within the block.
    """
    limit = block_size - step * depth
    available = len(data) - start - step * depth - 7
    for i in range(max(0, min(limit, available))):
        position = start + i
        sync = byte_at_offset(data, position)
        if all(
            byte_at_offset(data, position + j * step) == sync
            for j in range(1, depth + 1)
        ):
            return i, sync
    return None


def resync_stream(raw: Sequence[int]) -> bytes:
    """Strip the sync words from an 80-symbol framed stream and join the data."""
    size = len(raw)
    search_limit = size - SYNCD_BUF_MARGIN
    track_limit = size - INTLV_SYNCDATA
    out = bytearray()
    posn = 0

    while posn < search_limit:
        found = find_sync(raw, posn)
        if found is None:
            posn += SYNCD_BUF_STEP
            continue
        offset, sync = found
        posn += offset

        while posn < track_limit:
            # Look ahead so that a weak frame does not lose the sync train.
            lookahead_end = min(track_limit, posn + _LOOKAHEAD_FRAMES * INTLV_SYNCDATA)
            if not any(
                byte_at_offset(raw, tmp) == sync
                for tmp in range(posn, lookahead_end, INTLV_SYNCDATA)
            ):
                break
            out.extend(raw[posn + 8:posn + 8 + INTLV_DATA_LEN])
            posn += INTLV_SYNCDATA

    return bytes(out)


def deinterleave(raw: Sequence[int]) -> bytes:
    """Resynchronise ``raw`` and undo the convolutional interleaver.

    Raises ``ValueError`` when no sync train is found in the stream.
    """
    resync = resync_stream(raw)
    size = len(resync)
    if not size or size >= len(raw):
        raise ValueError("stream resynchronisation failed")

    out = bytearray(size)
    for idx in range(size):
        src = idx + (idx % INTLV_BRANCHES) * INTLV_BASE_LEN
        if src < size:
            out[idx] = resync[src]
    return bytes(out)


def isqrt(value: int) -> int:
    """Signed integer square root, wrapped into the signed 8-bit range."""
    magnitude = abs(value)
    if magnitude > _ISQRT_MAX:
        raise ValueError(f"isqrt argument out of range: {value}")
    root = _to_int8(_ISQRT_TABLE[magnitude])
    return root if value >= 0 else _to_int8(-root)


@dataclass
class DiffDecoder:
    """Undoes differential coding of interleaved I/Q soft symbols across calls."""

    prev_i: int = 0
    prev_q: int = 0

    def decode(self, buffer: Sequence[int]) -> list[int]:
        """Return the differentially decoded copy of an I/Q soft symbol buffer."""
        if len(buffer) % 2:
            raise ValueError("buffer must hold whole I/Q pairs")
        out: list[int] = []
        prev_i, prev_q = self.prev_i, self.prev_q
        it = iter(buffer)
        for sym_i, sym_q in zip(it, it):
            out.append(isqrt(sym_i * prev_i))
            out.append(isqrt(-sym_q * prev_q))
            prev_i, prev_q = sym_i, sym_q
        self.prev_i, self.prev_q = prev_i, prev_q
        return out