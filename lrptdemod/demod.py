"""QPSK / DOQPSK / interleaved DOQPSK demodulator producing soft symbol frames."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .agc import Agc
from .doqpsk import DiffDecoder, deinterleave
from .filters import RrcFilter
from .pll import CostasLoop, ModScheme

SOFT_FRAME_LEN = 16384
DEMOD_BUF_SIZE = 3 * SOFT_FRAME_LEN

PLL_AVE_RANGE1 = 0.6
PLL_AVE_RANGE2 = 3.0
AGC_RANGE1 = 1.2
AGC_AVE_RANGE = 2000.0

RESYNC_SCALE = {
    ModScheme.QPSK: 2000000.0,
    ModScheme.DOQPSK: 2000000.0,
    ModScheme.IDOQPSK: 2000000.0,
}

__all__ = ["DemodConfig", "Demodulator", "clamp_int8", "SOFT_FRAME_LEN"]


def clamp_int8(value: float) -> int:
    """Clamp to the signed 8-bit range, never rounding a non-zero value to zero."""
    if value < -128.0:
        return -128
    if value > 127.0:
        return 127
    if 0.0 < value < 1.0:
        return 1
    if -1.0 < value < 0.0:
        return -1
    return int(value)


def _clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, value))


@dataclass(frozen=True)
class DemodConfig:
    """Receiver settings that drive the demodulator."""

    symbol_rate: int
    interp_factor: int
    costas_bandwidth: float
    psk_mode: ModScheme
    rrc_order: int
    rrc_alpha: float
    pll_locked: float
    pll_unlocked: float


class Demodulator:
    """Recovers timing and carrier from baseband samples and emits soft symbol frames.

    Frames are ``SOFT_FRAME_LEN`` interleaved I/Q soft symbols. The three-section
    window the image decoder reads is available as :attr:`soft_buffer`.
    """

    def __init__(self, config: DemodConfig, sample_rate: float) -> None:
        if config.symbol_rate <= 0:
            raise ValueError("symbol rate must be positive")
        if config.interp_factor < 1:
            raise ValueError("interpolation factor must be at least 1")
        if sample_rate <= 0:
            raise ValueError("sample rate must be positive")

        self.config = config
        self.mode = ModScheme(config.psk_mode)
        self.sym_rate = config.symbol_rate
        self.agc = Agc()
        pll_bw = 2.0 * math.pi * config.costas_bandwidth / config.symbol_rate
        self.costas = CostasLoop(
            pll_bw,
            self.mode,
            config.pll_locked,
            config.pll_unlocked,
            config.interp_factor,
        )
        self.sym_period = config.interp_factor * sample_rate / config.symbol_rate
        osf = sample_rate / config.symbol_rate
        self.rrc = RrcFilter(config.rrc_order, config.interp_factor, osf, config.rrc_alpha)

        self._sp2 = self.sym_period / 2.0
        self._sp2p1 = self._sp2 + 1.0
        self._resync_scale = RESYNC_SCALE[self.mode]

        self._resync_offset = 0.0
        self._before = 0j
        self._middle = 0j
        self._inphase = 0j
        self._prev_i = 0.0

        self._buffer = [0] * DEMOD_BUF_SIZE
        self._fill = 0
        self._diff = DiffDecoder()
        self._raw = bytearray()

        self._step = {
            ModScheme.QPSK: self._step_qpsk,
            ModScheme.DOQPSK: self._step_doqpsk,
            ModScheme.IDOQPSK: self._step_idoqpsk,
        }[self.mode]

    @property
    def soft_buffer(self) -> list[int]:
        """Copy of the three-section soft symbol window."""
        return list(self._buffer)

    def process(self, sample: complex) -> list[int] | None:
        """Demodulate one filtered sample; return a completed frame or ``None``."""
        return self._step(complex(sample))

    def run(self, i_samples: Iterable[float], q_samples: Iterable[float]) -> Iterator[list[int]]:
        """Filter and demodulate I/Q samples, yielding frames while the PLL is locked."""
        for sym_i, sym_q in zip(i_samples, q_samples, strict=True):
            cdata = complex(sym_i, sym_q)
            for _ in range(self.config.interp_factor):
                fdata = self.rrc.forward(cdata)
                frame = self.process(fdata)
                if frame is not None and self.costas.locked:
                    yield frame

    def finish(self) -> list[list[int]]:
        """Stop reception and flush buffered symbols.

        For the interleaved mode the raw symbols gathered so far are
        resynchronised and de-interleaved; the resulting frames are returned
        if the PLL is locked. Raises ``ValueError`` if resynchronisation fails.
        Other modes hold nothing back and return an empty list.
        """
        if self.mode is not ModScheme.IDOQPSK:
            return []

        raw = bytes(self._raw)
        self._raw.clear()
        symbols = [(value + 128) % 256 - 128 for value in deinterleave(raw)]

        frames: list[list[int]] = []
        pos = 0
        while pos < len(symbols):
            take = min(SOFT_FRAME_LEN - self._fill, len(symbols) - pos)
            start = 2 * SOFT_FRAME_LEN + self._fill
            self._buffer[start:start + take] = symbols[pos:pos + take]
            self._fill += take
            pos += take
            if self._fill >= SOFT_FRAME_LEN:
                frame = self._complete_frame(diffcode=True)
                if self.costas.locked:
                    frames.append(frame)
        return frames

    def agc_gain(self) -> tuple[float, float]:
        """AGC gauge level in 0..1 and the current AGC gain."""
        gain = self.agc.gain
        return _clamp_unit(-math.log10(gain) / AGC_RANGE1), gain

    def signal_level(self) -> tuple[float, int]:
        """Signal gauge level in 0..1 and the average sample magnitude."""
        average = self.agc.average
        return _clamp_unit(average / AGC_AVE_RANGE), int(average)

    def pll_average(self) -> float:
        """Costas lock quality gauge level in 0..1."""
        ret = self.costas.moving_average - PLL_AVE_RANGE1
        return _clamp_unit(1.0 - PLL_AVE_RANGE2 * ret)

    def _in_middle(self) -> bool:
        return self._sp2 <= self._resync_offset < self._sp2p1

    def _store(self, symbol: complex) -> None:
        base = 2 * SOFT_FRAME_LEN + self._fill
        self._buffer[base] = clamp_int8(symbol.real / 2.0)
        self._buffer[base + 1] = clamp_int8(symbol.imag / 2.0)
        self._fill += 2

    def _complete_frame(self, diffcode: bool) -> list[int]:
        lower = self._buffer[2 * SOFT_FRAME_LEN:]
        if diffcode:
            lower = self._diff.decode(lower)
            self._buffer[2 * SOFT_FRAME_LEN:] = lower
        self._buffer[:2 * SOFT_FRAME_LEN] = self._buffer[SOFT_FRAME_LEN:]
        self._fill = 0
        return list(lower)

    def _adjust_timing(self, error_term: float) -> None:
        self._resync_offset -= self.sym_period
        self._resync_offset += error_term * self.sym_period / self._resync_scale

    def _step_qpsk(self, fdata: complex) -> list[int] | None:
        if self._in_middle():
            self._middle = self.agc.apply(fdata)
        elif self._resync_offset >= self.sym_period:
            current = self.agc.apply(fdata)
            self._adjust_timing((current.imag - self._before.imag) * self._middle.imag)
            self._before = current

            current = self.costas.mix(current)
            self.costas.correct_phase(self.costas.delta(current, current))
            self._resync_offset += 1.0

            self._store(current)
            if self._fill >= SOFT_FRAME_LEN:
                return self._complete_frame(diffcode=False)
            return None
        self._resync_offset += 1.0
        return None

    def _offset_symbol(self, fdata: complex) -> tuple[complex, complex] | None:
        """Shared offset-QPSK timing and carrier step; returns (quad, current) on a symbol."""
        if self._in_middle():
            self._inphase = self.costas.mix(self.agc.apply(fdata))
            self._middle = complex(self._prev_i, self._inphase.imag)
            self._prev_i = self._inphase.real
        elif self._resync_offset >= self.sym_period:
            quad = self.costas.mix(self.agc.apply(fdata))
            current = complex(self._prev_i, quad.imag)
            self._prev_i = quad.real

            self._adjust_timing((quad.imag - self._before.imag) * self._middle.imag)
            self._before = current

            self.costas.correct_phase(self.costas.delta(self._inphase, quad))
            self._resync_offset += 1.0
            return quad, current
        self._resync_offset += 1.0
        return None

    def _step_doqpsk(self, fdata: complex) -> list[int] | None:
        result = self._offset_symbol(fdata)
        if result is None:
            return None
        self._store(result[1])
        if self._fill >= SOFT_FRAME_LEN:
            return self._complete_frame(diffcode=True)
        return None

    def _step_idoqpsk(self, fdata: complex) -> None:
        result = self._offset_symbol(fdata)
        if result is not None:
            current = result[1]
            self._raw.append(clamp_int8(current.real / 2.0) & 0xFF)
            self._raw.append(clamp_int8(current.imag / 2.0) & 0xFF)
        return None