"""Pixel and gauge computations for the waterfall, constellation and level displays."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .pll import ModScheme

QPSK_CONST_POINTS = 512
AMPL_AVE_WIN = 4
AMPL_AVE_MUL = 3
TRANSITION_BAND = 0.2
RED_THRESHOLD = 4.0
GREEN_THRESHOLD = 1.5

__all__ = [
    "BinScaler",
    "colorize",
    "waterfall_row",
    "constellation_points",
    "gauge_colors",
    "gauge_width",
    "pll_frequency",
    "QPSK_CONST_POINTS",
]

Rgb = tuple[int, int, int]


def colorize(value: int) -> Rgb:
    """Map a 0..255 intensity to a black-blue-green-yellow-orange colour."""
    if value < 64:
        return 0, 0, (3 + value * 4) & 0xFF
    if value < 128:
        n = value - 127
        return 0, (255 + n * 4) & 0xFF, (3 - n * 4) & 0xFF
    if value < 192:
        n = value - 191
        return (255 + n * 4) & 0xFF, 255, 0
    n = value - 255
    return 255, (66 - n * 3) & 0xFF, 0


@dataclass
class BinScaler:
    """Averages FFT bin power and scales it to 0..255 against the last line's peak."""

    bin_val: int = 0
    bin_max: int = 1000
    peak: int = 0

    def value(self, sum_i: int, sum_q: int) -> int:
        """Feed one bin and return its scaled intensity."""
        self.bin_val = (
            self.bin_val * AMPL_AVE_MUL + sum_i * sum_i + sum_q * sum_q
        ) // AMPL_AVE_WIN
        self.peak = max(self.peak, self.bin_val)
        return min(255, (255 * self.bin_val) // self.bin_max)

    def reset(self) -> None:
        """End a line: the recorded peak becomes the scale for the next one."""
        self.bin_max = self.peak or 1
        self.peak = 0


def _pairs(values: Iterable[int]) -> Iterable[tuple[int, int]]:
    it = iter(values)
    return zip(it, it)


def waterfall_row(ifft_data: Sequence[int], scaler: BinScaler) -> list[Rgb]:
    """Colour one waterfall line from interleaved I/Q FFT output.

    Positive frequencies come first, then the negative ones excluding DC.
    """
    length = len(ifft_data)
    half = length // 2
    quarter = length // 4
    positive = ifft_data[half:half + 2 * quarter]
    negative = ifft_data[2:2 * quarter]
    row = [colorize(scaler.value(i, q)) for i, q in _pairs(positive)]
    row.extend(colorize(scaler.value(i, q)) for i, q in _pairs(negative))
    scaler.reset()
    return row


def constellation_points(
    buffer: Sequence[int],
    center_x: int,
    center_y: int,
    count: int = QPSK_CONST_POINTS,
) -> list[tuple[int, int]]:
    """Pixel positions of the first ``count`` I/Q soft symbols in ``buffer``."""
    if len(buffer) < 2 * count:
        raise ValueError("buffer holds fewer symbols than requested")
    return [
        (center_x + int(sym_i / 2), center_y - int(sym_q / 2))
        for sym_i, sym_q in _pairs(buffer[:2 * count])
    ]


def gauge_colors(level: float) -> tuple[float, float]:
    """Red and green components of a level gauge bar, each in 0..1."""
    scaled = level / TRANSITION_BAND
    red = min(1.0, max(0.0, RED_THRESHOLD - scaled))
    green = min(1.0, max(0.0, scaled - GREEN_THRESHOLD))
    return red, green


def gauge_width(width: int, level: float) -> int:
    """Width in pixels of the coloured bar inside a gauge ``width`` pixels wide."""
    return int((width - 3) * level)


def pll_frequency(nco_freq: float, sym_rate: float, mode: ModScheme) -> int:
    """Costas NCO frequency in Hz, doubled for the offset modes."""
    freq = nco_freq * sym_rate / (2.0 * math.pi)
    if ModScheme(mode) in (ModScheme.DOQPSK, ModScheme.IDOQPSK):
        freq *= 2.0
    return int(freq)