"""Root raised cosine FIR filter."""

from __future__ import annotations

import math
from collections import deque

__all__ = ["RrcFilter", "rrc_coefficient", "rrc_coefficients"]


def rrc_coefficient(stage: int, taps: int, osf: float, alpha: float) -> float:
    """Coefficient of tap ``stage`` of a ``taps`` long RRC filter."""
    order = (taps - 1) // 2
    if order == stage:
        return 1.0 - alpha + 4.0 * alpha / math.pi

    t = abs(order - stage) / osf
    mpt = math.pi * t
    at4 = 4.0 * alpha * t
    coeff = math.sin(mpt * (1.0 - alpha)) + at4 * math.cos(mpt * (1.0 + alpha))
    return coeff / (mpt * (1.0 - at4 * at4))


def rrc_coefficients(order: int, factor: int, osf: float, alpha: float) -> list[float]:
    """All ``2 * order + 1`` coefficients for an interpolating RRC filter."""
    taps = order * 2 + 1
    return [rrc_coefficient(stage, taps, osf * factor, alpha) for stage in range(taps)]


class RrcFilter:
    """Complex-valued FIR filter with root raised cosine taps."""

    def __init__(self, order: int, factor: int, osf: float, alpha: float) -> None:
        self.coefficients = rrc_coefficients(order, factor, osf, alpha)
        self._memory: deque[complex] = deque(
            [0j] * len(self.coefficients), maxlen=len(self.coefficients)
        )

    def forward(self, sample: complex) -> complex:
        """Push ``sample`` into the filter and return the filtered output."""
        self._memory.appendleft(complex(sample))
        return sum(
            (node * coeff for node, coeff in zip(self._memory, self.coefficients)), 0j
        )