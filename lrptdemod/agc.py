"""Automatic gain control for complex baseband samples."""

from __future__ import annotations

import math
from dataclasses import dataclass

AGC_WINSIZE = 65536.0
AGC_TARGET = 180.0
AGC_MAX_GAIN = 20.0
AGC_BIAS_WINSIZE = 262144.0

__all__ = ["Agc", "AGC_TARGET", "AGC_MAX_GAIN", "AGC_WINSIZE", "AGC_BIAS_WINSIZE"]


@dataclass
class Agc:
    """Sliding-window AGC that removes DC bias and scales magnitude to a target."""

    target_ampl: float = AGC_TARGET
    average: float = AGC_TARGET
    gain: float = 1.0
    bias: complex = 0j

    def apply(self, sample: complex) -> complex:
        """Remove the running bias from ``sample`` and return it with gain applied."""
        self.bias = (self.bias * (AGC_BIAS_WINSIZE - 1.0) + sample) / AGC_BIAS_WINSIZE
        sample = complex(sample) - self.bias

        rho = math.hypot(sample.real, sample.imag)
        self.average = (self.average * (AGC_WINSIZE - 1.0) + rho) / AGC_WINSIZE

        self.gain = min(self.target_ampl / self.average, AGC_MAX_GAIN)
        return sample * self.gain