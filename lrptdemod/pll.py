"""Costas loop for carrier frequency and phase recovery."""

from __future__ import annotations

import cmath
import math
from collections.abc import Callable
from enum import IntEnum

FREQ_MAX = 0.8
COSTAS_DAMP = 0.7071
COSTAS_INIT_FREQ = 0.001
AVG_WINSIZE = 20000.0
DELTA_WINSIZE = 100.0
LOCKED_WINSIZEX = 10.0
LOCKED_BW_REDUCE = 4.0
LOCKED_ERR_SCALE = 10.0
INITIAL_MOVING_AVERAGE = 1000000.0

__all__ = ["ModScheme", "CostasLoop", "lut_tanh"]


class ModScheme(IntEnum):
    """Modulation schemes used by the LRPT downlink."""

    QPSK = 1
    DOQPSK = 2
    IDOQPSK = 3


_ERR_SCALE = {
    ModScheme.QPSK: 43.0,
    ModScheme.DOQPSK: 80.0,
    ModScheme.IDOQPSK: 80.0,
}

_TANH_TABLE = tuple(math.tanh(idx - 128) for idx in range(256))


def lut_tanh(value: float) -> float:
    """Table lookup of tanh at ``value`` truncated toward zero, saturating at +-1."""
    if value >= 128.0:
        return 1.0
    if value <= -129.0:
        return -1.0
    return _TANH_TABLE[int(value) + 128]


def _loop_coeffs(damping: float, bw: float) -> tuple[float, float]:
    bw2 = bw * bw
    denom = 1.0 + 2.0 * damping * bw + bw2
    return (4.0 * damping * bw) / denom, (4.0 * bw2) / denom


class CostasLoop:
    """Second-order Costas PLL with lock detection and bandwidth switching."""

    def __init__(
        self,
        bandwidth: float,
        mode: ModScheme,
        locked_threshold: float,
        unlocked_threshold: float,
        interp_factor: int = 1,
        on_lock_change: Callable[[bool], None] | None = None,
    ) -> None:
        self.mode = ModScheme(mode)
        self.bandwidth = bandwidth
        self.damping = COSTAS_DAMP
        self.nco_freq = COSTAS_INIT_FREQ
        self.nco_phase = 0.0
        self.alpha, self.beta = _loop_coeffs(COSTAS_DAMP, bandwidth)
        # Starts "locked" so that the first correction resets the window sizes.
        self.locked = True
        self.moving_average = INITIAL_MOVING_AVERAGE
        self.locked_threshold = locked_threshold
        self.unlocked_threshold = unlocked_threshold
        self.interp_factor = interp_factor
        self.on_lock_change = on_lock_change
        self.err_scale = _ERR_SCALE[self.mode]
        self._avg_winsize = AVG_WINSIZE
        self._delta = 0.0

    def mix(self, sample: complex) -> complex:
        """Mix ``sample`` down with the NCO and advance the NCO phase."""
        result = sample * cmath.exp(-1j * self.nco_phase)
        self.nco_phase = math.fmod(self.nco_phase + self.nco_freq, 2.0 * math.pi)
        return result

    def correct_phase(self, error: float) -> None:
        """Apply a phase error to the NCO and update the lock state."""
        error = max(-1.0, min(1.0, error))

        winsize = self._avg_winsize
        self.moving_average = (
            self.moving_average * (winsize - 1.0) + abs(error)
        ) / winsize

        self.nco_phase = math.fmod(self.nco_phase + self.alpha * error, 2.0 * math.pi)

        if self.locked:
            error /= LOCKED_ERR_SCALE
        self._delta = (self._delta * (DELTA_WINSIZE - 1.0) + self.beta * error) / DELTA_WINSIZE
        self.nco_freq += self._delta

        if not self.locked and self.moving_average < self.locked_threshold:
            self.alpha, self.beta = _loop_coeffs(
                self.damping, self.bandwidth / LOCKED_BW_REDUCE
            )
            self.locked = True
            self._avg_winsize = AVG_WINSIZE * LOCKED_WINSIZEX / self.interp_factor
            self._notify(True)
        elif self.locked and self.moving_average > self.unlocked_threshold:
            self.alpha, self.beta = _loop_coeffs(self.damping, self.bandwidth)
            self.locked = False
            self._avg_winsize = AVG_WINSIZE / self.interp_factor
            self._notify(False)

        if not -FREQ_MAX < self.nco_freq < FREQ_MAX:
            self.nco_freq = 0.0

    def delta(self, sample: complex, cosample: complex) -> float:
        """Phase error estimate from an in-phase and a quadrature sample."""
        error = lut_tanh(sample.real) * sample.imag - lut_tanh(cosample.imag) * cosample.real
        return error / self.err_scale

    def _notify(self, locked: bool) -> None:
        if self.on_lock_change is not None:
            self.on_lock_change(locked)