"""LRPT demodulation, CLAHE image enhancement, display and timer helpers."""

__version__ = "0.1.0"
__all__ = ["agc", "pll", "filters", "doqpsk", "display", "demod", "clahe", "timers"]