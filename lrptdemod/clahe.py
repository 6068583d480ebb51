"""Contrast limited adaptive histogram equalisation of 8-bit greyscale images."""

from __future__ import annotations

import struct
from collections.abc import Sequence

REGIONS_X = 8
REGIONS_Y = 8
NUM_GREYBINS = 256
CLIP_LIMIT = 3.0

MAX_REG_X = 16
MAX_REG_Y = 16
DEFAULT_BINS = 128
NO_CLIP_LIMIT = 1 << 14

_ULONG = 1 << 64

__all__ = ["clahe", "REGIONS_X", "REGIONS_Y", "NUM_GREYBINS", "CLIP_LIMIT"]


def _f32(value: float) -> float:
    """Round ``value`` to single precision."""
    return struct.unpack("f", struct.pack("f", value))[0]


def _make_lut(minimum: int, maximum: int, bins: int) -> list[int]:
    """Map grey levels in ``[minimum, maximum]`` to histogram bins."""
    bin_size = (1 + (maximum - minimum) // bins) & 0xFF
    if bin_size == 0:
        raise ValueError("grey range too wide for the number of bins")
    lut = [0] * 256
    for level in range(minimum, maximum + 1):
        lut[level] = (level - minimum) // bin_size
    return lut


def _clip_histogram(hist: list[int], clip: int) -> None:
    """Clip bins at ``clip`` and spread the excess over the histogram."""
    bins = len(hist)
    excess = sum(count - clip for count in hist if count > clip)
    incr = excess // bins
    upper = (clip - incr) % _ULONG

    for idx, count in enumerate(hist):
        if count > clip:
            hist[idx] = clip
        elif count > upper:
            excess -= count - upper
            hist[idx] = clip
        else:
            excess -= incr
            hist[idx] = count + incr

    while excess:
        before = excess
        start = 0
        while excess and start < bins:
            step = max(1, bins // excess)
            for idx in range(start, bins, step):
                if not excess:
                    break
                if hist[idx] < clip:
                    hist[idx] += 1
                    excess -= 1
            start += 1
        if excess == before:
            raise ValueError("clip limit too low to redistribute the histogram")


def _map_histogram(hist: list[int], minimum: int, maximum: int, pixels: int) -> None:
    """Turn a histogram into a cumulative mapping scaled to ``[minimum, maximum]``."""
    scale = _f32(_f32(float(maximum - minimum)) / _f32(float(pixels)))
    base = _f32(float(minimum))
    total = 0
    for idx, count in enumerate(hist):
        total += count
        mapped = int(_f32(base + _f32(_f32(float(total)) * scale)))
        hist[idx] = min(mapped, maximum)


def _interpolate(
    out: bytearray,
    width: int,
    x0: int,
    y0: int,
    maps: tuple[list[int], list[int], list[int], list[int]],
    sub_x: int,
    sub_y: int,
    lut: list[int],
) -> None:
    """Bilinearly blend four region mappings over a ``sub_x`` by ``sub_y`` block."""
    num = sub_x * sub_y
    if not num:
        return
    map_lu, map_ru, map_lb, map_rb = maps
    for dy in range(sub_y):
        y_inv = sub_y - dy
        base = (y0 + dy) * width + x0
        for dx in range(sub_x):
            x_inv = sub_x - dx
            grey = lut[out[base + dx]]
            value = (
                y_inv * (x_inv * map_lu[grey] + dx * map_ru[grey])
                + dy * (x_inv * map_lb[grey] + dx * map_rb[grey])
            ) // num
            out[base + dx] = value & 0xFF


def _edge(index: int, count: int, size: int) -> tuple[int, int, int]:
    """Block size and the two neighbouring region indices for grid line ``index``."""
    if index == 0:
        return size >> 1, 0, 0
    if index == count:
        return (size + 1) >> 1, count - 1, count - 1
    return size, index - 1, index


def clahe(
    image: Sequence[int],
    width: int,
    height: int,
    minimum: int = 0,
    maximum: int = 255,
    regions_x: int = REGIONS_X,
    regions_y: int = REGIONS_Y,
    bins: int = NUM_GREYBINS,
    clip_limit: float = CLIP_LIMIT,
) -> bytes:
    """Return a contrast-equalised copy of a row-major 8-bit image.

    The output keeps the grey range ``[minimum, maximum]``. A ``clip_limit``
    of zero or less gives plain adaptive equalisation; ``bins`` of zero
    selects 128 bins. Raises ``ValueError`` on invalid parameters.
    """
    if width <= 0 or height <= 0:
        raise ValueError("image dimensions must be positive")
    if len(image) != width * height:
        raise ValueError("image size does not match its dimensions")
    if regions_x > MAX_REG_X or regions_y > MAX_REG_Y:
        raise ValueError("too many contextual regions")
    if regions_x < 2 or regions_y < 2:
        raise ValueError("at least 2 contextual regions needed in each direction")
    if width % regions_x or height % regions_y:
        raise ValueError("image resolution is not a multiple of the region count")
    if not 0 <= minimum < maximum <= 255:
        raise ValueError("grey range must satisfy 0 <= minimum < maximum <= 255")
    if clip_limit == 1.0:
        raise ValueError("clip limit of 1.0 leaves the image unchanged")
    if bins < 0:
        raise ValueError("number of bins must not be negative")
    if bins == 0:
        bins = DEFAULT_BINS

    out = bytearray(image)
    if any(not minimum <= level <= maximum for level in out):
        raise ValueError("image holds grey levels outside the given range")

    x_size = width // regions_x
    y_size = height // regions_y
    pixels = x_size * y_size

    if clip_limit > 0.0:
        clip = max(1, int(clip_limit * pixels / bins))
    else:
        clip = NO_CLIP_LIMIT

    lut = _make_lut(minimum, maximum, bins)

    region_maps: list[list[list[int]]] = []
    for ry in range(regions_y):
        row_maps = []
        for rx in range(regions_x):
            hist = [0] * bins
            x0 = rx * x_size
            for y in range(ry * y_size, (ry + 1) * y_size):
                start = y * width + x0
                for level in out[start:start + x_size]:
                    hist[lut[level]] += 1
            _clip_histogram(hist, clip)
            _map_histogram(hist, minimum, maximum, pixels)
            row_maps.append(hist)
        region_maps.append(row_maps)

    y0 = 0
    for gy in range(regions_y + 1):
        sub_y, y_up, y_down = _edge(gy, regions_y, y_size)
        x0 = 0
        for gx in range(regions_x + 1):
            sub_x, x_left, x_right = _edge(gx, regions_x, x_size)
            maps = (
                region_maps[y_up][x_left],
                region_maps[y_up][x_right],
                region_maps[y_down][x_left],
                region_maps[y_down][x_right],
            )
            _interpolate(out, width, x0, y0, maps, sub_x, sub_y, lut)
            x0 += sub_x
        y0 += sub_y

    return bytes(out)