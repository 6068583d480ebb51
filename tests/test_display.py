import pytest
from hypothesis import given
from hypothesis import strategies as st

from lrptdemod.display import (
    QPSK_CONST_POINTS,
    BinScaler,
    colorize,
    constellation_points,
    gauge_colors,
    gauge_width,
    pll_frequency,
    waterfall_row,
)
from lrptdemod.pll import ModScheme


def test_colorize_ends():
    assert colorize(0) == (0, 0, 3)
    assert colorize(255) == (255, 66, 0)


@given(st.integers(0, 255))
def test_colorize_channels_in_range(value):
    rgb = colorize(value)
    assert all(0 <= channel <= 255 for channel in rgb)


@given(st.integers(0, 255))
def test_colorize_bands(value):
    red, green, blue = colorize(value)
    if value < 64:
        assert (red, green) == (0, 0)
    elif value < 128:
        assert red == 0
    elif value < 192:
        assert (green, blue) == (255, 0)
    else:
        assert (red, blue) == (255, 0)


def test_bin_scaler_zero_input():
    assert BinScaler().value(0, 0) == 0


def test_bin_scaler_reset_without_peak_saturates():
    scaler = BinScaler()
    scaler.reset()
    assert scaler.bin_max == 1
    assert scaler.value(100, 100) == 255


def test_bin_scaler_reset_adopts_peak():
    scaler = BinScaler()
    scaler.value(40, 0)
    peak = scaler.bin_val
    scaler.reset()
    assert scaler.bin_max == peak
    assert scaler.peak == 0


@given(st.lists(st.tuples(st.integers(-3000, 3000), st.integers(-3000, 3000)), max_size=30))
def test_bin_scaler_output_range(samples):
    scaler = BinScaler()
    for sum_i, sum_q in samples:
        assert 0 <= scaler.value(sum_i, sum_q) <= 255


def test_waterfall_row_length_and_zero_colour():
    row = waterfall_row([0] * 16, BinScaler())
    assert len(row) == 16 // 2 - 1
    assert all(pixel == colorize(0) for pixel in row)


def test_waterfall_row_positive_frequencies_first():
    data = [0] * 16
    data[8] = 5000
    row = waterfall_row(data, BinScaler())
    assert row[0] == colorize(255)


def test_waterfall_row_resets_scaler():
    scaler = BinScaler()
    data = [0] * 16
    data[8] = 100
    waterfall_row(data, scaler)
    assert scaler.peak == 0
    assert scaler.bin_max >= 1


def test_constellation_points_positions():
    points = constellation_points([10, 20, -10, -20], 50, 40, count=2)
    assert points == [(55, 30), (45, 50)]


def test_constellation_points_truncate_toward_zero():
    assert constellation_points([-3, 3], 10, 10, count=1) == [(9, 9)]


def test_constellation_points_default_count():
    points = constellation_points([0] * (2 * QPSK_CONST_POINTS), 5, 6)
    assert len(points) == QPSK_CONST_POINTS
    assert set(points) == {(5, 6)}


def test_constellation_points_short_buffer():
    with pytest.raises(ValueError):
        constellation_points([0] * 10, 0, 0)


def test_gauge_colors_extremes():
    assert gauge_colors(0.0) == (1.0, 0.0)
    assert gauge_colors(1.0) == (0.0, 1.0)


@given(st.floats(0.0, 1.0))
def test_gauge_colors_in_range(level):
    red, green = gauge_colors(level)
    assert 0.0 <= red <= 1.0
    assert 0.0 <= green <= 1.0


@given(st.integers(3, 1000))
def test_gauge_width_limits(width):
    assert gauge_width(width, 0.0) == 0
    assert gauge_width(width, 1.0) == width - 3


def test_pll_frequency_zero():
    assert pll_frequency(0.0, 72000, ModScheme.QPSK) == 0


@pytest.mark.parametrize("mode", [ModScheme.DOQPSK, ModScheme.IDOQPSK])
def test_pll_frequency_offset_modes_double(mode):
    qpsk = pll_frequency(0.5, 72000, ModScheme.QPSK)
    doubled = pll_frequency(0.5, 72000, mode)
    assert qpsk > 0
    assert abs(doubled - 2 * qpsk) <= 1


def test_pll_frequency_symmetric_sign():
    assert pll_frequency(-0.5, 72000, ModScheme.QPSK) == -pll_frequency(
        0.5, 72000, ModScheme.QPSK
    )