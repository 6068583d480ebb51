import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from lrptdemod.agc import AGC_MAX_GAIN, AGC_TARGET, Agc


def test_initial_state():
    agc = Agc()
    assert agc.target_ampl == 180.0
    assert agc.average == AGC_TARGET
    assert agc.gain == 1.0
    assert agc.bias == 0j


def test_zero_sample_raises_gain():
    agc = Agc()
    out = agc.apply(0j)
    assert out == 0j
    assert agc.average < AGC_TARGET
    assert agc.gain > 1.0


def test_output_is_debiased_sample_times_gain():
    agc = Agc()
    out = agc.apply(complex(100.0, -50.0))
    expected = (complex(100.0, -50.0) - agc.bias) * agc.gain
    assert out == pytest.approx(expected)


def test_gain_capped_after_long_silence():
    agc = Agc()
    for _ in range(300000):
        agc.apply(0j)
    assert agc.gain == AGC_MAX_GAIN == 20.0


def test_bias_tracks_constant_input():
    agc = Agc()
    for _ in range(2000):
        agc.apply(complex(10.0, 10.0))
    assert 0.0 < agc.bias.real < 10.0
    assert agc.bias.real == pytest.approx(agc.bias.imag)


@settings(max_examples=50)
@given(
    st.lists(
        st.complex_numbers(max_magnitude=1e4, allow_nan=False, allow_infinity=False),
        min_size=1,
        max_size=50,
    )
)
def test_gain_never_exceeds_maximum(samples):
    agc = Agc()
    for sample in samples:
        agc.apply(sample)
        assert 0.0 < agc.gain <= AGC_MAX_GAIN