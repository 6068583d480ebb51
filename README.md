# lrptdemod

Signal-processing building blocks for receiving LRPT transmissions from
the Meteor-M weather satellites: automatic gain control, Costas carrier
recovery, root-raised-cosine matched filtering, Gardner symbol timing
recovery and soft-symbol output for QPSK, DOQPSK and interleaved DOQPSK.
It also has contrast limited adaptive histogram equalisation for 8-bit
greyscale images, pixel computations for spectrum and constellation
displays, and decode timer arithmetic.

The package is pure Python and has no runtime dependencies.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `lrptdemod.agc`: `Agc`, a sliding-window automatic gain control that
  removes a running DC bias and scales the sample magnitude towards a
  target, with the gain capped at 20 (`Agc.apply`).
- `lrptdemod.pll`: `ModScheme` (`QPSK`, `DOQPSK`, `IDOQPSK`) and
  `CostasLoop`, the carrier phase and frequency tracking loop. `mix`
  mixes a sample with the NCO, `delta` estimates the phase error and
  `correct_phase` updates the NCO, detects lock against the given
  thresholds, narrows the loop bandwidth while locked and calls the
  optional `on_lock_change(locked)` callback. `lut_tanh` is the
  table-based tanh it uses.
- `lrptdemod.filters`: `RrcFilter`, an interpolating root-raised-cosine
  FIR filter for complex samples (`forward`), with `rrc_coefficient`
  and `rrc_coefficients`.
- `lrptdemod.doqpsk`: hard-decision sync bytes and sync train search
  (`byte_at_offset`, `find_sync`), removal of the sync words from an
  80-symbol framed stream (`resync_stream`), convolutional
  de-interleaving (`deinterleave`, which raises `ValueError` when no
  sync is found), a signed integer square root (`isqrt`) and
  `DiffDecoder`, which undoes differential coding across successive
  buffers.
- `lrptdemod.demod`: `DemodConfig` and `Demodulator`. `process` takes
  one filtered sample and returns a completed frame of 16384 interleaved
  I/Q soft symbols or `None`; `run` filters raw I/Q samples and yields
  frames while the PLL is locked; `finish` flushes the interleaved mode,
  de-interleaving what was gathered. `agc_gain`, `signal_level` and
  `pll_average` give 0..1 gauge levels. `soft_buffer` is the
  three-frame window of recent symbols. `clamp_int8` is the soft-symbol
  clamp.
- `lrptdemod.clahe`: `clahe`, contrast limited adaptive histogram
  equalisation of a row-major 8-bit image, returning a new `bytes`
  image; invalid parameters raise `ValueError`.
- `lrptdemod.display`: waterfall colouring (`colorize`, `BinScaler`,
  `waterfall_row`), constellation pixel positions
  (`constellation_points`), level gauge colours and bar width
  (`gauge_colors`, `gauge_width`) and the PLL frequency readout in Hz
  (`pll_frequency`).
- `lrptdemod.timers`: timer entry validation (`validate_hours`,
  `validate_minutes`, raising `TimerError`), decode timer length
  (`decode_timer_seconds`), UTC start/stop scheduling
  (`auto_timer_schedule`, returning an `AutoTimerSchedule` with
  `sleep_seconds` and `decode_seconds`) and kHz formatting of the centre
  frequency (`format_center_freq`).

## Example

```python
from lrptdemod.demod import DemodConfig, Demodulator
from lrptdemod.pll import ModScheme

config = DemodConfig(
    symbol_rate=72000,
    interp_factor=4,
    costas_bandwidth=200.0,
    psk_mode=ModScheme.QPSK,
    rrc_order=32,
    rrc_alpha=0.6,
    pll_locked=0.80,
    pll_unlocked=0.83,
)
demod = Demodulator(config, sample_rate=288_000.0)

for frame in demod.run(i_samples, q_samples):
    ...  # 16384 soft symbols (-128..127) for an LRPT frame decoder
frames = demod.finish()  # non-empty only for ModScheme.IDOQPSK

print(demod.agc_gain(), demod.signal_level(), demod.pll_average())
```

```python
from datetime import datetime, timezone
from lrptdemod.timers import auto_timer_schedule, format_center_freq

schedule = auto_timer_schedule(10, 30, 10, 45,
                               now=datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc))
print(schedule.sleep_seconds, schedule.decode_seconds)  # 1800 900
print(format_center_freq(137_100_000))                  # "137100.0"
```

## What this package does not do

- It does not talk to a radio receiver: samples must come from
  elsewhere, already band-limited; there is no roofing filter or FFT.
- It does not decode LRPT frames: no Viterbi or Reed-Solomon decoding,
  no packet parsing and no JPEG image reconstruction. Its output is
  soft symbols.
- It draws nothing and has no window or menus: the display helpers
  return colours, positions and levels for a user interface to draw.
- It has no command-line program and does not run timers or alarms
  itself; `timers` only computes durations.