from __future__ import annotations

import math

import numpy as np
import pytest

from odsim.signal import (
    NoiseSource,
    evaluate,
    evaluate_angle,
    omega_from_rpm,
    peak_amplitude,
    waveform,
    waveform_angle,
    wrap360,
)
from odsim.types import Harmonic, OrderFilter, VibrationComponent

QUIET = NoiseSource(span=0.0)


def _comp(amp: float = 1.0, phase: float = 0.0, harmonics=(), noise: float = 0.0) -> VibrationComponent:
    return VibrationComponent(amplitude=amp, phase_meas=phase, phase=phase, harmonics=list(harmonics), noise=noise)


# -- wrap360 ---------------------------------------------------------------------


@pytest.mark.parametrize(
    "deg, expected",
    [(0.0, 0.0), (-30.0, 330.0), (360.0, 0.0), (720.0, 0.0), (359.5, 359.5), (-450.0, 270.0)],
)
def test_wrap360_values(deg: float, expected: float) -> None:
    assert wrap360(deg) == pytest.approx(expected)


def test_wrap360_range_and_idempotent() -> None:
    for deg in np.linspace(-1000.0, 1000.0, 257):
        w = wrap360(deg)
        assert 0.0 <= w < 360.0
        assert wrap360(w) == w


def test_wrap360_tiny_negative_is_zero() -> None:
    assert wrap360(-1e-17) == 0.0


# -- time domain ---------------------------------------------------------------


def test_zero_amplitude_is_silent() -> None:
    comp = _comp(amp=0.0, harmonics=[Harmonic(2.0, 0.5)])
    for t in (0.0, 0.13, 1.7):
        assert evaluate(comp, omega_from_rpm(1480), t) == 0.0


def test_evaluate_uses_relative_phase() -> None:
    comp = VibrationComponent(amplitude=2.0, phase_meas=0.0, phase=90.0)
    assert evaluate(comp, omega_from_rpm(60), 0.0) == pytest.approx(2.0)


def test_harmonic_adds_at_its_order() -> None:
    comp = _comp(amp=1.0, harmonics=[Harmonic(2.0, 0.5, 90.0)])
    # wt = pi/4: sin(pi/4) + 0.5 * sin(pi/2 + pi/2)
    omega = omega_from_rpm(60)
    t = (math.pi / 4.0) / omega
    assert evaluate(comp, omega, t) == pytest.approx(math.sin(math.pi / 4.0))


def test_noise_term_is_bounded() -> None:
    comp = _comp(amp=0.0, noise=1.0)
    src = NoiseSource(seed=7)
    omega = omega_from_rpm(110)
    values = [evaluate(comp, omega, t, src) for t in np.linspace(0.0, 2.0, 400)]
    assert min(values) >= -0.5
    assert max(values) < 0.6


def test_quiet_noise_source_is_deterministic() -> None:
    comp = _comp(amp=3.0, noise=2.0)
    omega = omega_from_rpm(110)
    assert evaluate(comp, omega, 0.37, QUIET) == evaluate(comp, omega, 0.37, QUIET)


def test_seeded_noise_sources_repeat() -> None:
    a, b = NoiseSource(seed=3), NoiseSource(seed=3)
    assert [a.jitter() for _ in range(5)] == [b.jitter() for _ in range(5)]
    assert all(0.0 <= j < 0.2 for j in NoiseSource(seed=1).jitter_array(100))


def test_waveform_matches_pointwise_evaluate() -> None:
    comp = _comp(amp=1.5, phase=40.0, harmonics=[Harmonic(3.0, 0.2, 30.0)], noise=0.5)
    omega = omega_from_rpm(300)
    times = np.linspace(0.0, 0.5, 50)
    expected = [evaluate(comp, omega, t, QUIET) for t in times]
    assert np.allclose(waveform(comp, omega, times, QUIET), expected)


# -- angle domain --------------------------------------------------------------


def test_angle_domain_uses_measured_phase() -> None:
    comp = VibrationComponent(amplitude=10.0, phase_meas=90.0, phase=0.0)
    assert evaluate_angle(comp, 0.0) == pytest.approx(10.0)


def test_bandpass_drops_other_orders() -> None:
    comp = _comp(amp=4.0, harmonics=[Harmonic(2.0, 0.5)], noise=3.0)
    flt = OrderFilter("BandPass", 2.0)
    for theta in np.linspace(0.0, 2 * math.pi, 13):
        assert evaluate_angle(comp, theta, flt) == pytest.approx(2.0 * math.sin(2.0 * theta))


def test_lowpass_keeps_subsynchronous() -> None:
    comp = _comp(amp=2.0, harmonics=[Harmonic(0.45, 1.0), Harmonic(3.0, 1.0)])
    flt = OrderFilter("LowPass", 1.0)
    theta = 1.1
    expected = 2.0 * math.sin(theta) + 2.0 * math.sin(0.45 * theta)
    assert evaluate_angle(comp, theta, flt) == pytest.approx(expected)


def test_waveform_angle_shape() -> None:
    comp = _comp(amp=1.0)
    th = np.linspace(0.0, 1.0, 12).reshape(3, 4)
    assert waveform_angle(comp, th).shape == (3, 4)


def test_peak_amplitude_sums_contributions() -> None:
    comp = _comp(amp=2.0, harmonics=[Harmonic(2.0, 0.5), Harmonic(3.0, 0.25)], noise=1.0)
    assert peak_amplitude(comp) == pytest.approx(2.0 + 1.0 + 0.5 + 1.0)
