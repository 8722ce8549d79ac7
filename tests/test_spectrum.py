from __future__ import annotations

import numpy as np
import pytest

from odsim.spectrum import display_limit, keyphasor_spectrum, order_spectrum, time_waveform
from odsim.types import Harmonic, VibrationComponent


def test_order_axis_puts_one_x_at_tenth_of_span() -> None:
    orders, bars = order_spectrum(VibrationComponent(amplitude=5.0), rng=np.random.default_rng(0))
    assert len(orders) == len(bars) == 120
    assert orders[12] == pytest.approx(1.0)
    assert bars[12] == 5.0


def test_harmonic_lines_and_floor() -> None:
    comp = VibrationComponent(amplitude=4.0, harmonics=[Harmonic(2.0, 0.5)])
    _, bars = order_spectrum(comp, rng=np.random.default_rng(1))
    assert bars[24] == pytest.approx(2.0)
    floor = np.delete(bars, [12, 24])
    assert floor.max() < 4.0 * 0.05


def test_noise_lifts_high_orders() -> None:
    quiet = VibrationComponent(amplitude=1.0)
    noisy = VibrationComponent(amplitude=1.0, noise=4.0)
    _, q = order_spectrum(quiet, rng=np.random.default_rng(2))
    _, n = order_spectrum(noisy, rng=np.random.default_rng(2))
    assert n[96] > q[96] + 1.0


def test_keyphasor_spectrum_odd_lines() -> None:
    orders, bars = keyphasor_spectrum(10.0)
    assert bars[12] == pytest.approx(6.3)
    assert bars[36] == pytest.approx(2.1)
    assert bars[60] == pytest.approx(1.2)
    assert bars[24] == 0.0


def test_time_waveform_uses_measured_phase() -> None:
    comp = VibrationComponent(amplitude=3.0, phase_meas=90.0, phase=0.0, noise=1.0)
    thetas, values = time_waveform(comp, cycles=3, samples=350)
    assert len(thetas) == len(values) == 350
    # Quiet source: the noise term is exactly sin(25 theta) at theta 0.
    assert values[0] == pytest.approx(3.0)


def test_display_limit_minimum() -> None:
    assert display_limit(VibrationComponent(amplitude=0.1)) == 2.0
    comp = VibrationComponent(amplitude=5.0, harmonics=[Harmonic(2.0, 0.5)], noise=2.0)
    assert display_limit(comp) == pytest.approx((5.0 + 2.5 + 3.0) * 1.2)
