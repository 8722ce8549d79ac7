"""Display-time waveform and order-spectrum derivations.

Nothing here is engine state; the analysis panel recomputes these on every
redraw from the point's current signal.
"""

import math
from dataclasses import replace
from typing import Optional, Tuple

import numpy as np

from .signal import NoiseSource, waveform
from .types import VibrationComponent

SPECTRUM_BINS = 120
FIRST_ORDER_BIN = 12  # 1X sits at 10% of the span
FLOOR_FRACTION = 0.05

_QUIET = NoiseSource(span=0.0)


def time_waveform(comp: VibrationComponent, cycles: int = 3, samples: int = 350) -> Tuple[np.ndarray, np.ndarray]:
    """Angle sweep over ``cycles`` revolutions, drawn at the measured phase."""
    thetas = np.linspace(0.0, cycles * 2.0 * math.pi, samples, endpoint=False)
    shown = replace(comp, phase=comp.phase_meas)
    return thetas, waveform(shown, 1.0, thetas, noise=_QUIET)


def order_spectrum(
    comp: VibrationComponent,
    bins: int = SPECTRUM_BINS,
    first_order_bin: int = FIRST_ORDER_BIN,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Closed-form spectral estimate: (orders, amplitudes) per bin."""
    rng = rng if rng is not None else np.random.default_rng()
    amp = comp.amplitude
    idx = np.arange(bins, dtype=float)
    orders = idx / first_order_bin

    bars = rng.random(bins) * (amp * FLOOR_FRACTION)
    bars[np.abs(orders - 1.0) < (0.5 / first_order_bin)] = amp

    for h in comp.harmonics:
        h_amp = amp * h.amplitude_ratio
        centre = first_order_bin * h.order
        near = np.abs(idx - centre) < 1.0
        bars[near] = np.maximum(bars[near], h_amp * 0.7)
        target = int(round(centre))
        if 0 <= target < bins:
            bars[target] = h_amp

    if comp.noise > 0:
        high = idx > first_order_bin * 4
        bars[high] += rng.random(int(high.sum())) * comp.noise * 0.4
        hump = np.abs(idx - bins * 0.8) < 10
        bars[hump] += comp.noise * 0.5

    return orders, bars


def keyphasor_spectrum(amplitude: float, bins: int = SPECTRUM_BINS, first_order_bin: int = FIRST_ORDER_BIN) -> Tuple[np.ndarray, np.ndarray]:
    """Odd harmonics of a square pulse train at 1X, 3X and 5X."""
    orders = np.arange(bins, dtype=float) / first_order_bin
    bars = np.zeros(bins, dtype=float)
    for k, share in ((1.0, 0.63), (3.0, 0.21), (5.0, 0.12)):
        bars[np.abs(orders - k) < 0.1] = amplitude * share
    return orders, bars


def display_limit(comp: VibrationComponent, minimum: float = 2.0) -> float:
    peak = comp.amplitude
    for h in comp.harmonics:
        peak += comp.amplitude * h.amplitude_ratio
    peak += comp.noise * 1.5
    return max(minimum, peak * 1.2)
