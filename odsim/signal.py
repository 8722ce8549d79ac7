"""Harmonic phasor signal model.

Every consumer (deflection view, waveform panel, orbit plot, live dashboard)
goes through these functions; none of them re-derive the harmonic sum.

Two evaluation domains:
  - time domain: ``evaluate(comp, omega, t)`` uses the *relative* phase
    (normalized against the active reference point);
  - angle domain: ``evaluate_angle(comp, theta, flt)`` is phase-locked to the
    shaft angle and uses the *measured* (absolute) phase, with order filtering.
"""

import math
from typing import Optional, Sequence

import numpy as np

from .types import OrderFilter, VibrationComponent

# Broadband term rides on the 25th order of running speed.
NOISE_ORDER = 25.0
NOISE_GAIN = 0.5
JITTER_SPAN = 0.2


def wrap360(deg: float) -> float:
    """Wrap any real angle (deg) into [0, 360)."""
    res = ((float(deg) % 360.0) + 360.0) % 360.0
    # -1e-17 % 360 gives 360.0 in floating point
    return 0.0 if res >= 360.0 else res


class NoiseSource:
    """Bounded jitter in [0, span) for the broadband noise term.

    The default instance is unseeded, so two evaluations at the same instant
    differ slightly. Pass a seed for reproducible sequences, or span=0 to
    make the noise term a pure function of time.
    """

    def __init__(self, seed: Optional[int] = None, span: float = JITTER_SPAN):
        self._rng = np.random.default_rng(seed)
        self.span = max(0.0, float(span))

    def jitter(self) -> float:
        if self.span <= 0.0:
            return 0.0
        return float(self._rng.random()) * self.span

    def jitter_array(self, n: int) -> np.ndarray:
        if self.span <= 0.0:
            return np.zeros(n, dtype=float)
        return self._rng.random(n) * self.span


DEFAULT_NOISE = NoiseSource()


def omega_from_rpm(rpm: float) -> float:
    return float(rpm) * 2.0 * math.pi / 60.0


def evaluate(
    comp: VibrationComponent,
    omega: float,
    t: float,
    noise: Optional[NoiseSource] = None,
) -> float:
    """Instantaneous value of one axis signal at time t (seconds)."""
    rel = math.radians(comp.phase)
    wt = omega * t
    total = comp.amplitude * math.sin(wt + rel)
    for h in comp.harmonics:
        h_ph = rel + math.radians(h.phase_shift_deg)
        total += (comp.amplitude * h.amplitude_ratio) * math.sin(wt * h.order + h_ph)
    if comp.noise > 0:
        src = noise if noise is not None else DEFAULT_NOISE
        total += comp.noise * NOISE_GAIN * (math.sin(wt * NOISE_ORDER) + src.jitter())
    return total


def evaluate_angle(
    comp: VibrationComponent,
    theta: float,
    order_filter: Optional[OrderFilter] = None,
) -> float:
    """Phase-locked value at shaft angle theta (rad), gated by order_filter."""
    flt = order_filter or OrderFilter()
    ph = math.radians(comp.phase_meas)
    val = 0.0
    if flt.passes(1.0):
        val += comp.amplitude * math.sin(theta + ph)
    for h in comp.harmonics:
        if flt.passes(h.order):
            h_ph = math.radians(comp.phase_meas + h.phase_shift_deg)
            val += (comp.amplitude * h.amplitude_ratio) * math.sin(theta * h.order + h_ph)
    if comp.noise > 0 and flt.passes_noise:
        val += comp.noise * NOISE_GAIN * math.sin(theta * NOISE_ORDER)
    return val


def waveform(
    comp: VibrationComponent,
    omega: float,
    times: Sequence[float],
    noise: Optional[NoiseSource] = None,
) -> np.ndarray:
    """Vectorised ``evaluate`` over a time sweep."""
    t = np.asarray(times, dtype=float)
    rel = math.radians(comp.phase)
    wt = omega * t
    out = comp.amplitude * np.sin(wt + rel)
    for h in comp.harmonics:
        h_ph = rel + math.radians(h.phase_shift_deg)
        out = out + (comp.amplitude * h.amplitude_ratio) * np.sin(wt * h.order + h_ph)
    if comp.noise > 0:
        src = noise if noise is not None else DEFAULT_NOISE
        out = out + comp.noise * NOISE_GAIN * (np.sin(wt * NOISE_ORDER) + src.jitter_array(t.size))
    return out


def waveform_angle(
    comp: VibrationComponent,
    thetas: Sequence[float],
    order_filter: Optional[OrderFilter] = None,
) -> np.ndarray:
    th = np.asarray(thetas, dtype=float)
    return np.array([evaluate_angle(comp, float(x), order_filter) for x in th.ravel()]).reshape(th.shape)


def peak_amplitude(comp: VibrationComponent) -> float:
    """Upper bound of |signal|; used for plot auto-scaling."""
    peak = comp.amplitude
    for h in comp.harmonics:
        peak += comp.amplitude * h.amplitude_ratio
    return peak + comp.noise
