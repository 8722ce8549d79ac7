"""Shaft / orbit rig model.

The simulation clock is an explicit object owned by the driving loop. It is
advanced exactly once per frame; every consumer in that frame (shaft pose,
orbit trail, live dashboard) reads the same ``ClockSnapshot``.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Sequence, Tuple

import numpy as np

from .signal import evaluate_angle
from .types import MeasurementPoint, OrderFilter, VibrationComponent

LOGGER = logging.getLogger(__name__)

PROBE_X_ID = "probe-x"
PROBE_Y_ID = "probe-y"
KEYPHASOR_ID = "keyphasor"

TWO_PI = 2.0 * math.pi

# Probe units (um) to model units, at the nominal gain of 10.
PROBE_SCALAR = 0.005
CUSTOM_ORBIT_SCALAR = 2.0
NOMINAL_GAIN = 10.0

TRAIL_CYCLES = 3
TRAIL_MAX_SAMPLES = 2000

KEYPHASOR_PULSE_WIDTH = math.pi / 4.0


@dataclass(frozen=True)
class ClockSnapshot:
    time: float
    angle: float


class SimulationClock:
    """Simulation time (s) and shaft angle (rad, decreasing while playing)."""

    def __init__(self, playing: bool = True):
        self.simulation_time = 0.0
        self.shaft_angle = 0.0
        self.playing = playing

    def advance(self, dt: float, animation_rpm: float) -> ClockSnapshot:
        if self.playing and dt > 0:
            rpm = max(float(animation_rpm), 0.0)
            self.shaft_angle -= dt * (rpm / 60.0) * TWO_PI
            self.simulation_time += dt
        return self.snapshot()

    def step(self, dt: float, animation_rpm: float) -> ClockSnapshot:
        """Advance one frame even while paused."""
        was_playing = self.playing
        self.playing = True
        try:
            return self.advance(dt, animation_rpm)
        finally:
            self.playing = was_playing

    def snapshot(self) -> ClockSnapshot:
        return ClockSnapshot(self.simulation_time, self.shaft_angle)

    def play(self) -> None:
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def toggle(self) -> bool:
        self.playing = not self.playing
        return self.playing

    def reset(self) -> None:
        self.simulation_time = 0.0
        self.shaft_angle = 0.0


def find_point(points: List[MeasurementPoint], point_id: str) -> Optional[MeasurementPoint]:
    return next((p for p in points if p.id == point_id), None)


def probe_scalar(global_gain: float) -> float:
    return PROBE_SCALAR * (global_gain / NOMINAL_GAIN)


def probe_displacement(
    probe_x: VibrationComponent,
    probe_y: VibrationComponent,
    theta: float,
    global_gain: float,
    order_filter: Optional[OrderFilter] = None,
) -> Tuple[float, float]:
    s = probe_scalar(global_gain)
    return (
        evaluate_angle(probe_x, theta, order_filter) * s,
        evaluate_angle(probe_y, theta, order_filter) * s,
    )


def custom_orbit_index(theta: float, length: int) -> int:
    phase = (abs(theta) / TWO_PI) % 1.0
    return int(math.floor(phase * length)) % length


def custom_orbit_displacement(path: Sequence[Sequence[float]], theta: float, global_gain: float) -> Tuple[float, float]:
    """Index a traced, normalized (-1..1) closed polyline by shaft angle."""
    if not path:
        return (0.0, 0.0)
    pt = path[custom_orbit_index(theta, len(path))]
    s = CUSTOM_ORBIT_SCALAR * (global_gain / NOMINAL_GAIN)
    return (float(pt[0]) * s, float(pt[1]) * s)


def orbit_displacement(
    orbit_points: List[MeasurementPoint],
    theta: float,
    global_gain: float,
    order_filter: Optional[OrderFilter] = None,
    custom_path: Optional[Sequence[Sequence[float]]] = None,
) -> Tuple[float, float]:
    """Shaft centre offset for the current frame (custom trace wins when active)."""
    if custom_path:
        return custom_orbit_displacement(custom_path, theta, global_gain)
    px = find_point(orbit_points, PROBE_X_ID)
    py = find_point(orbit_points, PROBE_Y_ID)
    if px is None or py is None:
        LOGGER.debug("Orbit rig without both probes; shaft stays centred")
        return (0.0, 0.0)
    return probe_displacement(px.horizontal, py.horizontal, theta, global_gain, order_filter)


def keyphasor_trigger_angle(keyphasor: Optional[MeasurementPoint]) -> float:
    if keyphasor is None:
        return 0.0
    return -math.radians(keyphasor.horizontal.phase_meas)


def keyphasor_mark(
    probe_x: VibrationComponent,
    probe_y: VibrationComponent,
    keyphasor: Optional[MeasurementPoint],
    order_filter: Optional[OrderFilter] = None,
) -> Tuple[float, float]:
    """Orbit position (probe units) at the once-per-rev trigger instant."""
    theta = keyphasor_trigger_angle(keyphasor)
    return (
        evaluate_angle(probe_x, theta, order_filter),
        evaluate_angle(probe_y, theta, order_filter),
    )


def orbit_trace(
    probe_x: VibrationComponent,
    probe_y: VibrationComponent,
    order_filter: Optional[OrderFilter] = None,
    cycles: int = 2,
    samples: int = 720,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Closed-form Lissajous over ``cycles`` revolutions (probe units).

    Two revolutions by default so sub-synchronous whirl closes its loop.
    """
    thetas = np.linspace(0.0, cycles * TWO_PI, samples + 1)
    xs = np.array([evaluate_angle(probe_x, t, order_filter) for t in thetas])
    ys = np.array([evaluate_angle(probe_y, t, order_filter) for t in thetas])
    return thetas, xs, ys


def keyphasor_pulse(thetas: Sequence[float], phase_deg: float, amplitude: float) -> np.ndarray:
    """Once-per-rev square pulse centred on the keyphasor phase."""
    th = np.mod(np.asarray(thetas, dtype=float), TWO_PI)
    dist = np.abs(th - math.radians(phase_deg))
    dist = np.where(dist > math.pi, TWO_PI - dist, dist)
    return np.where(dist < KEYPHASOR_PULSE_WIDTH / 2.0, amplitude, -amplitude / 4.0)


def timebase_angles(theta_now: float, cycles: int = 3, samples: int = 360) -> np.ndarray:
    """Angles from oldest (left) to now (right).

    The shaft angle decreases with time, so the past is more positive.
    """
    pct = np.linspace(1.0, 0.0, samples)
    return theta_now + pct * cycles * TWO_PI


def trail_duration(rpm: float, cycles: int = TRAIL_CYCLES) -> float:
    return cycles * (60.0 / max(float(rpm), 1.0))


class OrbitTrail:
    """Rolling (x, y, t) history kept for the last few revolutions."""

    def __init__(self, max_samples: int = TRAIL_MAX_SAMPLES, cycles: int = TRAIL_CYCLES):
        self.cycles = cycles
        self._buf: Deque[Tuple[float, float, float]] = deque(maxlen=max_samples)

    def __len__(self) -> int:
        return len(self._buf)

    def append(self, x: float, y: float, t: float, rpm: float) -> None:
        self._buf.append((float(x), float(y), float(t)))
        cutoff = t - trail_duration(rpm, self.cycles)
        while self._buf and self._buf[0][2] < cutoff:
            self._buf.popleft()

    def clear(self) -> None:
        self._buf.clear()

    def as_array(self) -> np.ndarray:
        if not self._buf:
            return np.zeros((0, 3), dtype=float)
        return np.array(self._buf, dtype=float)
