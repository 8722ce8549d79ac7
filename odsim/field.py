"""Spatial displacement field (inverse-distance weighting of point signals).

The renderer queries ``displacement_at`` once per vertex per frame and adds
the result to the rest-pose vertex. Base/skid geometry is additionally pinned
at its anchor bolts via ``anchor_damping``.
"""

import colorsys
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .signal import NoiseSource, evaluate, omega_from_rpm
from .types import AXIAL_PLUS, HORIZONTAL_PLUS, VERTICAL_PLUS, MeasurementPoint

IDW_POWER = 3.5
IDW_EPSILON = 0.1
DISPLACEMENT_SCALAR = 0.015

# Anchoring only applies to vertices below this height (the skid).
ANCHOR_HEIGHT = 0.5
ANCHOR_RADIUS = 1.8

# Skid: length 12 (z: -2..10), width 3 (x: -1.5..1.5)
SKID_ANCHORS: Tuple[Tuple[float, float, float], ...] = (
    (1.4, 0.0, -1.5), (-1.4, 0.0, -1.5),  # motor NDE end
    (1.4, 0.0, 4.0), (-1.4, 0.0, 4.0),  # coupling
    (1.4, 0.0, 9.5), (-1.4, 0.0, 9.5),  # pump end
)

HEAT_GAIN_FACTOR = 0.025
HEAT_MIN_SPAN = 0.01
HEAT_HUE_COLD = 0.66

_AXIAL = np.array(AXIAL_PLUS, dtype=float)
_VERTICAL = np.array(VERTICAL_PLUS, dtype=float)
_HORIZONTAL = np.array(HORIZONTAL_PLUS, dtype=float)


def anchor_damping(position: Sequence[float], anchors: Sequence[Sequence[float]] = SKID_ANCHORS) -> float:
    """Stiffness factor in [0, 1]: 0 at a bolt centre, 1 away from all bolts."""
    x, y, z = float(position[0]), float(position[1]), float(position[2])
    if y >= ANCHOR_HEIGHT or not anchors:
        return 1.0
    # Bolts are vertical; only the X/Z distance matters.
    nearest = min(math.hypot(x - a[0], z - a[2]) for a in anchors)
    d = min(max(nearest / ANCHOR_RADIUS, 0.0), 1.0)
    return d * d * (3.0 - 2.0 * d)


def displacement_at(
    position: Sequence[float],
    time: float,
    points: List[MeasurementPoint],
    global_gain: float,
    *,
    animation_rpm: float,
    anchored: bool = False,
    noise: Optional[NoiseSource] = None,
) -> np.ndarray:
    """Displacement vector (model units) at position and time."""
    pos = np.asarray(position, dtype=float)
    omega = omega_from_rpm(animation_rpm)
    acc = np.zeros(3, dtype=float)
    total_weight = 0.0

    for p in points:
        dist = float(np.linalg.norm(pos - np.asarray(p.position, dtype=float)))
        weight = 1.0 / (dist ** IDW_POWER + IDW_EPSILON)
        acc += _AXIAL * (evaluate(p.axial, omega, time, noise) * weight)
        acc += _VERTICAL * (evaluate(p.vertical, omega, time, noise) * weight)
        acc += _HORIZONTAL * (evaluate(p.horizontal, omega, time, noise) * weight)
        total_weight += weight

    if total_weight > 0:
        acc /= total_weight

    damping = anchor_damping(pos) if anchored else 1.0
    return acc * (global_gain * DISPLACEMENT_SCALAR * damping)


def displacement_field(
    positions: np.ndarray,
    time: float,
    points: List[MeasurementPoint],
    global_gain: float,
    *,
    animation_rpm: float,
    anchored: bool = False,
    noise: Optional[NoiseSource] = None,
) -> np.ndarray:
    """Batch version of ``displacement_at`` for an (N, 3) vertex array."""
    verts = np.asarray(positions, dtype=float).reshape(-1, 3)
    out = np.zeros_like(verts)
    if not points:
        return out

    omega = omega_from_rpm(animation_rpm)
    # Each point contributes one vector per frame, independent of the vertex.
    contrib = np.array(
        [
            _AXIAL * evaluate(p.axial, omega, time, noise)
            + _VERTICAL * evaluate(p.vertical, omega, time, noise)
            + _HORIZONTAL * evaluate(p.horizontal, omega, time, noise)
            for p in points
        ]
    )
    centres = np.array([p.position for p in points], dtype=float)

    dist = np.linalg.norm(verts[:, None, :] - centres[None, :, :], axis=2)
    weights = 1.0 / (dist ** IDW_POWER + IDW_EPSILON)
    out = (weights @ contrib) / weights.sum(axis=1, keepdims=True)

    scale = global_gain * DISPLACEMENT_SCALAR
    if anchored:
        damping = np.array([anchor_damping(v) for v in verts])
        return out * (scale * damping)[:, None]
    return out * scale


def heat_map_scale(displacement: Sequence[float], global_gain: float) -> float:
    """Map |d| to t in [0, 1] relative to the current gain."""
    mag = float(np.linalg.norm(np.asarray(displacement, dtype=float)))
    span = max(HEAT_MIN_SPAN, global_gain * HEAT_GAIN_FACTOR)
    return min(mag / span, 1.0)


def heat_map_color(t: float) -> Tuple[float, float, float]:
    """Blue (t=0) to red (t=1)."""
    t = min(max(float(t), 0.0), 1.0)
    # colorsys uses HLS ordering
    return colorsys.hls_to_rgb(HEAT_HUE_COLD * (1.0 - t), 0.5, 1.0)
