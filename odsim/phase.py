"""Phase reference handling for the deflection-shape rig.

Only the horizontal axis is expressed relative to the reference point's
horizontal phase. Vertical and axial stay absolute (offset 0).
"""

import copy
import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from .signal import wrap360
from .types import MeasurementPoint, VibrationComponent

LOGGER = logging.getLogger(__name__)

# Motor DE bearing
DEFAULT_REFERENCE_ID = "m-de"


def _with_offset(comp: VibrationComponent, offset: float) -> VibrationComponent:
    return replace(comp, phase=wrap360(comp.phase_meas - offset), harmonics=list(comp.harmonics))


def resolve_reference(points: List[MeasurementPoint], reference_id: Optional[str]) -> Optional[MeasurementPoint]:
    """Named point, else the default point, else the first point, else None."""
    for p in points:
        if p.id == reference_id:
            return p
    for p in points:
        if p.id == DEFAULT_REFERENCE_ID:
            if reference_id is not None:
                LOGGER.warning("Reference %r not found; falling back to %s", reference_id, DEFAULT_REFERENCE_ID)
            return p
    if points:
        LOGGER.warning("Reference %r not found; falling back to first point %s", reference_id, points[0].id)
        return points[0]
    return None


def normalize(points: List[MeasurementPoint], reference_id: Optional[str]) -> List[MeasurementPoint]:
    """Re-derive every relative phase. Returns new points; input is untouched."""
    ref = resolve_reference(points, reference_id)
    ref_phase = ref.horizontal.phase_meas if ref is not None else 0.0
    ref_id = ref.id if ref is not None else None

    out = [
        replace(
            p,
            is_reference=(p.id == ref_id),
            vertical=_with_offset(p.vertical, 0.0),
            horizontal=_with_offset(p.horizontal, ref_phase),
            axial=_with_offset(p.axial, 0.0),
        )
        for p in points
    ]
    LOGGER.debug("Normalized %d points against %s (%.1f deg)", len(out), ref_id, ref_phase)
    return out


def set_reference(points: List[MeasurementPoint], new_id: str, current_id: Optional[str] = None) -> Tuple[List[MeasurementPoint], Optional[str]]:
    """Make new_id the phase reference.

    This rewrites every horizontal ``phase_meas`` (a one-time data
    migration), so the new reference reads 0 deg measured and relative.
    Unknown ids leave the set as-is.
    """
    target = next((p for p in points if p.id == new_id), None)
    if target is None:
        LOGGER.warning("Cannot set reference to unknown point %r", new_id)
        return [copy.deepcopy(p) for p in points], current_id

    offset = target.horizontal.phase_meas
    shifted = [
        replace(
            p,
            horizontal=replace(
                p.horizontal,
                phase_meas=wrap360(p.horizontal.phase_meas - offset),
                harmonics=list(p.horizontal.harmonics),
            ),
        )
        for p in points
    ]
    return normalize(shifted, new_id), new_id


def normalize_absolute(points: List[MeasurementPoint]) -> List[MeasurementPoint]:
    """Orbit-rig rule: probes are always absolute (phase = measured phase)."""
    return [
        replace(
            p,
            vertical=_with_offset(p.vertical, 0.0),
            horizontal=_with_offset(p.horizontal, 0.0),
            axial=_with_offset(p.axial, 0.0),
        )
        for p in points
    ]
