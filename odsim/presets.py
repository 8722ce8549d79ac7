"""Measurement rigs and the fault preset library.

Presets are plain data: each fault maps to a tuple of per-point, per-axis
overrides, applied by one generic routine. Applying a preset overwrites every
signal value on the rig (ids, labels and positions are untouched) and always
ends with a phase recompute.
"""

import copy
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .orbit import KEYPHASOR_ID, PROBE_X_ID, PROBE_Y_ID
from .phase import DEFAULT_REFERENCE_ID, normalize, normalize_absolute
from .types import AXES, Harmonic, MeasurementPoint, VibrationComponent

LOGGER = logging.getLogger(__name__)


class ODSFault(str, Enum):
    Manual = "Manual Analysis"
    UnbalanceStatic = "Static Unbalance"
    UnbalanceCouple = "Couple Unbalance"
    UnbalanceDynamic = "Dynamic Unbalance"
    UnbalanceOverhung = "Overhung Rotor"
    AngularMisalignment = "Angular Misalignment"
    ParallelMisalignment = "Parallel Misalignment"
    MisalignmentCombo = "Combined Misalignment"
    BentShaft = "Bent Shaft"
    EccentricRotor = "Eccentric Rotor"
    LoosenessStructural = "Structural Looseness"
    LoosenessRocking = "Rocking Looseness"
    LoosenessBearing = "Loose Bearing Fit"
    SoftFoot = "Soft Foot"
    BearingWear = "Bearing Wear"
    GearMesh = "Gear Mesh Issue"
    ResonanceVert = "Vertical Resonance"


class OrbitFault(str, Enum):
    Manual = "Manual Config"
    Unbalance = "Unbalance (1X Circle)"
    Misalignment = "Misalignment (Banana/Ellipse)"
    ShaftCrack = "Shaft Crack (1X + 2X Loop)"
    RotorBow = "Rotor Bow (High 1X)"
    OilWhirl = "Oil Whirl"
    OilWhip = "Oil Whip"
    Preload = "Radial Preload"
    Rub = "Rub"
    Looseness = "Mechanical Looseness"
    Resonance = "Resonance"


Fault = Union[ODSFault, OrbitFault]

# -----------------------------
# Rig geometry
# -----------------------------
SHAFT_LENGTH = 10.0
MOTOR_CENTER = 1.5
PUMP_CENTER = 8.5

ODS_LAYOUT: Tuple[Tuple[str, str, Tuple[float, float, float]], ...] = (
    ("m-foot-de-l", "Motor Foot DE-L", (0.6, 0.2, 0.8)),
    ("m-foot-de-r", "Motor Foot DE-R", (-0.6, 0.2, 0.8)),
    ("m-foot-nde-l", "Motor Foot NDE-L", (0.6, 0.2, -0.8)),
    ("m-foot-nde-r", "Motor Foot NDE-R", (-0.6, 0.2, -0.8)),
    ("m-nde", "Motor NDE Brg", (0.0, 1.95, -0.8)),
    ("m-de", "Motor DE Brg", (0.0, 1.95, 1.0)),
    ("p-de", "Pump Inboard Brg", (0.0, 1.35, 5.5)),
    ("p-nde", "Pump Outboard Brg", (0.0, 1.35, 6.5)),
)

ORBIT_LAYOUT: Tuple[Tuple[str, str, Tuple[float, float, float]], ...] = (
    (PROBE_X_ID, "Probe X", (1.0, 1.0, 0.0)),
    (PROBE_Y_ID, "Probe Y", (-1.0, 1.0, 0.0)),
    (KEYPHASOR_ID, "Keyphasor", (0.0, 1.5, -0.5)),
)

# Baselines (amplitude per axis, phase 0, no harmonics, no noise)
ODS_MANUAL_BASE = {"horizontal": 0.2, "vertical": 0.1, "axial": 0.1}
ODS_PRESET_BASE = {"horizontal": 0.1, "vertical": 0.1, "axial": 0.1}
ORBIT_PROBE_BASE = 10.0


@dataclass(frozen=True)
class LineHarmonic:
    """Harmonic at twice line frequency; its order depends on machine RPM."""

    amplitude_ratio: float
    phase_shift_deg: float = 0.0


@dataclass(frozen=True)
class Override:
    point: str  # id, "*" for all, or "prefix*"
    axis: str
    amplitude: float
    phase: float
    harmonics: Tuple[Union[Harmonic, LineHarmonic], ...] = ()
    noise: float = 0.0

    def matches(self, point_id: str) -> bool:
        if self.point == "*":
            return True
        if self.point.endswith("*"):
            return point_id.startswith(self.point[:-1])
        return point_id == self.point


def _h(order: float, ratio: float, shift: float = 0.0) -> Harmonic:
    return Harmonic(order=order, amplitude_ratio=ratio, phase_shift_deg=shift)


def _pair(point: str, h_amp: float, h_ph: float, v_amp: float, v_ph: float) -> Tuple[Override, Override]:
    return (Override(point, "horizontal", h_amp, h_ph), Override(point, "vertical", v_amp, v_ph))


# -----------------------------
# Deflection-shape presets
# -----------------------------
ODS_PRESETS: Dict[ODSFault, Tuple[Override, ...]] = {
    ODSFault.Manual: (),
    ODSFault.UnbalanceStatic: (
        *_pair("m-*", 6.0, 0.0, 6.0, 90.0),
        *_pair("p-*", 6.0, 0.0, 6.0, 90.0),
    ),
    ODSFault.UnbalanceCouple: (
        *_pair("m-de", 6.0, 0.0, 6.0, 90.0),
        *_pair("m-nde", 6.0, 180.0, 6.0, 270.0),
    ),
    ODSFault.UnbalanceDynamic: (
        *_pair("m-de", 6.0, 0.0, 6.0, 90.0),
        *_pair("m-nde", 6.0, 90.0, 6.0, 180.0),
    ),
    ODSFault.UnbalanceOverhung: (
        *_pair("m-de", 2.0, 0.0, 2.0, 90.0),
        *_pair("p-de", 8.0, 0.0, 8.0, 90.0),
        Override("p-de", "axial", 4.0, 0.0),
        Override("p-nde", "axial", 4.0, 180.0),
    ),
    ODSFault.AngularMisalignment: (
        Override("m-de", "axial", 8.0, 0.0),
        Override("p-de", "axial", 8.0, 180.0),
    ),
    ODSFault.ParallelMisalignment: (
        *_pair("m-de", 7.0, 0.0, 7.0, 90.0),
        *_pair("p-de", 7.0, 180.0, 7.0, 270.0),
    ),
    ODSFault.MisalignmentCombo: (
        *_pair("m-de", 6.0, 0.0, 6.0, 90.0),
        Override("m-de", "axial", 5.0, 0.0),
        *_pair("p-de", 6.0, 180.0, 6.0, 270.0),
        Override("p-de", "axial", 5.0, 180.0),
    ),
    ODSFault.BentShaft: (
        Override("m-de", "axial", 8.0, 0.0),
        Override("m-nde", "axial", 8.0, 180.0),
    ),
    ODSFault.EccentricRotor: _pair("m-de", 2.0, 0.0, 8.0, 0.0),
    ODSFault.LoosenessStructural: (
        Override("m-foot-de-l", "vertical", 10.0, 0.0, (_h(2.0, 0.5),)),
    ),
    ODSFault.LoosenessRocking: (
        Override("m-de", "horizontal", 8.0, 0.0, (_h(2.0, 0.5, 180.0),)),
        Override("m-de", "vertical", 2.0, 90.0),
    ),
    # No distinct signature yet: base amplitudes only.
    ODSFault.LoosenessBearing: (),
    ODSFault.BearingWear: (),
    ODSFault.GearMesh: (),
    ODSFault.SoftFoot: (
        Override("m-foot-de-r", "vertical", 6.0, 0.0, (LineHarmonic(1.2, 180.0),)),
    ),
    ODSFault.ResonanceVert: _pair("*", 1.0, 0.0, 8.0, 0.0),
}


# -----------------------------
# Orbit presets (probe horizontal channel)
# -----------------------------
def _probes(x_amp: float, x_ph: float, y_amp: float, y_ph: float, harmonics: Tuple[Harmonic, ...] = (), noise: float = 0.0) -> Tuple[Override, Override]:
    return (
        Override(PROBE_X_ID, "horizontal", x_amp, x_ph, harmonics, noise),
        Override(PROBE_Y_ID, "horizontal", y_amp, y_ph, harmonics, noise),
    )


_RUB = (_h(0.5, 0.3), _h(2.0, 0.3, 180.0), _h(3.0, 0.2))
_LOOSE = (_h(2.0, 0.5), _h(3.0, 0.3), _h(4.0, 0.2))

ORBIT_PRESETS: Dict[OrbitFault, Tuple[Override, ...]] = {
    OrbitFault.Manual: (),
    OrbitFault.Unbalance: _probes(40.0, 0.0, 40.0, 90.0),
    OrbitFault.Misalignment: _probes(35.0, 0.0, 20.0, 120.0, (_h(2.0, 0.4, 45.0),)),
    OrbitFault.ShaftCrack: _probes(35.0, 0.0, 35.0, 90.0, (_h(2.0, 0.5, 180.0),)),
    OrbitFault.RotorBow: _probes(60.0, 0.0, 60.0, 90.0),
    OrbitFault.OilWhirl: _probes(30.0, 0.0, 30.0, 90.0, (_h(0.45, 0.8, 90.0),)),
    OrbitFault.OilWhip: _probes(50.0, 0.0, 50.0, 90.0, (_h(0.48, 1.5, 80.0),)),
    OrbitFault.Preload: _probes(45.0, 0.0, 10.0, 90.0),
    OrbitFault.Rub: _probes(30.0, 0.0, 30.0, 90.0, _RUB, noise=10.0),
    OrbitFault.Looseness: (
        Override(PROBE_X_ID, "horizontal", 25.0, 0.0, _LOOSE),
        Override(PROBE_Y_ID, "horizontal", 30.0, 90.0, _LOOSE),
    ),
    OrbitFault.Resonance: _probes(80.0, 180.0, 80.0, 270.0),
}


# -----------------------------
# Rig factories
# -----------------------------
def _flat(amplitude: float, phase: float = 0.0) -> VibrationComponent:
    return VibrationComponent(amplitude=amplitude, phase_meas=phase, phase=phase, harmonics=[], noise=0.0)


def default_ods_points() -> List[MeasurementPoint]:
    pts = [
        MeasurementPoint(
            id=pid,
            label=label,
            position=pos,
            horizontal=_flat(ODS_MANUAL_BASE["horizontal"]),
            vertical=_flat(ODS_MANUAL_BASE["vertical"]),
            axial=_flat(ODS_MANUAL_BASE["axial"]),
        )
        for pid, label, pos in ODS_LAYOUT
    ]
    return normalize(pts, DEFAULT_REFERENCE_ID)


def default_orbit_points() -> List[MeasurementPoint]:
    pts = [MeasurementPoint(id=pid, label=label, position=pos) for pid, label, pos in ORBIT_LAYOUT]
    pts[0].horizontal = _flat(ORBIT_PROBE_BASE, 0.0)
    pts[1].horizontal = _flat(ORBIT_PROBE_BASE, 90.0)
    return normalize_absolute(pts)


def line_frequency_order(machine_rpm: float, line_freq: float) -> float:
    """Order of twice line frequency relative to running speed."""
    return (2.0 * line_freq * 60.0) / (machine_rpm or 1.0)


def _resolve_harmonics(items, machine_rpm: float, line_freq: float) -> List[Harmonic]:
    out: List[Harmonic] = []
    for h in items:
        if isinstance(h, LineHarmonic):
            out.append(_h(line_frequency_order(machine_rpm, line_freq), h.amplitude_ratio, h.phase_shift_deg))
        else:
            out.append(h)
    return out


def apply_overrides(
    points: List[MeasurementPoint],
    overrides: Tuple[Override, ...],
    base: Dict[str, float],
    *,
    skip: Tuple[str, ...] = (),
    machine_rpm: float = 1480.0,
    line_freq: float = 50.0,
) -> List[MeasurementPoint]:
    """Reset every axis to ``base`` and then apply the overrides in order."""
    out: List[MeasurementPoint] = []
    for p in points:
        if p.id in skip:
            out.append(copy.deepcopy(p))
            continue
        comps = {axis: _flat(base.get(axis, 0.0)) for axis in AXES}
        for ov in overrides:
            if not ov.matches(p.id):
                continue
            comps[ov.axis] = VibrationComponent(
                amplitude=ov.amplitude,
                phase_meas=ov.phase,
                phase=ov.phase,
                harmonics=_resolve_harmonics(ov.harmonics, machine_rpm, line_freq),
                noise=ov.noise,
            )
        out.append(replace(p, **comps))
    return out


def apply_preset(
    points: List[MeasurementPoint],
    fault: Fault,
    *,
    machine_rpm: float = 1480.0,
    line_freq: float = 50.0,
) -> Tuple[List[MeasurementPoint], Optional[str]]:
    """Return (new points, reference id). Orbit rigs have no reference."""
    if isinstance(fault, OrbitFault):
        base = {"horizontal": ORBIT_PROBE_BASE, "vertical": 0.0, "axial": 0.0}
        nxt = apply_overrides(points, ORBIT_PRESETS[fault], base, skip=(KEYPHASOR_ID,))
        LOGGER.info("Applied orbit preset %s", fault.value)
        return normalize_absolute(nxt), None

    base = ODS_MANUAL_BASE if fault is ODSFault.Manual else ODS_PRESET_BASE
    nxt = apply_overrides(
        points,
        ODS_PRESETS[fault],
        base,
        machine_rpm=machine_rpm,
        line_freq=line_freq,
    )
    LOGGER.info("Applied ODS preset %s", fault.value)
    # A preset is a full reset, including the phase reference.
    return normalize(nxt, DEFAULT_REFERENCE_ID), DEFAULT_REFERENCE_ID


def refresh_line_frequency_presets(
    points: List[MeasurementPoint],
    fault: Optional[Fault],
    reference_id: Optional[str],
    *,
    machine_rpm: float,
    line_freq: float,
) -> List[MeasurementPoint]:
    """Recompute RPM-dependent harmonics after a machine RPM / line change.

    Only the soft-foot foot is touched; the rest of the rig keeps any edits.
    """
    if fault is not ODSFault.SoftFoot:
        return points
    overrides = [ov for ov in ODS_PRESETS[ODSFault.SoftFoot] if any(isinstance(h, LineHarmonic) for h in ov.harmonics)]
    out: List[MeasurementPoint] = []
    for p in points:
        for ov in overrides:
            if ov.matches(p.id):
                comp = p.component(ov.axis)
                p = replace(
                    p,
                    **{
                        ov.axis: replace(
                            comp,
                            amplitude=ov.amplitude,
                            harmonics=_resolve_harmonics(ov.harmonics, machine_rpm, line_freq),
                        )
                    },
                )
        out.append(p)
    return normalize(out, reference_id)


def fault_by_name(name: str) -> Fault:
    for enum_cls in (ODSFault, OrbitFault):
        for f in enum_cls:
            if name in (f.name, f.value):
                return f
    raise KeyError(name)
