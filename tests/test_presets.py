from __future__ import annotations

from dataclasses import replace

import pytest

from odsim.orbit import KEYPHASOR_ID, PROBE_X_ID, PROBE_Y_ID
from odsim.phase import DEFAULT_REFERENCE_ID, set_reference
from odsim.presets import (
    ODS_LAYOUT,
    ODS_PRESETS,
    ORBIT_PRESETS,
    ODSFault,
    OrbitFault,
    Override,
    apply_preset,
    default_ods_points,
    default_orbit_points,
    fault_by_name,
    line_frequency_order,
    refresh_line_frequency_presets,
)
from odsim.types import AXES


def _by_id(points, pid):
    return next(p for p in points if p.id == pid)


def test_every_fault_has_a_table_entry() -> None:
    assert set(ODS_PRESETS) == set(ODSFault)
    assert set(ORBIT_PRESETS) == set(OrbitFault)


def test_default_rig_layout() -> None:
    pts = default_ods_points()
    assert [p.id for p in pts] == [pid for pid, _, _ in ODS_LAYOUT]
    assert _by_id(pts, DEFAULT_REFERENCE_ID).is_reference


def test_manual_after_preset_restores_baseline() -> None:
    pts, _ = apply_preset(default_ods_points(), ODSFault.LoosenessRocking)
    back, ref = apply_preset(pts, ODSFault.Manual)
    assert ref == DEFAULT_REFERENCE_ID
    for p in back:
        assert p.horizontal.amplitude == 0.2
        assert p.vertical.amplitude == 0.1
        assert p.axial.amplitude == 0.1
        for axis in AXES:
            comp = p.component(axis)
            assert comp.phase_meas == 0.0
            assert comp.phase == 0.0
            assert comp.harmonics == []
            assert comp.noise == 0.0


def test_preset_keeps_ids_labels_positions() -> None:
    base = default_ods_points()
    for fault in ODSFault:
        pts, _ = apply_preset(base, fault)
        assert [(p.id, p.label, p.position) for p in pts] == [(p.id, p.label, p.position) for p in base]


def test_static_unbalance_hits_every_bearing() -> None:
    pts, _ = apply_preset(default_ods_points(), ODSFault.UnbalanceStatic)
    for p in pts:
        assert p.horizontal.amplitude == 6.0
        assert p.vertical.amplitude == 6.0
        assert p.vertical.phase_meas == 90.0
        assert p.axial.amplitude == 0.1


def test_couple_unbalance_phases() -> None:
    pts, _ = apply_preset(default_ods_points(), ODSFault.UnbalanceCouple)
    assert _by_id(pts, "m-de").horizontal.phase == 0.0
    assert _by_id(pts, "m-nde").horizontal.phase == pytest.approx(180.0)
    assert _by_id(pts, "p-de").horizontal.amplitude == 0.1


def test_empty_signature_presets_apply_base_only() -> None:
    for fault in (ODSFault.LoosenessBearing, ODSFault.BearingWear, ODSFault.GearMesh):
        pts, _ = apply_preset(default_ods_points(), fault)
        assert {p.horizontal.amplitude for p in pts} == {0.1}


def test_preset_resets_reference() -> None:
    pts, _ = set_reference(default_ods_points(), "p-de", DEFAULT_REFERENCE_ID)
    nxt, ref = apply_preset(pts, ODSFault.AngularMisalignment)
    assert ref == DEFAULT_REFERENCE_ID
    assert _by_id(nxt, DEFAULT_REFERENCE_ID).is_reference
    assert _by_id(nxt, "p-de").axial.phase_meas == 180.0


def test_soft_foot_line_frequency_harmonic() -> None:
    pts, _ = apply_preset(default_ods_points(), ODSFault.SoftFoot, machine_rpm=1480, line_freq=50)
    foot = _by_id(pts, "m-foot-de-r").vertical
    assert foot.amplitude == 6.0
    (h,) = foot.harmonics
    assert h.order == pytest.approx(6000.0 / 1480.0)
    assert h.amplitude_ratio == 1.2
    assert h.phase_shift_deg == 180.0


def test_line_frequency_order_guards_zero_rpm() -> None:
    assert line_frequency_order(1800.0, 60.0) == pytest.approx(4.0)
    assert line_frequency_order(0.0, 50.0) == pytest.approx(6000.0)


def test_refresh_line_frequency_presets() -> None:
    pts, ref = apply_preset(default_ods_points(), ODSFault.SoftFoot)
    edited = [replace(p, axial=replace(p.axial, amplitude=3.0)) if p.id == "p-nde" else p for p in pts]
    out = refresh_line_frequency_presets(edited, ODSFault.SoftFoot, ref, machine_rpm=1800.0, line_freq=60.0)
    assert _by_id(out, "m-foot-de-r").vertical.harmonics[0].order == pytest.approx(4.0)
    assert _by_id(out, "p-nde").axial.amplitude == 3.0


def test_refresh_ignores_other_faults() -> None:
    pts, ref = apply_preset(default_ods_points(), ODSFault.BentShaft)
    assert refresh_line_frequency_presets(pts, ODSFault.BentShaft, ref, machine_rpm=900.0, line_freq=60.0) is pts


def test_orbit_manual_baseline() -> None:
    pts = default_orbit_points()
    assert _by_id(pts, PROBE_X_ID).horizontal.amplitude == 10.0
    assert _by_id(pts, PROBE_Y_ID).horizontal.phase == 90.0


def test_orbit_preset_leaves_keyphasor_untouched() -> None:
    pts = default_orbit_points()
    pts = [replace(p, horizontal=replace(p.horizontal, phase_meas=45.0, amplitude=5.0)) if p.id == KEYPHASOR_ID else p for p in pts]
    nxt, ref = apply_preset(pts, OrbitFault.OilWhirl)
    assert ref is None
    kp = _by_id(nxt, KEYPHASOR_ID)
    assert kp.horizontal.phase_meas == 45.0
    assert kp.horizontal.amplitude == 5.0
    whirl = _by_id(nxt, PROBE_X_ID).horizontal
    assert whirl.harmonics[0].order == 0.45


def test_rub_preset_carries_noise() -> None:
    nxt, _ = apply_preset(default_orbit_points(), OrbitFault.Rub)
    assert _by_id(nxt, PROBE_Y_ID).horizontal.noise == 10.0
    assert len(_by_id(nxt, PROBE_Y_ID).horizontal.harmonics) == 3


def test_override_selectors() -> None:
    assert Override("*", "axial", 1.0, 0.0).matches("anything")
    assert Override("m-*", "axial", 1.0, 0.0).matches("m-foot-de-l")
    assert not Override("m-*", "axial", 1.0, 0.0).matches("p-de")
    assert Override("p-de", "axial", 1.0, 0.0).matches("p-de")


def test_fault_by_name() -> None:
    assert fault_by_name("Soft Foot") is ODSFault.SoftFoot
    assert fault_by_name("OilWhip") is OrbitFault.OilWhip
    with pytest.raises(KeyError):
        fault_by_name("Bird Strike")
