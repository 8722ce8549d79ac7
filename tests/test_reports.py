from __future__ import annotations

from odsim.presets import ODSFault, OrbitFault, apply_preset, default_ods_points, default_orbit_points
from odsim.reports import (
    DiagnosticsResult,
    clock_label,
    diagnostics_prompt,
    health_of,
    orbit_summary_text,
    point_summary_text,
    run_diagnostics,
)


def test_clock_label() -> None:
    assert clock_label(0.0) == "12:00"
    assert clock_label(90.0) == "03:00"
    assert clock_label(180.0) == "06:00"
    assert clock_label(270.0) == "09:00"


def test_clock_label_half_hours_and_wrap() -> None:
    assert clock_label(20.0) == "12:30"
    assert clock_label(45.0) == "01:30"
    assert clock_label(350.0) == "11:30"
    assert clock_label(355.0) == "12:00"
    assert clock_label(-90.0) == "09:00"
    assert clock_label(359.95) == "12:00"


def test_point_summary_marks_reference() -> None:
    pts, _ = apply_preset(default_ods_points(), ODSFault.LoosenessStructural)
    text = point_summary_text(pts)
    assert "POINT [Motor DE Brg (ID: m-de)] <<REFERENCE PHASE>>" in text
    assert "<<REFERENCE PHASE>>" not in text.split("m-de")[0]
    assert "Harmonics: [2X: 5.00 mm/s]" in text
    assert "Dominant 1X" in text


def test_orbit_summary_with_custom_trace() -> None:
    pts, _ = apply_preset(default_orbit_points(), OrbitFault.Misalignment)
    text = orbit_summary_text(pts, "figure eight")
    assert '"figure eight"' in text
    assert "PROBE [Probe X]" in text
    assert "Amplitude: 35.00" in text
    assert "Spectrum Peaks" in text
    assert "VISUAL INSPECTION" not in orbit_summary_text(pts)


def test_prompts_name_their_standards() -> None:
    ods = diagnostics_prompt("ODS", "SUMMARY", "pump trips", "hot bearing")
    orbit = diagnostics_prompt("Orbit", "SUMMARY")
    assert "ISO 10816-3" in ods
    assert "pump trips" in ods and "hot bearing" in ods
    assert "ISO 7919-3" in orbit
    assert "Additional Case Notes" not in orbit


def test_no_client_is_reported() -> None:
    result = run_diagnostics(None, "prompt")
    assert not result.ok
    assert result.error


def test_client_failure_is_contained() -> None:
    def broken(_prompt: str) -> str:
        raise RuntimeError("quota exceeded")

    result = run_diagnostics(broken, "prompt")
    assert not result.ok
    assert "quota exceeded" in result.error


def test_fenced_json_is_parsed() -> None:
    reply = 'Here you go:\n```json\n{"machineHealth": "Unsatisfactory", "faults": [], "recommendations": ["align"]}\n```'
    result = run_diagnostics(lambda _p: reply, "prompt")
    assert result.ok
    assert result.data["recommendations"] == ["align"]
    assert health_of(result) == "Unsatisfactory"


def test_plain_text_reply_has_no_data() -> None:
    result = run_diagnostics(lambda _p: "looks fine to me", "prompt")
    assert result.ok
    assert result.data is None
    assert health_of(result) is None


def test_unknown_health_level_is_ignored() -> None:
    assert health_of(DiagnosticsResult(ok=True, data={"machineHealth": "Meh"})) is None
