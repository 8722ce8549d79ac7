from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .orbit import PROBE_X_ID, PROBE_Y_ID, find_point
from .signal import wrap360
from .types import AXES, MeasurementPoint, VibrationComponent

LOGGER = logging.getLogger(__name__)

# The diagnostics collaborator: prompt text in, free-form text (ideally JSON) out.
DiagnosticsClient = Callable[[str], str]

HEALTH_LEVELS = ("Good", "Satisfactory", "Unsatisfactory", "Unacceptable")


def clock_label(phase_deg: float) -> str:
    """Relative phase as a clock position, to the nearest half hour (0° is 12:00)."""
    half_hours = int(round(wrap360(phase_deg) / 15.0)) % 24
    hour = half_hours // 2 or 12
    return f"{hour:02d}:{30 if half_hours % 2 else 0:02d}"


def _harmonic_text(comp: VibrationComponent, unit: str) -> str:
    return ", ".join(f"{h.order:g}X: {h.amplitude_ratio * comp.amplitude:0.2f} {unit}" for h in comp.harmonics)


def point_summary_text(points: List[MeasurementPoint]) -> str:
    """Per point/axis amplitude, measured phase and harmonic content."""
    lines: List[str] = []
    for p in points:
        ref = " <<REFERENCE PHASE>>" if p.is_reference else ""
        lines.append(f"POINT [{p.label} (ID: {p.id})]{ref}")
        for axis in AXES:
            comp = p.component(axis)
            row = f"  - {axis.upper()}: {comp.amplitude:0.2f} mm/s @ {comp.phase_meas:0.0f}°"
            if comp.harmonics:
                row += f" | Harmonics: [{_harmonic_text(comp, 'mm/s')}]"
            else:
                row += " | Dominant 1X"
            lines.append(row)
        lines.append("")
    return "\n".join(lines)


def orbit_summary_text(orbit_points: List[MeasurementPoint], custom_description: Optional[str] = None) -> str:
    lines: List[str] = []
    if custom_description:
        lines.append("**VISUAL INSPECTION (CUSTOM ORBIT):**")
        lines.append(f'The user has identified and traced the following orbit shape: "{custom_description}".')
        lines.append("Use this visual confirmation as a PRIMARY factor in your diagnosis.")
        lines.append("")

    for pid in (PROBE_X_ID, PROBE_Y_ID):
        p = find_point(orbit_points, pid)
        if p is None:
            continue
        comp = p.horizontal
        lines.append(f"PROBE [{p.label}]")
        lines.append(f"  - Amplitude: {comp.amplitude:0.2f} µm pp (Peak-to-Peak)")
        lines.append(f"  - Phase: {comp.phase_meas:0.0f}°")
        if comp.harmonics:
            lines.append(f"  - Spectrum Peaks: [{_harmonic_text(comp, 'µm')}]")
        else:
            lines.append("  - Spectrum: Dominant 1X")
        lines.append("")
    return "\n".join(lines)


_SCHEMA = """{
  "machineHealth": "Good" | "Satisfactory" | "Unsatisfactory" | "Unacceptable",
  "isoCheck": "string describing %s compliance status",
  "faults": [
      { "faultName": "string", "probability": "Low"|"Medium"|"High", "reasoning": "string referencing %s" }
  ],
  "recommendations": [ "string", "string" ]
}"""


def diagnostics_prompt(mode: str, summary: str, context: str = "", case_notes: str = "") -> str:
    """Analyst prompt for the external diagnostics collaborator."""
    notes = f"\nAdditional Case Notes Derived from Investigation:\n{case_notes}\n" if case_notes else ""

    if mode == "ODS":
        return (
            "Role: Senior Vibration Analyst (Category IV).\n"
            "Objective: Analyze the provided vibration data and user context to generate a failure diagnostics report.\n"
            "Standards: Reference ISO 10816-3 (Group 1: Large rigid machines) for severity.\n\n"
            f'User Context: "{context}"\n{notes}\n'
            "Vibration Data (Amplitude in mm/s RMS, Phase in Degrees):\n"
            f"{summary}\n"
            "Instructions:\n"
            "1. Relate the vibration data (Direction, Amplitude, Phase shifts between points) to the User Context.\n"
            "2. Identify specific faults (e.g., Static vs Couple Unbalance, Angular vs Parallel Misalignment, Soft Foot).\n"
            "3. 'REFERENCE PHASE' marks the 0-degree measuring point. Use phase differences "
            "(e.g., 180 deg shift across coupling) for diagnosis.\n\n"
            "Return a JSON object strictly adhering to this schema:\n"
            + _SCHEMA % ("ISO", "specific data points/phases")
        )

    return (
        "Role: Senior Machinery Diagnostician & Tribologist.\n"
        "Objective: Analyze Shaft Relative Vibration (Proximity Probe Orbit/Timebase) data for a Sleeve Bearing machine.\n"
        "Standards: Reference ISO 7919-3 and API 670.\n\n"
        f'User Context: "{context}"\n{notes}\n'
        "Vibration Data (Displacement in microns Peak-to-Peak):\n"
        f"{summary}\n"
        "Instructions:\n"
        "1. Analyze the relationship between Probe X and Probe Y data.\n"
        "   - Equal amplitudes with 90° phase shift typically indicates Unbalance (Circular Orbit).\n"
        "   - High 1X with 0° or 180° phase shift often indicates Misalignment (Elliptical/Banana Orbit).\n"
        "   - Sub-synchronous peaks (0.4X - 0.48X) indicate Oil Whirl / Fluid Instability.\n"
        "   - Integer harmonics (2X, 3X) often indicate Looseness, Rub, or Crack.\n"
        "2. Infer the likely Orbit Shape based on the X/Y amplitude ratio and phase difference.\n"
        "3. Provide recommendations specific to Fluid Film bearings.\n\n"
        "Return a JSON object strictly adhering to this schema:\n"
        + _SCHEMA % ("ISO 7919 / API", "specific orbit characteristics")
    )


@dataclass
class DiagnosticsResult:
    ok: bool
    text: str = ""
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def _extract_json(text: str) -> Optional[Dict[str, Any]]:
    # Models often wrap JSON in a ```json fence.
    fenced = re.search(r"```(?:json)?\s*(\{.*\})\s*```", text, re.S)
    candidate = fenced.group(1) if fenced else text.strip()
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def run_diagnostics(client: Optional[DiagnosticsClient], prompt: str) -> DiagnosticsResult:
    """Ask the collaborator; failures come back as a message, never raise."""
    if client is None:
        return DiagnosticsResult(ok=False, error="No diagnostics service configured.")
    try:
        text = client(prompt)
    except Exception as exc:  # collaborator boundary
        LOGGER.warning("Diagnostics collaborator failed: %s", exc)
        return DiagnosticsResult(ok=False, error=f"Diagnostics failed: {exc}")
    text = text or ""
    return DiagnosticsResult(ok=True, text=text, data=_extract_json(text))


def health_of(result: DiagnosticsResult) -> Optional[str]:
    if not result.data:
        return None
    health = result.data.get("machineHealth")
    return health if health in HEALTH_LEVELS else None
