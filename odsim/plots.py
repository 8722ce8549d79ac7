import math
from typing import Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.ticker import FormatStrFormatter

from .config import SimulationSettings
from .field import displacement_field, heat_map_color, heat_map_scale
from .orbit import (
    KEYPHASOR_ID,
    PROBE_X_ID,
    PROBE_Y_ID,
    ClockSnapshot,
    OrbitTrail,
    find_point,
    keyphasor_mark,
    keyphasor_pulse,
    orbit_trace,
    probe_scalar,
    timebase_angles,
)
from .signal import evaluate_angle, peak_amplitude, waveform_angle
from .spectrum import display_limit, keyphasor_spectrum, order_spectrum, time_waveform
from .types import AXES, MeasurementPoint, OrderFilter

PANEL_BG = "#c0c0c0"

AXIS_COLOR = {
    "vertical": "#0047AB",
    "horizontal": "#B00020",
    "axial": "#0A8F08",
}

AXIS_TAG = {"vertical": "VERT", "horizontal": "HOR", "axial": "AXL"}

PART_COLOR = {
    "skid": "#64748b",
    "motor": "#1e3a8a",
    "pump": "#047857",
    "shaft": "#475569",
    "coupling": "#333333",
}

SENSOR_COLOR = "#ef4444"
SENSOR_REF_COLOR = "#3b82f6"
KEYPHASOR_COLOR = "#ef4444"
ORBIT_COLOR = "#b58900"
TRAIL_COLOR = "#0891b2"


def _frame(ax) -> None:
    for sp in ax.spines.values():
        sp.set_color("black")
        sp.set_linewidth(1.0)


# ------------------------------------------------------------------
# Machine outline (side / plan polylines in model space)
# ------------------------------------------------------------------

def _densify(corners: Sequence[Sequence[float]], per_edge: int = 24) -> np.ndarray:
    pts = np.asarray(corners, dtype=float)
    segs = [np.linspace(pts[i], pts[i + 1], per_edge, endpoint=False) for i in range(len(pts) - 1)]
    return np.vstack(segs + [pts[-1:]])


def _box_side(x: float, y0: float, y1: float, z0: float, z1: float) -> np.ndarray:
    return _densify([(x, y0, z0), (x, y0, z1), (x, y1, z1), (x, y1, z0), (x, y0, z0)])


def _box_plan(y: float, x0: float, x1: float, z0: float, z1: float) -> np.ndarray:
    return _densify([(x0, y, z0), (x0, y, z1), (x1, y, z1), (x1, y, z0), (x0, y, z0)])


def machine_outline() -> Dict[str, Dict[str, np.ndarray]]:
    """Rest-pose polylines per part for the side (z-y) and plan (z-x) views."""
    return {
        "skid": {
            # Rail through the anchor bolt line so the bolts pin it.
            "side": _box_side(1.4, 0.0, 0.1, -2.0, 10.0),
            "plan": _box_plan(0.05, -1.5, 1.5, -2.0, 10.0),
        },
        "motor": {
            "side": _box_side(0.0, 0.3, 1.9, -1.2, 1.4),
            "plan": _box_plan(1.0, -0.8, 0.8, -1.2, 1.4),
        },
        "shaft": {
            "side": _densify([(0.0, 1.0, 1.4), (0.0, 1.0, 5.0)], 48),
            "plan": _densify([(0.0, 1.0, 1.4), (0.0, 1.0, 5.0)], 48),
        },
        "coupling": {
            "side": _box_side(0.0, 0.7, 1.3, 2.85, 3.15),
            "plan": _box_plan(1.0, -0.3, 0.3, 2.85, 3.15),
        },
        "pump": {
            "side": _box_side(0.0, 0.5, 1.8, 5.0, 7.0),
            "plan": _box_plan(1.0, -0.7, 0.7, 5.0, 7.0),
        },
    }


def plot_deflection_view(
    points: List[MeasurementPoint],
    snapshot: ClockSnapshot,
    settings: SimulationSettings,
    selected_id: Optional[str] = None,
) -> plt.Figure:
    """Side elevation and plan view of the deformed train at one instant."""
    fig = plt.figure(figsize=(7.2, 4.6), dpi=120)
    fig.patch.set_facecolor(PANEL_BG)
    gs = fig.add_gridspec(nrows=2, ncols=1, height_ratios=[1.0, 1.0], hspace=0.32)

    views = (("side", 1, "Side elevation (Z / Y)"), ("plan", 0, "Plan view (Z / X)"))
    outline = machine_outline()

    for row, (view, comp_idx, title) in enumerate(views):
        ax = fig.add_subplot(gs[row, 0])
        ax.set_facecolor("white")
        ax.set_title(title, fontsize=8, fontweight="bold", loc="left")

        for part, geo in outline.items():
            rest = geo[view]
            disp = displacement_field(
                rest,
                snapshot.time,
                points,
                settings.global_gain,
                animation_rpm=settings.animation_rpm,
                anchored=(part == "skid" and settings.anchored_skid),
            )
            moved = rest + disp
            ax.plot(rest[:, 2], rest[:, comp_idx], color="#9ca3af", linewidth=0.6, linestyle=":")

            if settings.heat_map:
                colors = [heat_map_color(heat_map_scale(d, settings.global_gain)) for d in disp]
                ax.scatter(moved[:, 2], moved[:, comp_idx], c=colors, s=5, linewidths=0, zorder=3)
            else:
                ax.plot(moved[:, 2], moved[:, comp_idx], color=PART_COLOR[part], linewidth=1.6)

        for p in points:
            if p.id == selected_id:
                color = "#fbbf24"
            elif p.is_reference:
                color = SENSOR_REF_COLOR
            else:
                color = SENSOR_COLOR
            ax.scatter([p.position[2]], [p.position[comp_idx]], s=22, color=color, edgecolors="black", linewidths=0.4, zorder=5)
            if p.is_reference and row == 0:
                ax.text(p.position[2], p.position[comp_idx] + 0.25, "REF", fontsize=7, color=SENSOR_REF_COLOR, ha="center")

        ax.set_xlim(-2.5, 10.5)
        ax.set_ylim(*((-0.6, 3.0) if view == "side" else (-2.2, 2.2)))
        ax.set_aspect("equal", adjustable="box")
        ax.tick_params(labelsize=7)
        ax.grid(True, linestyle=":", linewidth=0.6)
        _frame(ax)

    fig.subplots_adjust(left=0.07, right=0.98, top=0.95, bottom=0.07)
    return fig


# ------------------------------------------------------------------
# Waveform + spectrum
# ------------------------------------------------------------------

def plot_analysis_panel(point: MeasurementPoint, axis: str, machine_rpm: float) -> plt.Figure:
    """Time waveform (3 revolutions) over an order spectrum for one channel."""
    is_kp = point.id == KEYPHASOR_ID
    comp = point.horizontal if is_kp else point.component(axis)

    fig = plt.figure(figsize=(4.8, 3.6), dpi=120)
    fig.patch.set_facecolor(PANEL_BG)
    gs = fig.add_gridspec(nrows=2, ncols=1, hspace=0.45)

    ax1 = fig.add_subplot(gs[0, 0])
    ax1.set_facecolor("white")
    if is_kp:
        thetas = np.linspace(0.0, 3 * 2.0 * math.pi, 600, endpoint=False)
        values = keyphasor_pulse(thetas, comp.phase_meas, comp.amplitude)
        limit = max(5.0, comp.amplitude * 1.2)
        color = KEYPHASOR_COLOR
        title = f"Keyphasor (Machine: {machine_rpm:.0f} RPM)"
    else:
        thetas, values = time_waveform(comp)
        limit = display_limit(comp)
        color = AXIS_COLOR.get(axis, "#0891b2")
        title = f"TWF {AXIS_TAG.get(axis, axis)} (Machine: {machine_rpm:.0f} RPM)"

    ax1.plot(thetas / (2.0 * math.pi), values, color=color, linewidth=1.3)
    ax1.axhline(0.0, color="black", linewidth=0.6)
    ax1.set_ylim(-limit, limit)
    ax1.set_xlim(0.0, 3.0)
    ax1.set_xlabel("revolutions", fontsize=7)
    ax1.set_title(title, fontsize=8, fontweight="bold", loc="left")
    ax1.tick_params(labelsize=7)
    ax1.yaxis.set_major_formatter(FormatStrFormatter("%.1f"))
    ax1.grid(True, linestyle=":", linewidth=0.6)
    _frame(ax1)

    ax2 = fig.add_subplot(gs[1, 0])
    ax2.set_facecolor("white")
    orders, bars = keyphasor_spectrum(comp.amplitude) if is_kp else order_spectrum(comp)
    width = (orders[1] - orders[0]) * 0.8 if len(orders) > 1 else 0.05

    bar_colors = []
    for o, b in zip(orders, bars):
        if is_kp:
            bar_colors.append(KEYPHASOR_COLOR)
        elif abs(o - 1.0) < 0.1:
            bar_colors.append("#facc15")
        elif abs(o - 2.0) < 0.1:
            bar_colors.append("#f59e0b")
        elif abs(o - 3.0) < 0.1:
            bar_colors.append("#ef4444")
        elif b > comp.amplitude * 0.2:
            bar_colors.append("#22d3ee")
        else:
            bar_colors.append("#1e293b")

    ax2.bar(orders, bars, width=width, color=bar_colors, align="edge")
    ax2.set_xlim(0.0, orders[-1] + width)
    ax2.set_ylim(0.0, max(comp.amplitude, 1.0) * 1.2 / 0.9)
    ax2.set_xticks([1, 2, 3, 4, 5, 6, 7, 8, 9])
    ax2.set_xticklabels([f"{k}X" for k in range(1, 10)], fontsize=7)
    ax2.set_title("Spectrum (Orders)", fontsize=8, fontweight="bold", loc="left")
    ax2.tick_params(axis="y", labelsize=7)
    _frame(ax2)

    fig.subplots_adjust(left=0.10, right=0.98, top=0.93, bottom=0.08)
    return fig


# ------------------------------------------------------------------
# Phase polar (12 o'clock = 0 deg, clockwise)
# ------------------------------------------------------------------

def plot_phase_polar(points: List[MeasurementPoint], axis: str = "horizontal") -> plt.Figure:
    fig = plt.figure(figsize=(3.6, 3.2), dpi=120)
    fig.patch.set_facecolor(PANEL_BG)
    ax = fig.add_subplot(111, projection="polar")
    ax.set_facecolor("white")
    ax.set_theta_zero_location("N")
    ax.set_theta_direction(-1)
    ticks = [math.radians(t) for t in range(0, 360, 30)]
    ax.set_xticks(ticks)
    ax.set_xticklabels([f"{t}°" for t in range(0, 360, 30)], fontsize=7)

    amps = [p.component(axis).amplitude for p in points]
    rmax = max([1.0] + [a * 1.25 for a in amps])
    ax.tick_params(axis="y", labelsize=7)
    ax.grid(True, linestyle=":", linewidth=0.6)

    for p in points:
        comp = p.component(axis)
        theta = math.radians(comp.phase)
        color = SENSOR_REF_COLOR if p.is_reference else AXIS_COLOR.get(axis, "black")
        ax.plot([0.0, theta], [0.0, comp.amplitude], color=color, linewidth=1.0)
        ax.plot([theta], [comp.amplitude], marker="o", markersize=5, color=color)
        ax.text(theta, min(comp.amplitude + rmax * 0.06, rmax * 0.98), p.id, fontsize=6, ha="center")

    ax.set_ylim(0.0, rmax)
    ax.set_title(f"Relative phase ({AXIS_TAG.get(axis, axis)})", fontsize=8, fontweight="bold")
    fig.tight_layout(pad=0.55)
    return fig


# ------------------------------------------------------------------
# Orbit plot
# ------------------------------------------------------------------

def _probe_pair(orbit_points: List[MeasurementPoint]):
    px = find_point(orbit_points, PROBE_X_ID)
    py = find_point(orbit_points, PROBE_Y_ID)
    kp = find_point(orbit_points, KEYPHASOR_ID)
    return px, py, kp


def plot_orbit(
    orbit_points: List[MeasurementPoint],
    order_filter: OrderFilter,
    animation_rpm: float,
    custom_path: Optional[Sequence[Sequence[float]]] = None,
    custom_description: Optional[str] = None,
) -> plt.Figure:
    """Shaft centerline orbit (two revolutions) with the keyphasor dot."""
    fig = plt.figure(figsize=(4.0, 4.0), dpi=120)
    fig.patch.set_facecolor(PANEL_BG)
    ax = fig.add_subplot(111)
    ax.set_facecolor("#0f172a")
    ax.set_aspect("equal")

    px, py, kp = _probe_pair(orbit_points)

    if custom_path:
        arr = np.asarray(custom_path, dtype=float)
        if len(arr) > 2:
            arr = np.vstack([arr, arr[:1]])
        ax.plot(arr[:, 0], arr[:, 1], color=TRAIL_COLOR, linewidth=1.6)
        lim = 1.25
        ax.set_title(custom_description or "CUSTOM ORBIT (TRACE)", fontsize=8, fontweight="bold", color="black")
    elif px is not None and py is not None:
        _, xs, ys = orbit_trace(px.horizontal, py.horizontal, order_filter)
        ax.plot(xs, ys, color=ORBIT_COLOR, linewidth=1.6)

        kx, ky = keyphasor_mark(px.horizontal, py.horizontal, kp, order_filter)
        ax.plot([kx], [ky], marker="o", markersize=6, color=KEYPHASOR_COLOR, markeredgecolor="white", zorder=5)

        max_amp = max(peak_amplitude(px.horizontal), peak_amplitude(py.horizontal)) * 1.5
        lim = max_amp or 1.0
        ax.text(0.98, 0.02, f"Scale: {max_amp:.0f} µm", transform=ax.transAxes, fontsize=7, ha="right", color="#94a3b8")
        if not order_filter.passes_noise:
            ax.text(0.5, 0.02, f"FILTER: {order_filter.label()}", transform=ax.transAxes, fontsize=7, ha="center", color="#06b6d4")
        ax.set_title("Orbit (Shaft Centerline)", fontsize=8, fontweight="bold")
    else:
        lim = 1.0

    # Clearance circle
    circ = plt.Circle((0.0, 0.0), lim * 0.75, fill=False, linestyle="--", color="#334155", linewidth=0.8)
    ax.add_patch(circ)
    ax.axhline(0.0, color="#334155", linewidth=0.8)
    ax.axvline(0.0, color="#334155", linewidth=0.8)
    ax.set_xlim(-lim, lim)
    ax.set_ylim(-lim, lim)
    ax.set_xlabel("X", fontsize=7)
    ax.set_ylabel("Y", fontsize=7)
    ax.tick_params(labelsize=7)
    ax.text(0.02, 0.02, f"RPM: {animation_rpm:.0f}", transform=ax.transAxes, fontsize=7, color="#94a3b8")
    _frame(ax)
    fig.tight_layout(pad=0.55)
    return fig


def plot_orbit_live(
    orbit_points: List[MeasurementPoint],
    snapshot: ClockSnapshot,
    trail: OrbitTrail,
    order_filter: OrderFilter,
    global_gain: float,
) -> plt.Figure:
    """Live timebase (probe X, probe Y, keyphasor) beside the trailing orbit."""
    fig = plt.figure(figsize=(7.2, 3.6), dpi=120)
    fig.patch.set_facecolor(PANEL_BG)
    gs = fig.add_gridspec(nrows=3, ncols=2, width_ratios=[0.68, 0.32], hspace=0.35, wspace=0.18)

    px, py, kp = _probe_pair(orbit_points)
    thetas = timebase_angles(snapshot.angle)
    x_rev = np.linspace(-3.0, 0.0, len(thetas))

    channels = ((px, "Probe X", "#fbbf24"), (py, "Probe Y", "#22d3ee"))
    for row, (pt, label, color) in enumerate(channels):
        ax = fig.add_subplot(gs[row, 0])
        ax.set_facecolor("#0f172a")
        if pt is not None:
            comp = pt.horizontal
            values = waveform_angle(comp, thetas, order_filter)
            now = evaluate_angle(comp, snapshot.angle, order_filter)
            limit = (peak_amplitude(comp) or 10.0) * 1.2
            ax.plot(x_rev, values, color=color, linewidth=1.2)
            ax.set_ylim(-limit, limit)
            ax.text(0.99, 0.85, f"{now:0.1f} µm", transform=ax.transAxes, fontsize=7, ha="right", color=color)
        ax.axhline(0.0, color="#334155", linewidth=0.6)
        ax.set_xlim(-3.0, 0.0)
        ax.set_xticks([])
        ax.tick_params(labelsize=6)
        ax.text(0.01, 0.85, label, transform=ax.transAxes, fontsize=7, color=color)

    ax_kp = fig.add_subplot(gs[2, 0])
    ax_kp.set_facecolor("#0f172a")
    if kp is not None:
        amp = kp.horizontal.amplitude or 5.0
        # Pulses fire when the shaft passes the keyphasor notch.
        pulse = keyphasor_pulse(-thetas, kp.horizontal.phase_meas, amp)
        ax_kp.plot(x_rev, pulse, color=KEYPHASOR_COLOR, linewidth=1.2, drawstyle="steps-mid")
        ax_kp.set_ylim(-amp * 0.5, amp * 1.3)
    ax_kp.set_xlim(-3.0, 0.0)
    ax_kp.set_xlabel("revolutions (now = 0)", fontsize=7)
    ax_kp.tick_params(labelsize=6)
    ax_kp.text(0.01, 0.8, "Keyphasor", transform=ax_kp.transAxes, fontsize=7, color=KEYPHASOR_COLOR)

    ax_o = fig.add_subplot(gs[:, 1])
    ax_o.set_facecolor("#0f172a")
    ax_o.set_aspect("equal")
    hist = trail.as_array()
    if len(hist) >= 2:
        ax_o.plot(hist[:, 0], hist[:, 1], color=TRAIL_COLOR, linewidth=1.4)
    if len(hist):
        ax_o.plot([hist[-1, 0]], [hist[-1, 1]], marker="o", markersize=5, color="white")
    lim = 0.0
    if px is not None and py is not None:
        lim = max(peak_amplitude(px.horizontal), peak_amplitude(py.horizontal)) * probe_scalar(global_gain) * 1.3
    if len(hist):
        lim = max(lim, float(np.abs(hist[:, :2]).max()) * 1.1)
    lim = lim or 0.1
    ax_o.set_xlim(-lim, lim)
    ax_o.set_ylim(-lim, lim)
    ax_o.axhline(0.0, color="#334155", linewidth=0.6)
    ax_o.axvline(0.0, color="#334155", linewidth=0.6)
    ax_o.set_xticks([])
    ax_o.set_yticks([])
    ax_o.set_title("Live orbit", fontsize=8, fontweight="bold")

    fig.subplots_adjust(left=0.05, right=0.98, top=0.92, bottom=0.12)
    return fig


def axis_table_rows(point: MeasurementPoint) -> List[Dict[str, object]]:
    """Rows for the point editor summary table."""
    rows = []
    for axis in AXES:
        comp = point.component(axis)
        rows.append(
            {
                "Axis": AXIS_TAG[axis],
                "Amp": round(comp.amplitude, 3),
                "Phase meas (°)": round(comp.phase_meas, 1),
                "Phase rel (°)": round(comp.phase, 1),
                "Harmonics": ", ".join(f"{h.order:g}X×{h.amplitude_ratio:g}" for h in comp.harmonics) or "-",
                "Noise": comp.noise,
            }
        )
    return rows
