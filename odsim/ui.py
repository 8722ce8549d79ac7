"""UI rendering.

The app is ONE main window whose content changes with navigation (no
overlapping dialogs). Streamlit has no frame loop: "Play" runs a burst of
frames inside the script run, advancing the shared clock once per frame,
then reruns while still playing.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, List, Optional

import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st

from .config import (
    ANIMATION_RPM_RANGE,
    FILTER_ORDER_RANGE,
    GAIN_RANGE,
    LINE_FREQS,
    MACHINE_RPM_RANGE,
    PHASE_RANGE,
    clamp_settings,
    default_settings,
)
from .orbit import (
    KEYPHASOR_ID,
    PROBE_X_ID,
    PROBE_Y_ID,
    ClockSnapshot,
    OrbitTrail,
    SimulationClock,
    orbit_displacement,
)
from .phase import DEFAULT_REFERENCE_ID, normalize, normalize_absolute, set_reference
from .plots import (
    axis_table_rows,
    plot_analysis_panel,
    plot_deflection_view,
    plot_orbit,
    plot_orbit_live,
    plot_phase_polar,
)
from .presets import (
    ODSFault,
    OrbitFault,
    apply_preset,
    default_ods_points,
    default_orbit_points,
    refresh_line_frequency_presets,
)
from .reports import (
    clock_label,
    diagnostics_prompt,
    health_of,
    orbit_summary_text,
    point_summary_text,
    run_diagnostics,
)
from .signal import wrap360
from .tables import TableFormatError, export_points, import_points, read_orbit_path
from .types import AXES, FILTER_TYPES, Harmonic, MeasurementPoint, OrderFilter

LOGGER = logging.getLogger(__name__)


# ---------------------------
# Navigation / state
# ---------------------------

def go(screen: str, **kwargs) -> None:
    st.session_state.odsim_screen = screen
    for k, v in kwargs.items():
        st.session_state[k] = v


def init_state() -> None:
    st.session_state.setdefault("odsim_screen", "home")

    st.session_state.setdefault("odsim_points", default_ods_points())
    st.session_state.setdefault("odsim_reference_id", DEFAULT_REFERENCE_ID)
    st.session_state.setdefault("odsim_ods_fault", ODSFault.Manual)

    st.session_state.setdefault("odsim_orbit_points", default_orbit_points())
    st.session_state.setdefault("odsim_orbit_fault", OrbitFault.Manual)
    st.session_state.setdefault("odsim_custom_path", None)
    st.session_state.setdefault("odsim_custom_description", "")

    st.session_state.setdefault("odsim_settings", default_settings())
    st.session_state.setdefault("odsim_clock", SimulationClock(playing=False))
    st.session_state.setdefault("odsim_trail", OrbitTrail())

    st.session_state.setdefault("odsim_selected_point", DEFAULT_REFERENCE_ID)
    st.session_state.setdefault("odsim_selected_axis", "horizontal")
    st.session_state.setdefault("odsim_selected_probe", PROBE_X_ID)

    # Bumped whenever points change wholesale so editor widgets re-read values.
    st.session_state.setdefault("odsim_rev", 0)

    st.session_state.setdefault("odsim_import_report", None)
    # Optional diagnostics collaborator: Callable[[str], str].
    st.session_state.setdefault("odsim_diag_client", None)
    st.session_state.setdefault("odsim_diag_result", None)


def _bump_rev() -> None:
    st.session_state.odsim_rev = int(st.session_state.odsim_rev) + 1


def set_ods_points(points: List[MeasurementPoint], reference_id: Optional[str]) -> None:
    st.session_state.odsim_points = points
    st.session_state.odsim_reference_id = reference_id
    _bump_rev()


def set_orbit_points(points: List[MeasurementPoint]) -> None:
    st.session_state.odsim_orbit_points = points
    st.session_state.odsim_trail.clear()
    _bump_rev()


# ---------------------------
# Window chrome helpers
# ---------------------------

def win_caption(title: str, active: bool) -> None:
    cls = "active" if active else "inactive"
    st.markdown(
        f"<div class='odsim-win-caption {cls}'>"
        f"<div>{title}</div>"
        "<div class='odsim-closebox'>✕</div>"
        "</div>",
        unsafe_allow_html=True,
    )


def right_close_button(
    label: str,
    *,
    target: Optional[str] = None,
    on_click: Optional[Callable[[], None]] = None,
    key: Optional[str] = None,
) -> None:
    """Right-aligned button (usually Close). Always keyed explicitly."""
    screen = str(st.session_state.get("odsim_screen", ""))
    if key is None:
        safe = "".join(ch if ch.isalnum() else "_" for ch in label.lower())
        key = f"btn_{screen}_{safe}_right"

    cols = st.columns([0.75, 0.25])
    with cols[1]:
        if st.button(label, use_container_width=True, key=key):
            if target is not None:
                go(target)
            if on_click is not None:
                on_click()
            st.rerun()


def _centered_buttons(labels_and_targets):
    left, mid, right = st.columns([0.20, 0.60, 0.20])
    with mid:
        for label, target in labels_and_targets:
            screen = str(st.session_state.get("odsim_screen", ""))
            safe_t = "".join(ch if ch.isalnum() else "_" for ch in str(target))
            if st.button(label, use_container_width=True, key=f"btn_{screen}_{safe_t}"):
                go(target)
                st.rerun()


def _show(ph, fig) -> None:
    ph.pyplot(fig, clear_figure=True)
    plt.close(fig)


def _spacer(px: int) -> None:
    st.markdown(f"<div style='height:{px}px;'></div>", unsafe_allow_html=True)


# ---------------------------
# Desktop (single-window)
# ---------------------------

def render_desktop() -> None:
    desk = st.container(border=True)
    with desk:
        st.markdown("<div class='odsim-desktop-marker'></div>", unsafe_allow_html=True)
        screen = st.session_state.odsim_screen
        if screen == "home":
            screen_home_window()
        elif screen == "ods":
            screen_ods_window()
        elif screen == "orbit":
            screen_orbit_window()
        elif screen == "settings":
            screen_settings_window()
        elif screen == "data":
            screen_data_window()
        elif screen == "diagnostics":
            screen_diagnostics_window()
        else:
            LOGGER.warning("Unknown screen %r; returning home", screen)
            go("home")
            st.rerun()


def status_text() -> str:
    s = st.session_state.odsim_settings
    clock = st.session_state.odsim_clock
    return (
        f"<span>{'PLAYING' if clock.playing else 'PAUSED'}</span>"
        f"<span>Anim {s.animation_rpm:.0f} RPM</span>"
        f"<span>Machine {s.machine_rpm:.0f} RPM</span>"
        f"<span>Gain {s.global_gain:.0f}</span>"
        f"<span>Line {s.line_freq:.0f} Hz</span>"
        f"<span>Filter {s.order_filter.label()}</span>"
        f"<span>Ref {st.session_state.odsim_reference_id or '-'}</span>"
    )


def screen_home_window() -> None:
    win_caption("Select Procedure:", active=True)
    _spacer(8)
    _centered_buttons(
        [
            ("ODS Analysis (Motor / Pump Skid)", "ods"),
            ("Shaft Orbit (Proximity Probes)", "orbit"),
            ("Simulation Settings", "settings"),
            ("Data Manager", "data"),
            ("Diagnostics Report", "diagnostics"),
        ]
    )


# ---------------------------
# Animation bursts
# ---------------------------

def _play_controls(prefix: str) -> None:
    clock: SimulationClock = st.session_state.odsim_clock
    c1, c2, c3 = st.columns([0.34, 0.33, 0.33])
    with c1:
        label = "Pause" if clock.playing else "Play"
        if st.button(label, use_container_width=True, key=f"{prefix}_play"):
            clock.toggle()
            st.rerun()
    with c2:
        if st.button("Step", use_container_width=True, key=f"{prefix}_step", disabled=clock.playing):
            s = st.session_state.odsim_settings
            snap = clock.step(s.frame_dt, s.animation_rpm)
            LOGGER.debug("Stepped to t=%.3f", snap.time)
            st.rerun()
    with c3:
        if st.button("Reset clock", use_container_width=True, key=f"{prefix}_reset"):
            clock.reset()
            st.session_state.odsim_trail.clear()
            st.rerun()


def run_burst(draw_frame: Callable[[ClockSnapshot], None]) -> None:
    """Draw frames while playing; each frame advances the clock exactly once."""
    clock: SimulationClock = st.session_state.odsim_clock
    s = st.session_state.odsim_settings
    if not clock.playing:
        draw_frame(clock.snapshot())
        return

    for _ in range(s.frames_per_burst):
        draw_frame(clock.advance(s.frame_dt, s.animation_rpm))
        time.sleep(s.frame_dt)
    st.rerun()


# ---------------------------
# ODS screen
# ---------------------------

def _point_editor(points: List[MeasurementPoint], ref_id: Optional[str]) -> None:
    rev = int(st.session_state.odsim_rev)
    ids = [p.id for p in points]
    sel = st.session_state.odsim_selected_point
    if sel not in ids:
        sel = ids[0]
    sel = st.selectbox(
        "Point",
        ids,
        index=ids.index(sel),
        format_func=lambda pid: next(p.label for p in points if p.id == pid),
        key=f"ods_point_sel_{rev}",
    )
    st.session_state.odsim_selected_point = sel
    point = next(p for p in points if p.id == sel)

    edits = {}
    hdr = st.columns([0.28, 0.24, 0.24, 0.24])
    hdr[0].markdown("**Axis**")
    hdr[1].markdown("**Amp (mm/s)**")
    hdr[2].markdown("**Phase (°)**")
    hdr[3].markdown("**Noise**")
    for axis in AXES:
        comp = point.component(axis)
        row = st.columns([0.28, 0.24, 0.24, 0.24])
        row[0].markdown(axis.capitalize())
        amp = row[1].number_input(f"{axis} amplitude", min_value=0.0, value=float(comp.amplitude), step=0.5, key=f"ed_{rev}_{sel}_{axis}_amp", label_visibility="collapsed")
        ph = row[2].number_input(f"{axis} phase", *PHASE_RANGE, value=float(comp.phase_meas), step=5.0, key=f"ed_{rev}_{sel}_{axis}_ph", label_visibility="collapsed")
        nz = row[3].number_input(f"{axis} noise", min_value=0.0, value=float(comp.noise), step=0.5, key=f"ed_{rev}_{sel}_{axis}_nz", label_visibility="collapsed")
        edits[axis] = (amp, ph, nz)

    with st.expander("Harmonics"):
        h_axis = st.selectbox("Axis", AXES, index=AXES.index("horizontal"), key=f"ed_{rev}_{sel}_h_axis")
        current = point.component(h_axis).harmonics
        st.markdown(
            ", ".join(f"{h.order:g}X ×{h.amplitude_ratio:g} @ {h.phase_shift_deg:+.0f}°" for h in current) or "None"
        )
        hc = st.columns(3)
        h_order = hc[0].number_input("Order", min_value=0.1, max_value=20.0, value=2.0, step=0.5, key=f"ed_{rev}_{sel}_h_order")
        h_ratio = hc[1].number_input("Ratio", min_value=0.0, max_value=5.0, value=0.5, step=0.1, key=f"ed_{rev}_{sel}_h_ratio")
        h_shift = hc[2].number_input("Shift (°)", min_value=-360.0, max_value=360.0, value=0.0, step=15.0, key=f"ed_{rev}_{sel}_h_shift")
        bc = st.columns(2)
        if bc[0].button("Add harmonic", use_container_width=True, key=f"ed_{rev}_{sel}_h_add"):
            harmonics = list(current) + [Harmonic(h_order, h_ratio, h_shift)]
            _replace_component(points, ref_id, sel, h_axis, harmonics=harmonics)
        if bc[1].button("Clear harmonics", use_container_width=True, key=f"ed_{rev}_{sel}_h_clear"):
            _replace_component(points, ref_id, sel, h_axis, harmonics=[])

    if st.button("Apply", use_container_width=True, key=f"ed_{rev}_{sel}_apply"):
        nxt = []
        for p in points:
            if p.id == sel:
                p = replace(
                    p,
                    **{
                        axis: replace(p.component(axis), amplitude=amp, phase_meas=wrap360(ph), noise=nz)
                        for axis, (amp, ph, nz) in edits.items()
                    },
                )
            nxt.append(p)
        set_ods_points(normalize(nxt, ref_id), ref_id)
        st.rerun()


def _replace_component(points: List[MeasurementPoint], ref_id: Optional[str], pid: str, axis: str, **changes) -> None:
    nxt = [replace(p, **{axis: replace(p.component(axis), **changes)}) if p.id == pid else p for p in points]
    set_ods_points(normalize(nxt, ref_id), ref_id)
    st.rerun()


def screen_ods_window() -> None:
    s = st.session_state.odsim_settings
    points: List[MeasurementPoint] = st.session_state.odsim_points
    ref_id = st.session_state.odsim_reference_id
    rev = int(st.session_state.odsim_rev)

    win_caption("ODS ANALYSIS", active=True)
    left, right = st.columns([0.34, 0.66], gap="medium")

    with left:
        faults = list(ODSFault)
        cur = st.session_state.odsim_ods_fault
        fault = st.selectbox(
            "Fault preset",
            faults,
            index=faults.index(cur),
            format_func=lambda f: f.value,
            key=f"ods_fault_{rev}",
        )
        if fault is not cur:
            nxt, new_ref = apply_preset(points, fault, machine_rpm=s.machine_rpm, line_freq=s.line_freq)
            st.session_state.odsim_ods_fault = fault
            set_ods_points(nxt, new_ref)
            st.rerun()

        ids = [p.id for p in points]
        ref_idx = ids.index(ref_id) if ref_id in ids else 0
        new_ref = st.selectbox("Phase reference", ids, index=ref_idx, key=f"ods_ref_{rev}")
        if new_ref != ref_id:
            nxt, resolved = set_reference(points, new_ref, ref_id)
            set_ods_points(nxt, resolved)
            st.rerun()

        _point_editor(points, ref_id)
        _spacer(6)
        _play_controls("ods")

    with right:
        ph = st.empty()
        selected = st.session_state.odsim_selected_point

        point = next((p for p in points if p.id == selected), points[0] if points else None)
        if point is not None:
            axis = st.radio(
                "Analysis axis",
                AXES,
                index=AXES.index(st.session_state.odsim_selected_axis),
                horizontal=True,
                key="ods_axis_radio",
            )
            st.session_state.odsim_selected_axis = axis
            a_col, p_col = st.columns([0.58, 0.42])
            with a_col:
                _show(st, plot_analysis_panel(point, axis, s.machine_rpm))
            with p_col:
                _show(st, plot_phase_polar(points, axis))
            st.dataframe(pd.DataFrame(axis_table_rows(point)), hide_index=True, use_container_width=True)
            ref = next((p for p in points if p.is_reference), None)
            if ref is not None:
                st.markdown(
                    f"<span class='odsim-ref'>REF {ref.label}</span> &nbsp; "
                    f"{point.label}: H {point.horizontal.phase:.0f}° rel ({clock_label(point.horizontal.phase)})",
                    unsafe_allow_html=True,
                )

        def draw(snap: ClockSnapshot) -> None:
            _show(ph, plot_deflection_view(points, snap, s, selected_id=selected))

        right_close_button("Close", target="home", key="ods_close")

    run_burst(draw)


# ---------------------------
# Orbit screen
# ---------------------------

def _probe_editor(points: List[MeasurementPoint]) -> None:
    rev = int(st.session_state.odsim_rev)
    edits = {}
    for pid in (PROBE_X_ID, PROBE_Y_ID, KEYPHASOR_ID):
        p = next((q for q in points if q.id == pid), None)
        if p is None:
            continue
        comp = p.horizontal
        row = st.columns([0.34, 0.33, 0.33])
        row[0].markdown(f"**{p.label}**")
        if pid == KEYPHASOR_ID:
            amp = float(comp.amplitude)
            row[1].markdown("")
        else:
            amp = row[1].number_input("Amp (µm pp)", min_value=0.0, value=float(comp.amplitude), step=5.0, key=f"orb_{rev}_{pid}_amp")
        ph = row[2].number_input("Phase (°)", *PHASE_RANGE, value=float(comp.phase_meas), step=5.0, key=f"orb_{rev}_{pid}_ph")
        edits[pid] = (amp, ph)

    if st.button("Apply", use_container_width=True, key=f"orb_{rev}_apply"):
        nxt = []
        for p in points:
            if p.id in edits:
                amp, ph = edits[p.id]
                p = replace(p, horizontal=replace(p.horizontal, amplitude=amp, phase_meas=wrap360(ph)))
            nxt.append(p)
        set_orbit_points(normalize_absolute(nxt))
        st.rerun()


def _custom_trace_panel() -> None:
    rev = int(st.session_state.odsim_rev)
    with st.expander("Custom orbit trace"):
        up = st.file_uploader("Trace (CSV with x, y columns)", type=["csv"], key=f"orb_trace_{rev}")
        desc = st.text_input("Shape description", value=st.session_state.odsim_custom_description, key=f"orb_trace_desc_{rev}")
        c1, c2 = st.columns(2)
        if c1.button("Use trace", use_container_width=True, key=f"orb_trace_use_{rev}", disabled=up is None):
            try:
                path = read_orbit_path(up, filename=up.name)
            except TableFormatError as exc:
                st.error(str(exc))
            else:
                st.session_state.odsim_custom_path = path
                st.session_state.odsim_custom_description = desc
                st.session_state.odsim_trail.clear()
                _bump_rev()
                st.rerun()
        if c2.button("Clear trace", use_container_width=True, key=f"orb_trace_clear_{rev}"):
            st.session_state.odsim_custom_path = None
            st.session_state.odsim_custom_description = ""
            st.session_state.odsim_trail.clear()
            _bump_rev()
            st.rerun()


def screen_orbit_window() -> None:
    s = st.session_state.odsim_settings
    points: List[MeasurementPoint] = st.session_state.odsim_orbit_points
    trail: OrbitTrail = st.session_state.odsim_trail
    custom_path = st.session_state.odsim_custom_path
    rev = int(st.session_state.odsim_rev)

    win_caption("SHAFT ORBIT", active=True)
    left, right = st.columns([0.34, 0.66], gap="medium")

    with left:
        faults = list(OrbitFault)
        cur = st.session_state.odsim_orbit_fault
        fault = st.selectbox("Fault preset", faults, index=faults.index(cur), format_func=lambda f: f.value, key=f"orb_fault_{rev}")
        if fault is not cur:
            nxt, _ = apply_preset(points, fault)
            st.session_state.odsim_orbit_fault = fault
            set_orbit_points(nxt)
            st.rerun()

        flt = s.order_filter
        fc = st.columns(2)
        kind = fc[0].selectbox("Filter", FILTER_TYPES, index=FILTER_TYPES.index(flt.kind), key="orb_filter_kind")
        order = fc[1].number_input(
            "Order (X)",
            min_value=FILTER_ORDER_RANGE[0],
            max_value=FILTER_ORDER_RANGE[1],
            value=float(flt.order),
            step=0.05,
            key="orb_filter_order",
            disabled=(kind == "None"),
        )
        new_flt = OrderFilter(kind, float(order))
        if new_flt != flt:
            st.session_state.odsim_settings = clamp_settings(replace(s, order_filter=new_flt))
            trail.clear()
            st.rerun()

        _probe_editor(points)
        _custom_trace_panel()
        _spacer(6)
        _play_controls("orb")

    with right:
        live = st.empty()
        o_col, a_col = st.columns([0.45, 0.55])
        with o_col:
            _show(st, plot_orbit(points, s.order_filter, s.animation_rpm, custom_path, st.session_state.odsim_custom_description))
        with a_col:
            probes = [PROBE_X_ID, PROBE_Y_ID, KEYPHASOR_ID]
            sel = st.session_state.odsim_selected_probe
            sel = st.radio("Channel", probes, index=probes.index(sel) if sel in probes else 0, horizontal=True, key="orb_channel")
            st.session_state.odsim_selected_probe = sel
            probe = next((p for p in points if p.id == sel), None)
            if probe is not None:
                _show(st, plot_analysis_panel(probe, "horizontal", s.machine_rpm))

        def draw(snap: ClockSnapshot) -> None:
            dx, dy = orbit_displacement(points, snap.angle, s.global_gain, s.order_filter, custom_path)
            trail.append(dx, dy, snap.time, s.animation_rpm)
            _show(live, plot_orbit_live(points, snap, trail, s.order_filter, s.global_gain))

        right_close_button("Close", target="home", key="orb_close")

    run_burst(draw)


# ---------------------------
# Settings
# ---------------------------

def screen_settings_window() -> None:
    win_caption("SIMULATION SETTINGS", active=True)
    s = st.session_state.odsim_settings

    anim = st.slider("Animation speed (RPM)", *ANIMATION_RPM_RANGE, value=float(s.animation_rpm), step=5.0, key="set_anim_rpm")
    machine = st.number_input("Machine speed (RPM)", *MACHINE_RPM_RANGE, value=float(s.machine_rpm), step=10.0, key="set_machine_rpm")
    gain = st.slider("Displacement gain", *GAIN_RANGE, value=float(s.global_gain), step=1.0, key="set_gain")
    line = st.radio("Line frequency (Hz)", LINE_FREQS, index=LINE_FREQS.index(s.line_freq), horizontal=True, key="set_line")
    heat = st.checkbox("Heat map", value=s.heat_map, key="set_heat")
    anchored = st.checkbox("Skid anchored at bolts", value=s.anchored_skid, key="set_anchor")

    nxt = clamp_settings(
        replace(
            s,
            animation_rpm=anim,
            machine_rpm=machine,
            global_gain=gain,
            line_freq=float(line),
            heat_map=heat,
            anchored_skid=anchored,
        )
    )
    if nxt != s:
        if (nxt.machine_rpm, nxt.line_freq) != (s.machine_rpm, s.line_freq):
            pts = refresh_line_frequency_presets(
                st.session_state.odsim_points,
                st.session_state.odsim_ods_fault,
                st.session_state.odsim_reference_id,
                machine_rpm=nxt.machine_rpm,
                line_freq=nxt.line_freq,
            )
            st.session_state.odsim_points = pts
        st.session_state.odsim_settings = nxt
        LOGGER.debug("Settings updated: %s", nxt)

    _spacer(10)
    right_close_button("Close", target="home", key="set_close")


# ---------------------------
# Data manager
# ---------------------------

def screen_data_window() -> None:
    win_caption("DATA MANAGER", active=True)
    points = st.session_state.odsim_points
    rev = int(st.session_state.odsim_rev)

    st.markdown("<div class='odsim-label'>Export ODS table</div>", unsafe_allow_html=True)
    c1, c2 = st.columns(2)
    with c1:
        st.download_button(
            "Download CSV",
            data=export_points(points, fmt="csv"),
            file_name="ods_data.csv",
            mime="text/csv",
            use_container_width=True,
            key="data_dl_csv",
        )
    with c2:
        st.download_button(
            "Download XLSX",
            data=export_points(points, fmt="xlsx"),
            file_name="ods_data.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            use_container_width=True,
            key="data_dl_xlsx",
        )

    _spacer(10)
    st.markdown("<div class='odsim-label'>Import ODS table</div>", unsafe_allow_html=True)
    up = st.file_uploader("CSV or Excel", type=["csv", "xlsx", "xls"], key=f"data_upload_{rev}")
    if st.button("Import", use_container_width=True, disabled=up is None, key="data_import"):
        try:
            result = import_points(points, up, st.session_state.odsim_reference_id, filename=up.name)
        except TableFormatError as exc:
            st.error(str(exc))
        else:
            st.session_state.odsim_ods_fault = ODSFault.Manual
            set_ods_points(result.points, st.session_state.odsim_reference_id)
            st.session_state.odsim_import_report = (result.updated, result.skipped)
            st.rerun()

    report = st.session_state.odsim_import_report
    if report:
        updated, skipped = report
        st.success(f"Updated {len(updated)} point(s): {', '.join(updated) or '-'}")
        if skipped:
            st.warning(f"Skipped: {', '.join(skipped)}")

    _spacer(10)
    st.dataframe(pd.DataFrame([r | {"Point": p.id} for p in points for r in axis_table_rows(p)]), hide_index=True, use_container_width=True)
    right_close_button("Close", target="home", on_click=lambda: st.session_state.update(odsim_import_report=None), key="data_close")


# ---------------------------
# Diagnostics
# ---------------------------

def _render_diagnostics_result(result) -> None:
    if not result.ok:
        st.error(result.error)
        return
    health = health_of(result)
    if health:
        st.markdown(f"<span class='odsim-health {health}'>{health}</span>", unsafe_allow_html=True)
    if result.data is None:
        st.warning("Response was not JSON; showing it as text.")
        st.markdown(f"<div class='odsim-mono'>{result.text}</div>", unsafe_allow_html=True)
        return
    if result.data.get("isoCheck"):
        st.markdown(f"**ISO:** {result.data['isoCheck']}")
    faults = result.data.get("faults") or []
    if faults:
        st.dataframe(pd.DataFrame(faults), hide_index=True, use_container_width=True)
    for rec in result.data.get("recommendations") or []:
        st.markdown(f"- {rec}")


def screen_diagnostics_window() -> None:
    win_caption("DIAGNOSTICS REPORT", active=True)

    mode = st.radio("Data set", ["ODS", "Orbit"], horizontal=True, key="diag_mode")
    context = st.text_area("Machine context", height=70, key="diag_context")
    notes = st.text_area("Case notes", height=70, key="diag_notes")

    if mode == "ODS":
        summary = point_summary_text(st.session_state.odsim_points)
    else:
        summary = orbit_summary_text(
            st.session_state.odsim_orbit_points,
            st.session_state.odsim_custom_description if st.session_state.odsim_custom_path else None,
        )
    prompt = diagnostics_prompt(mode, summary, context, notes)

    with st.expander("Data summary", expanded=True):
        st.markdown(f"<div class='odsim-mono'>{summary}</div>", unsafe_allow_html=True)
    with st.expander("Analyst prompt"):
        st.text_area("Prompt", value=prompt, height=260, disabled=True, key=f"diag_prompt_{mode}", label_visibility="collapsed")

    client = st.session_state.odsim_diag_client
    if client is not None:
        if st.button("Run diagnostics", use_container_width=True, key="diag_run"):
            with st.spinner("Analysing..."):
                st.session_state.odsim_diag_result = run_diagnostics(client, prompt)
    else:
        pasted = st.text_area("Analyst response (JSON)", height=120, key="diag_pasted")
        if st.button("Read response", use_container_width=True, disabled=not pasted.strip(), key="diag_parse"):
            st.session_state.odsim_diag_result = run_diagnostics(lambda _prompt: pasted, prompt)

    result = st.session_state.odsim_diag_result
    if result is not None:
        _render_diagnostics_result(result)

    right_close_button("Close", target="home", key="diag_close")
