import os
from dataclasses import dataclass, field, replace

from .types import FILTER_TYPES, OrderFilter

APP_TITLE = "ODS & Orbit Vibration Trainer"

# Visual rotation speed (not the machine's real speed) and the real one.
DEFAULT_ANIMATION_RPM = 110.0
DEFAULT_MACHINE_RPM = 1480.0
DEFAULT_GLOBAL_GAIN = 10.0
DEFAULT_LINE_FREQ = 50.0

ANIMATION_RPM_RANGE = (0.0, 600.0)
MACHINE_RPM_RANGE = (0.0, 12000.0)
GAIN_RANGE = (0.0, 50.0)
LINE_FREQS = (50.0, 60.0)
FILTER_ORDER_RANGE = (0.1, 10.0)
# Phase editors; stored phases are wrapped into [0, 360).
PHASE_RANGE = (0.0, 360.0)

# Animation bursts: Streamlit has no render loop, so "Play" runs a fixed number
# of frames and then hands control back.
FRAME_DT = 1.0 / 20.0
FRAMES_PER_BURST = 80

LOG_LEVEL = os.environ.get("ODSIM_LOG_LEVEL", "INFO")


@dataclass
class SimulationSettings:
    animation_rpm: float = DEFAULT_ANIMATION_RPM
    machine_rpm: float = DEFAULT_MACHINE_RPM
    global_gain: float = DEFAULT_GLOBAL_GAIN
    line_freq: float = DEFAULT_LINE_FREQ
    order_filter: OrderFilter = field(default_factory=OrderFilter)
    heat_map: bool = False
    anchored_skid: bool = True
    frame_dt: float = FRAME_DT
    frames_per_burst: int = FRAMES_PER_BURST


def default_settings() -> SimulationSettings:
    return SimulationSettings()


def _clamp(x: float, lo_hi) -> float:
    lo, hi = lo_hi
    return float(min(max(float(x), lo), hi))


def clamp_settings(s: SimulationSettings) -> SimulationSettings:
    """Pull every field back into its valid range (never raises)."""
    flt = s.order_filter
    if flt.kind not in FILTER_TYPES:
        flt = OrderFilter()
    else:
        flt = OrderFilter(flt.kind, _clamp(flt.order, FILTER_ORDER_RANGE))
    line = s.line_freq if s.line_freq in LINE_FREQS else DEFAULT_LINE_FREQ
    return replace(
        s,
        animation_rpm=_clamp(s.animation_rpm, ANIMATION_RPM_RANGE),
        machine_rpm=_clamp(s.machine_rpm, MACHINE_RPM_RANGE),
        global_gain=_clamp(s.global_gain, GAIN_RANGE),
        line_freq=line,
        order_filter=flt,
        frame_dt=max(float(s.frame_dt), 1e-3),
        frames_per_burst=max(int(s.frames_per_burst), 1),
    )
