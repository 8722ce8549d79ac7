from __future__ import annotations

from dataclasses import replace

from odsim.config import DEFAULT_ANIMATION_RPM, clamp_settings, default_settings
from odsim.types import OrderFilter


def test_defaults() -> None:
    s = default_settings()
    assert s.animation_rpm == DEFAULT_ANIMATION_RPM == 110.0
    assert s.machine_rpm == 1480.0
    assert s.global_gain == 10.0
    assert s.line_freq == 50.0
    assert s.order_filter == OrderFilter()
    assert s.anchored_skid and not s.heat_map


def test_defaults_are_independent() -> None:
    assert default_settings() is not default_settings()


def test_clamp_pulls_values_into_range() -> None:
    s = replace(
        default_settings(),
        animation_rpm=-5.0,
        machine_rpm=1e6,
        global_gain=100.0,
        line_freq=55.0,
        frame_dt=0.0,
        frames_per_burst=0,
    )
    c = clamp_settings(s)
    assert c.animation_rpm == 0.0
    assert c.machine_rpm == 12000.0
    assert c.global_gain == 50.0
    assert c.line_freq == 50.0
    assert c.frame_dt > 0.0
    assert c.frames_per_burst == 1


def test_clamp_filter() -> None:
    c = clamp_settings(replace(default_settings(), order_filter=OrderFilter("Notch", 2.0)))
    assert c.order_filter == OrderFilter()
    c = clamp_settings(replace(default_settings(), order_filter=OrderFilter("BandPass", 40.0)))
    assert c.order_filter == OrderFilter("BandPass", 10.0)


def test_clamp_keeps_valid_settings() -> None:
    s = replace(default_settings(), line_freq=60.0, order_filter=OrderFilter("LowPass", 0.5))
    assert clamp_settings(s) == s
