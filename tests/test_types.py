from __future__ import annotations

import pytest

from odsim.types import MeasurementPoint, OrderFilter, VibrationComponent


def test_component_lookup() -> None:
    p = MeasurementPoint(id="a", label="A", position=(0.0, 0.0, 0.0), axial=VibrationComponent(amplitude=3.0))
    assert p.component("axial").amplitude == 3.0
    with pytest.raises(KeyError):
        p.component("radial")


def test_default_components_are_not_shared() -> None:
    a = MeasurementPoint(id="a", label="A", position=(0.0, 0.0, 0.0))
    b = MeasurementPoint(id="b", label="B", position=(0.0, 0.0, 0.0))
    a.horizontal.harmonics.append(None)
    assert b.horizontal.harmonics == []


def test_order_filter_gates() -> None:
    assert OrderFilter().passes(0.45) and OrderFilter().passes_noise
    bp = OrderFilter("BandPass", 2.0)
    assert bp.passes(2.005) and not bp.passes(2.1)
    lp = OrderFilter("LowPass", 1.0)
    assert lp.passes(0.48) and lp.passes(1.0) and not lp.passes(2.0)
    assert not bp.passes_noise and not lp.passes_noise


def test_order_filter_label() -> None:
    assert OrderFilter().label() == "Unfiltered"
    assert OrderFilter("BandPass", 1.0).label() == "BandPass 1X"
    assert OrderFilter("LowPass", 0.5).label() == "LowPass 0.5X"
