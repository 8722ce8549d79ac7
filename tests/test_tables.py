from __future__ import annotations

import io
from pathlib import Path

import pandas as pd
import pytest

from odsim.phase import DEFAULT_REFERENCE_ID
from odsim.presets import ODSFault, apply_preset, default_ods_points
from odsim.tables import (
    COLUMNS,
    TableFormatError,
    export_points,
    frame_to_points,
    import_points,
    points_to_frame,
    read_orbit_path,
    read_table,
)


def _by_id(points, pid):
    return next(p for p in points if p.id == pid)


def _rocking():
    pts, ref = apply_preset(default_ods_points(), ODSFault.LoosenessRocking)
    return pts, ref


def test_frame_has_fixed_columns() -> None:
    df = points_to_frame(default_ods_points())
    assert list(df.columns) == COLUMNS
    assert len(df) == 8


@pytest.mark.parametrize("fmt, name", [("csv", "ods.csv"), ("xlsx", "ods.xlsx")])
def test_round_trip_keeps_amplitude_and_phase(fmt: str, name: str) -> None:
    src, ref = _rocking()
    data = export_points(src, fmt=fmt)
    result = import_points(default_ods_points(), io.BytesIO(data), ref, filename=name)

    assert sorted(result.updated) == sorted(p.id for p in src)
    assert result.skipped == []
    for before in src:
        after = _by_id(result.points, before.id)
        for axis in ("horizontal", "vertical", "axial"):
            assert after.component(axis).amplitude == pytest.approx(before.component(axis).amplitude)
            assert after.component(axis).phase_meas == pytest.approx(before.component(axis).phase_meas)


def test_import_drops_harmonics_and_noise() -> None:
    src, ref = _rocking()
    assert _by_id(src, "m-de").horizontal.harmonics
    data = export_points(src, fmt="csv")
    result = import_points(src, io.BytesIO(data), ref, filename="ods.csv")
    m_de = _by_id(result.points, "m-de").horizontal
    assert m_de.harmonics == []
    assert m_de.noise == 0.0


def test_import_recomputes_relative_phase() -> None:
    df = pd.DataFrame(
        [
            {"ID": DEFAULT_REFERENCE_ID, "Horizontal Amp": 2.0, "Horizontal Phase": 30.0},
            {"ID": "p-de", "Horizontal Amp": 2.0, "Horizontal Phase": 120.0},
        ]
    )
    result = frame_to_points(default_ods_points(), df, DEFAULT_REFERENCE_ID)
    assert _by_id(result.points, DEFAULT_REFERENCE_ID).horizontal.phase == 0.0
    assert _by_id(result.points, "p-de").horizontal.phase == pytest.approx(90.0)


def test_unknown_and_blank_ids_are_skipped() -> None:
    df = pd.DataFrame(
        [
            {"ID": "ghost", "Vertical Amp": 9.0},
            {"ID": None, "Vertical Amp": 9.0},
            {"ID": "p-nde", "Vertical Amp": 4.0},
        ]
    )
    base = default_ods_points()
    result = frame_to_points(base, df, DEFAULT_REFERENCE_ID)
    assert result.updated == ["p-nde"]
    assert "ghost" in result.skipped
    assert "row 2" in result.skipped
    assert _by_id(result.points, "p-nde").vertical.amplitude == 4.0
    # Points without a row keep their values.
    assert _by_id(result.points, "m-de").horizontal.amplitude == _by_id(base, "m-de").horizontal.amplitude


def test_non_numeric_cells_read_as_zero() -> None:
    df = pd.DataFrame([{"ID": "m-nde", "Axial Amp": "n/a", "Axial Phase": "45"}])
    result = frame_to_points(default_ods_points(), df, DEFAULT_REFERENCE_ID)
    axial = _by_id(result.points, "m-nde").axial
    assert axial.amplitude == 0.0
    assert axial.phase_meas == 45.0


def test_missing_id_column_raises() -> None:
    data = b"Name,Vertical Amp\nm-de,1.0\n"
    with pytest.raises(TableFormatError):
        read_table(io.BytesIO(data), filename="bad.csv")


def test_unreadable_excel_raises() -> None:
    with pytest.raises(TableFormatError):
        read_table(io.BytesIO(b"not a workbook"), filename="bad.xlsx")


def test_unknown_export_format() -> None:
    with pytest.raises(ValueError):
        export_points(default_ods_points(), fmt="pdf")


def test_export_to_path(tmp_path: Path) -> None:
    target = tmp_path / "ods.csv"
    data = export_points(default_ods_points(), target)
    assert target.read_bytes() == data
    assert data.decode("utf-8").splitlines()[0] == ",".join(COLUMNS)


def test_read_orbit_path_normalises() -> None:
    data = b"x,y\n2,0\n0,2\n-2,0\n0,-2\n"
    path = read_orbit_path(io.BytesIO(data), filename="trace.csv")
    assert path == [(1.0, 0.0), (0.0, 1.0), (-1.0, 0.0), (0.0, -1.0)]


def test_read_orbit_path_rejects_short_trace() -> None:
    with pytest.raises(TableFormatError):
        read_orbit_path(io.BytesIO(b"x,y\n1,1\n2,2\n"), filename="trace.csv")


def test_import_wraps_phases_into_one_turn() -> None:
    data = (
        ",".join(COLUMNS) + "\n"
        "m-de,Motor DE,1,-30,1,400,1,-90\n"
    ).encode("utf-8")
    result = import_points(default_ods_points(), io.BytesIO(data), DEFAULT_REFERENCE_ID, filename="ods.csv")
    m_de = _by_id(result.points, "m-de")
    assert m_de.vertical.phase_meas == pytest.approx(330.0)
    assert m_de.horizontal.phase_meas == pytest.approx(40.0)
    assert m_de.axial.phase_meas == pytest.approx(270.0)
    for p in result.points:
        for axis in ("horizontal", "vertical", "axial"):
            assert 0.0 <= p.component(axis).phase_meas < 360.0
            assert 0.0 <= p.component(axis).phase < 360.0


def test_truncated_workbook_raises() -> None:
    data = export_points(default_ods_points(), fmt="xlsx")
    with pytest.raises(TableFormatError):
        read_table(io.BytesIO(data[:200]), filename="cut.xlsx")
    with pytest.raises(TableFormatError):
        import_points(default_ods_points(), io.BytesIO(data[:200]), DEFAULT_REFERENCE_ID, filename="cut.xlsx")
