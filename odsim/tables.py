"""Spreadsheet exchange of point amplitudes and measured phases.

The table carries amplitude and measured (absolute) phase per axis only.
Harmonics and noise are not part of the format: exporting drops them, and
importing a row resets that point's harmonics and noise to none.
"""

import io
import logging
import zipfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import IO, List, Optional, Tuple, Union

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from .phase import normalize
from .signal import wrap360
from .types import MeasurementPoint, VibrationComponent

LOGGER = logging.getLogger(__name__)

ID_COLUMN = "ID"
LABEL_COLUMN = "Label"
COLUMNS = [
    ID_COLUMN,
    LABEL_COLUMN,
    "Vertical Amp",
    "Vertical Phase",
    "Horizontal Amp",
    "Horizontal Phase",
    "Axial Amp",
    "Axial Phase",
]
SHEET_NAME = "ODS Data"


class TableFormatError(ValueError):
    """The file could not be read as a point table."""


@dataclass
class ImportResult:
    points: List[MeasurementPoint]
    updated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def points_to_frame(points: List[MeasurementPoint]) -> pd.DataFrame:
    rows = [
        {
            ID_COLUMN: p.id,
            LABEL_COLUMN: p.label,
            "Vertical Amp": p.vertical.amplitude,
            "Vertical Phase": p.vertical.phase_meas,
            "Horizontal Amp": p.horizontal.amplitude,
            "Horizontal Phase": p.horizontal.phase_meas,
            "Axial Amp": p.axial.amplitude,
            "Axial Phase": p.axial.phase_meas,
        }
        for p in points
    ]
    return pd.DataFrame(rows, columns=COLUMNS)


def export_points(points: List[MeasurementPoint], target: Union[str, Path, IO[bytes], None] = None, fmt: str = "csv") -> bytes:
    """Write the table as CSV or XLSX. Returns the encoded bytes as well."""
    df = points_to_frame(points)
    buf = io.BytesIO()
    if fmt == "xlsx":
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
    elif fmt == "csv":
        buf.write(df.to_csv(index=False).encode("utf-8"))
    else:
        raise ValueError(f"Unsupported table format: {fmt}")

    data = buf.getvalue()
    if isinstance(target, (str, Path)):
        Path(target).write_bytes(data)
    elif target is not None:
        target.write(data)
    return data


def read_table(source: Union[str, Path, IO[bytes]], filename: Optional[str] = None) -> pd.DataFrame:
    """Load a CSV or Excel point table; dispatch on the file suffix."""
    name = filename or (str(source) if isinstance(source, (str, Path)) else "")
    suffix = Path(name).suffix.lower()
    try:
        if suffix in (".xlsx", ".xls"):
            df = pd.read_excel(source, sheet_name=0)
        else:
            df = pd.read_csv(source)
    except (ValueError, OSError, KeyError, pd.errors.ParserError, zipfile.BadZipFile, InvalidFileException) as exc:
        raise TableFormatError(f"Could not read {name or 'table'}: {exc}") from exc

    if ID_COLUMN not in df.columns:
        raise TableFormatError(f"Missing '{ID_COLUMN}' column")
    return df


def _num(value) -> float:
    if value is None:
        return 0.0
    parsed = pd.to_numeric(value, errors="coerce")
    return 0.0 if pd.isna(parsed) else float(parsed)


def _axis_from_row(comp: VibrationComponent, row: pd.Series, prefix: str) -> VibrationComponent:
    return replace(
        comp,
        amplitude=_num(row.get(f"{prefix} Amp")),
        phase_meas=wrap360(_num(row.get(f"{prefix} Phase"))),
        harmonics=[],
        noise=0.0,
    )


def frame_to_points(points: List[MeasurementPoint], frame: pd.DataFrame, reference_id: Optional[str]) -> ImportResult:
    """Overwrite existing points matched by ID, then recompute phases.

    Rows without a usable ID, or with an ID not on the rig, are skipped;
    points with no row keep their values.
    """
    rows = {}
    skipped: List[str] = []
    for i, row in frame.iterrows():
        raw = row.get(ID_COLUMN)
        pid = "" if pd.isna(raw) else str(raw).strip()
        if not pid:
            skipped.append(f"row {i + 1}")
            continue
        rows[pid] = row

    known = {p.id for p in points}
    for pid in rows:
        if pid not in known:
            skipped.append(pid)

    updated: List[str] = []
    out: List[MeasurementPoint] = []
    for p in points:
        row = rows.get(p.id)
        if row is None:
            out.append(p)
            continue
        out.append(
            replace(
                p,
                vertical=_axis_from_row(p.vertical, row, "Vertical"),
                horizontal=_axis_from_row(p.horizontal, row, "Horizontal"),
                axial=_axis_from_row(p.axial, row, "Axial"),
            )
        )
        updated.append(p.id)

    if skipped:
        LOGGER.warning("Import skipped %d row(s): %s", len(skipped), ", ".join(skipped))
    LOGGER.info("Imported %d point(s)", len(updated))
    return ImportResult(points=normalize(out, reference_id), updated=updated, skipped=skipped)


def import_points(
    points: List[MeasurementPoint],
    source: Union[str, Path, IO[bytes]],
    reference_id: Optional[str],
    filename: Optional[str] = None,
) -> ImportResult:
    return frame_to_points(points, read_table(source, filename), reference_id)


def read_orbit_path(source: Union[str, Path, IO[bytes]], filename: Optional[str] = None) -> List[Tuple[float, float]]:
    """Load a traced orbit (x, y columns) scaled into -1..1.

    Uses columns named x/y when present, else the first two columns.
    Non-numeric rows are dropped.
    """
    name = filename or (str(source) if isinstance(source, (str, Path)) else "")
    try:
        df = pd.read_csv(source)
    except (ValueError, OSError, pd.errors.ParserError) as exc:
        raise TableFormatError(f"Could not read {name or 'trace'}: {exc}") from exc

    cols = {str(c).strip().lower(): c for c in df.columns}
    if "x" in cols and "y" in cols:
        xy = df[[cols["x"], cols["y"]]]
    elif len(df.columns) >= 2:
        xy = df.iloc[:, :2]
    else:
        raise TableFormatError("Trace needs x and y columns")

    xy = xy.apply(pd.to_numeric, errors="coerce").dropna()
    if len(xy) < 3:
        raise TableFormatError("Trace needs at least 3 points")

    arr = xy.to_numpy(dtype=float)
    arr = arr - arr.mean(axis=0)
    span = float(abs(arr).max())
    if span > 0:
        arr = arr / span
    LOGGER.info("Loaded custom orbit trace with %d samples", len(arr))
    return [(float(x), float(y)) for x, y in arr]
