"""Row normalization: raw source cells to canonical :class:`WifiPoint` objects.

Source rows carry five cells in a fixed order (id, programa, latitud,
longitud, alcaldia). Spreadsheet readers hand us whatever type the cell
was stored as, so every extraction accepts text, numbers, booleans and
dates and returns ``None`` when the value cannot be used.
"""

from __future__ import annotations

from datetime import date, datetime
import logging
import math
import numbers
from typing import Any, Optional, Sequence

import numpy as np

from .entities import WifiPoint
from .geometry import valid_latitude, valid_longitude

__all__ = [
    "ROW_WIDTH",
    "cell_as_str",
    "cell_as_float",
    "normalize_alcaldia",
    "normalize_row",
]

ROW_WIDTH = 5

logger = logging.getLogger(__name__)


def _is_bool(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


def cell_as_str(value: Any) -> Optional[str]:
    """Render a cell as text.

    Numeric cells become integer-valued strings (``1234.0`` -> ``"1234"``)
    since numeric cells in this column family hold identifiers.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if _is_bool(value):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real):
        as_float = float(value)
        if not math.isfinite(as_float):
            return None
        return str(int(as_float))
    return None


def cell_as_float(value: Any) -> Optional[float]:
    """Return the numeric value of a cell, or ``None`` when it has none."""
    if value is None or _is_bool(value):
        return None
    if isinstance(value, numbers.Real):
        as_float = float(value)
        return as_float if math.isfinite(as_float) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            as_float = float(text)
        except ValueError:
            logger.warning("normalize.float_unparsable value=%r", value)
            return None
        return as_float if math.isfinite(as_float) else None
    return None


def normalize_alcaldia(text: str) -> str:
    """Title-case a borough label word by word.

    ``"MIGUEL  HIDALGO"`` -> ``"Miguel Hidalgo"``. Runs of whitespace
    collapse to a single space.
    """
    words = text.lower().split()
    return " ".join(word[0].upper() + word[1:] for word in words)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _reject(row_number: Optional[int], reason: str) -> None:
    logger.warning("normalize.row_rejected row=%s reason=%s", row_number, reason)


def normalize_row(row: Sequence[Any], *, row_number: Optional[int] = None) -> Optional[WifiPoint]:
    """Build a :class:`WifiPoint` from one raw row, or return ``None``.

    Rejections are logged and never raised; the caller keeps going with
    the next row.
    """
    try:
        cells = list(row or ())[:ROW_WIDTH]
        cells += [None] * (ROW_WIDTH - len(cells))
        raw_id, raw_programa, raw_lat, raw_lon, raw_alcaldia = cells

        point_id = cell_as_str(raw_id)
        if _blank(point_id):
            _reject(row_number, "missing id")
            return None

        programa = cell_as_str(raw_programa)
        if _blank(programa):
            _reject(row_number, "missing programa")
            return None

        latitude = cell_as_float(raw_lat)
        if latitude is None:
            _reject(row_number, "invalid latitud")
            return None

        longitude = cell_as_float(raw_lon)
        if longitude is None:
            _reject(row_number, "invalid longitud")
            return None

        alcaldia = cell_as_str(raw_alcaldia)
        if _blank(alcaldia):
            _reject(row_number, "missing alcaldia")
            return None

        if not valid_latitude(latitude) or not valid_longitude(longitude):
            _reject(row_number, f"coordinates out of range ({latitude}, {longitude})")
            return None

        return WifiPoint(
            id=point_id.strip(),
            programa=programa.strip(),
            latitude=latitude,
            longitude=longitude,
            alcaldia=normalize_alcaldia(alcaldia),
        )
    except Exception as exc:
        _reject(row_number, f"{type(exc).__name__}: {exc}")
        return None
