"""One-shot ingestion of the WiFi point source into the store.

The source is a spreadsheet (``.xlsx``) or CSV export with a header row
followed by one access point per row: id, programa, latitud, longitud,
alcaldia. Loading is idempotent. If the store already holds any point the
load is skipped, and a load that loses a race against another process is
absorbed rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

import pandas as pd
from openpyxl import load_workbook

from .assets import ensure_local_asset
from .entities import WifiPoint
from .errors import DuplicateRecordError, SourceError
from .normalize import ROW_WIDTH, normalize_row

__all__ = [
    "EXCEL_SUFFIXES",
    "LoadReport",
    "WifiPointLoader",
    "iter_source_rows",
    "resolve_source",
]

EXCEL_SUFFIXES = (".xlsx", ".xlsm")
CSV_SUFFIXES = (".csv",)

STATUS_LOADED = "loaded"
STATUS_SKIPPED = "skipped"
STATUS_EMPTY = "empty"
STATUS_FAILED = "failed"
STATUS_RACED = "raced"

logger = logging.getLogger(__name__)

RawRow = Tuple[Any, ...]


# ------------------ Source readers ------------------


def _iter_excel_rows(path: Path) -> Iterator[RawRow]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except Exception as exc:
        raise SourceError(f"Cannot open workbook {path}: {exc}") from exc
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        next(rows, None)  # header
        for row in rows:
            yield tuple(row)
    except Exception as exc:
        raise SourceError(f"Failed reading workbook {path}: {exc}") from exc
    finally:
        workbook.close()


def _truncate_long_line(fields: list[str]) -> list[str]:
    logger.warning("ingest.csv_extra_fields fields=%s kept=%s", len(fields), ROW_WIDTH)
    return fields[:ROW_WIDTH]


def _iter_csv_rows(path: Path, chunksize: int) -> Iterator[RawRow]:
    try:
        chunks = pd.read_csv(
            path,
            dtype=object,
            keep_default_na=False,
            chunksize=chunksize,
            encoding="utf-8-sig",
            engine="python",
            on_bad_lines=_truncate_long_line,
        )
        with chunks as reader:
            for chunk in reader:
                yield from chunk.itertuples(index=False, name=None)
    except pd.errors.EmptyDataError:
        return
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as exc:
        raise SourceError(f"Failed reading CSV {path}: {exc}") from exc


def iter_source_rows(path: str | Path, *, chunksize: int = 5000) -> Iterator[RawRow]:
    """Lazily yield raw data rows from ``path``, skipping the header row.

    Cells keep the type the reader produced (text, numbers, booleans,
    dates or ``None``); interpretation is left to :mod:`wifidata.normalize`.
    """
    path = Path(path)
    if not path.is_file():
        raise SourceError(f"Source file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        yield from _iter_excel_rows(path)
    elif suffix in CSV_SUFFIXES:
        yield from _iter_csv_rows(path, chunksize)
    else:
        raise SourceError(f"Unsupported source type {suffix!r} for {path}")


def resolve_source(source: str | Path | None, *, url_env: str = "WIFIDATA_SOURCE_URL") -> Optional[Path]:
    """Return a local path for ``source``, downloading it when ``$url_env`` is set.

    With no configured path, the file name is taken from the URL.
    """
    if source is None:
        url = os.getenv(url_env, "").strip()
        if not url:
            return None
        source = Path(url).name
    return ensure_local_asset(Path(source), url_env=url_env, label="wifi source")


# ------------------ Loader ------------------


@dataclass
class LoadReport:
    status: str
    source: str
    rows_read: int = 0
    accepted: int = 0
    rejected: int = 0
    duplicates: int = 0

    @property
    def loaded(self) -> bool:
        return self.status == STATUS_LOADED


class WifiPointLoader:
    """Populate an empty store from a tabular source with a single bulk write."""

    def __init__(
        self,
        store,
        source: str | Path | None,
        *,
        progress_every: int = 5000,
        reader: Callable[[Path], Iterator[RawRow]] = iter_source_rows,
    ):
        if progress_every < 1:
            raise ValueError("progress_every must be >= 1")
        self._store = store
        self._source = Path(source) if source is not None else None
        self._progress_every = progress_every
        self._reader = reader

    def load(self) -> LoadReport:
        """Load the source if the store is empty; never raises for source problems."""

        label = str(self._source) if self._source is not None else "<none>"
        existing = self._store.count()
        if existing > 0:
            logger.info("ingest.skipped existing=%s", existing)
            return LoadReport(STATUS_SKIPPED, label)

        if self._source is None:
            logger.error("ingest.failed source=<none> reason=no source configured")
            return LoadReport(STATUS_FAILED, label)

        logger.info("ingest.started source=%s", label)
        report = LoadReport(STATUS_FAILED, label)
        try:
            points = self._read(report)
        except (SourceError, OSError) as exc:
            logger.error("ingest.failed source=%s reason=%s", label, exc)
            return report

        report.accepted = len(points)
        if not points:
            report.status = STATUS_EMPTY
            logger.warning("ingest.empty source=%s rows=%s", label, report.rows_read)
            return report

        logger.info("ingest.saving points=%s", len(points))
        try:
            self._store.bulk_insert(points.values())
        except DuplicateRecordError as exc:
            # Another process loaded the store first; its data stands.
            report.status = STATUS_RACED
            logger.info("ingest.raced source=%s detail=%s", label, exc)
            return report

        report.status = STATUS_LOADED
        logger.info(
            "ingest.loaded source=%s points=%s rejected=%s duplicates=%s",
            label,
            report.accepted,
            report.rejected,
            report.duplicates,
        )
        return report

    def _read(self, report: LoadReport) -> Dict[str, WifiPoint]:
        points: Dict[str, WifiPoint] = {}
        # Spreadsheet numbering: header is row 1.
        for row_number, row in enumerate(self._reader(self._source), start=2):
            report.rows_read += 1
            point = normalize_row(row, row_number=row_number)
            if point is None:
                report.rejected += 1
            elif point.id in points:
                report.duplicates += 1
                logger.warning("ingest.duplicate_id row=%s id=%s", row_number, point.id)
            else:
                points[point.id] = point
            if report.rows_read % self._progress_every == 0:
                logger.info("ingest.progress rows=%s accepted=%s", report.rows_read, len(points))
        return points
