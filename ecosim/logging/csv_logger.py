"""
KPI CSV output for the ecosystem simulator.

One row per sampled tick, columns in `MetricsCollector.kpi_names()` order.
Floats are rounded to 4 decimals and booleans written as 0/1 so the file
loads back as numeric columns. The file handle stays open between rows;
call `close()` (RunManager.finalize does) when the run is over.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Optional, TextIO

import pandas as pd

from ecosim.simulation.metrics import MetricsCollector


FLOAT_DIGITS = 4


def _cell(value):
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float):
        return round(value, FLOAT_DIGITS)
    return value


class CSVLogger:
    """
    Streams KPI rows to a CSV file.

    Attributes:
        file_path: Output file.
        columns: Column order; keys outside it are dropped.
        rows_written: Data rows written so far.
    """

    def __init__(self, file_path: str | Path, columns: Optional[list[str]] = None):
        self.file_path = Path(file_path)
        self.columns = columns or MetricsCollector.kpi_names()
        self.rows_written = 0
        self._handle: Optional[TextIO] = None
        self._writer: Optional[csv.DictWriter] = None
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def _open(self, mode: str) -> csv.DictWriter:
        self.close()
        resume = mode == "a" and self.file_path.exists() and self.file_path.stat().st_size > 0
        self._handle = open(self.file_path, mode, newline="", encoding="utf-8")
        self._writer = csv.DictWriter(self._handle, fieldnames=self.columns, extrasaction="ignore")
        if not resume:
            self._writer.writeheader()
        return self._writer

    def log_row(self, kpi_dict: dict) -> None:
        """Append one row, writing the header first if the file is new."""
        writer = self._writer or self._open("a")
        writer.writerow({k: _cell(v) for k, v in kpi_dict.items()})
        self._handle.flush()
        self.rows_written += 1

    def log_all(self, kpi_list: list[dict]) -> None:
        """Replace the file with the given rows."""
        writer = self._open("w")
        writer.writerows({k: _cell(v) for k, v in row.items()} for row in kpi_list)
        self._handle.flush()
        self.rows_written = len(kpi_list)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._writer = None

    def read_back(self) -> pd.DataFrame:
        """The file as a DataFrame (empty if nothing was written)."""
        if not self.file_path.exists() or self.file_path.stat().st_size == 0:
            return pd.DataFrame(columns=self.columns)
        return pd.read_csv(self.file_path, keep_default_na=False)

    def __repr__(self) -> str:
        return f"CSVLogger(file='{self.file_path}', rows={self.rows_written})"
