from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from .base import Row
from .memory import MemoryDataSource

logger = logging.getLogger(__name__)


def _native(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value


def _frame_to_rows(df: pd.DataFrame) -> list[Row]:
    # Missing cells become None rather than NaN so rows look like JSON records
    cleaned = df.astype(object).where(pd.notna(df), None)
    rows = [{k: _native(v) for k, v in rec.items()} for rec in cleaned.to_dict(orient="records")]
    for row in rows:
        est_id = row.get("est_id")
        if isinstance(est_id, float) and est_id.is_integer():
            row["est_id"] = int(est_id)
    return rows


def load_tables(data_dir: Path) -> dict[str, list[Row]]:
    """Read every ``<table>.csv`` under *data_dir* into a list of row dicts."""
    tables: dict[str, list[Row]] = {}
    for path in sorted(data_dir.glob("*.csv")):
        df = pd.read_csv(path)
        tables[path.stem] = _frame_to_rows(df)
        logger.debug("Loaded %d rows from %s", len(tables[path.stem]), path.name)
    return tables


class CsvDataSource(MemoryDataSource):
    """
    Tables loaded once from a directory of CSV exports.

    Writes (favorites, submissions) stay in memory for the life of the process.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        super().__init__(load_tables(self.data_dir))
