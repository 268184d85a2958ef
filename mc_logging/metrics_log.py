"""Lightweight metrics logging using Polars."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import polars as pl

LOG_DIR = Path("logs")


def log_records(
    name: str,
    records: List[Dict[str, Any]],
    log_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """Append records to `<log_dir>/<name>.csv` (default: ./logs).

    Args:
        name: Base filename without extension.
        records: List of dict rows.
        log_dir: Target directory, created if missing.
    Returns:
        Path to the written CSV file.
    """
    assert isinstance(name, str) and len(name) > 0, "Invalid log name"
    assert isinstance(records, list), "records must be a list"
    out_dir = Path(log_dir) if log_dir is not None else LOG_DIR
    out_dir.mkdir(parents=True, exist_ok=True)
    out = out_dir / f"{name}.csv"
    if not records:
        return out
    df = pl.DataFrame(records)
    if out.exists():
        prev = pl.read_csv(out)
        if set(prev.columns) == set(df.columns):
            df = pl.concat([prev, df.select(prev.columns)], how="vertical_relaxed")
        else:
            # union of columns, missing values as nulls
            df = pl.concat([prev, df], how="diagonal_relaxed")
    df.write_csv(out)
    return out


def log_record(name: str, record: Dict[str, Any], log_dir: Optional[Union[str, Path]] = None) -> Path:
    """Append a single record to a CSV file."""
    return log_records(name, [record], log_dir=log_dir)
