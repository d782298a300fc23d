#!/usr/bin/env python3
"""outlier_flagging.py

Tukey-fence outlier flags for the car-sales table.

Each configured field gets a ``<field>_outlier`` boolean column, True when
the value lies outside [Q1 - k·IQR, Q3 + k·IQR] computed over the whole
table; ``is_outlier`` is True when any field is flagged. Values are never
altered and rows are never removed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Tuple

import pandas as pd

from config import PipelineConfig

__all__ = [
    "OutlierResult",
    "flag_outliers",
    "get_outlier_flags",
    "iqr_bounds",
    "save_outlier_report",
]

ANY_FLAG = "is_outlier"


@dataclass
class OutlierResult:
    data: pd.DataFrame
    fences: Dict[str, Tuple[float, float]]

    @property
    def counts(self) -> Dict[str, int]:
        return {f: int(self.data[flag_column(f)].sum()) for f in self.fences}


def flag_column(field: str) -> str:
    return f"{field}_outlier"


# ───────────────────────── helpers ────────────────────────── #

def iqr_bounds(series: pd.Series, k: float) -> Tuple[float, float]:
    q1, q3 = series.quantile([0.25, 0.75])
    iqr = q3 - q1
    return float(q1 - k * iqr), float(q3 + k * iqr)


# ─────────────────────── main routine ─────────────────────── #

def get_outlier_flags(
    df: pd.DataFrame,
    fields: Iterable[str],
    k: float = 1.5,
) -> Tuple[pd.DataFrame, Dict[str, Tuple[float, float]]]:
    """Return (flag frame, fences); flags are True ⇢ outside the fence."""

    log = logging.getLogger(__name__)
    fields = list(dict.fromkeys(fields))

    # -- verify columns exist --
    for col in fields:
        if col not in df.columns:
            raise KeyError(f"Column '{col}' missing in input data")

    flags = pd.DataFrame(index=df.index)
    fences: Dict[str, Tuple[float, float]] = {}
    for col in fields:
        values = pd.to_numeric(df[col], errors="coerce")
        if values.isna().any():
            log.warning("'%s' has %d missing values; they are never flagged", col, int(values.isna().sum()))
        lo, hi = iqr_bounds(values, k)
        fences[col] = (lo, hi)
        flags[flag_column(col)] = ((values < lo) | (values > hi)).fillna(False).astype(bool)
        log.info("%s fence [%.2f, %.2f]: %d outliers", col, lo, hi, int(flags[flag_column(col)].sum()))
    return flags, fences


def flag_outliers(df: pd.DataFrame, config: PipelineConfig | None = None) -> OutlierResult:
    """Append per-field outlier flags and the combined ``is_outlier`` column."""
    cfg = config or PipelineConfig()
    flags, fences = get_outlier_flags(df, cfg.outlier_fields, cfg.iqr_multiplier)
    out = df.copy()
    for col in flags.columns:
        out[col] = flags[col]
    out[ANY_FLAG] = flags.any(axis=1)
    logging.getLogger(__name__).info(
        "Flagged %d of %d records as outliers", int(out[ANY_FLAG].sum()), len(out)
    )
    return OutlierResult(data=out, fences=fences)


def save_outlier_report(result: OutlierResult, out_dir: str | Path) -> Path:
    """Write flagged rows and fences (CSV) to *out_dir*; return the directory."""

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    fences = pd.DataFrame(
        [
            {"field": f, "lower": lo, "upper": hi, "outliers": result.counts[f]}
            for f, (lo, hi) in result.fences.items()
        ]
    )
    fences.to_csv(out_dir / "outlier_fences.csv", index=False)
    flagged = result.data[result.data[ANY_FLAG]]
    flagged.to_csv(out_dir / "flagged_outliers.csv", index=False)
    logging.getLogger(__name__).info(
        "Outlier report: %d flagged rows • artefacts → %s", len(flagged), out_dir
    )
    return out_dir
