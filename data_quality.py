"""Data-quality audit of a loaded car-sales table.

The audit is diagnostic only: it never mutates the table. It reports how
much work the cleaner and imputer will have to do (missing cells,
domain-invalid values, punctuation in the make/model text) and how many
exact duplicate rows exist.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict

import pandas as pd

from config import PRIMARY_FIELDS, TEXT_FIELD, PipelineConfig
from data_cleaning import has_dirty_text, invalid_value_mask, to_canonical

__all__ = ["QualityReport", "audit_data_quality"]

log = logging.getLogger(__name__)

_AUDITED_FIELDS = (TEXT_FIELD,) + tuple(PRIMARY_FIELDS)


@dataclass
class QualityReport:
    rows: int = 0
    duplicate_rows: int = 0
    missing_by_field: Dict[str, int] = field(
        default_factory=lambda: {c: 0 for c in _AUDITED_FIELDS}
    )
    invalid_by_field: Dict[str, int] = field(
        default_factory=lambda: {c: 0 for c in PRIMARY_FIELDS}
    )
    dirty_text_values: int = 0

    @property
    def total_missing(self) -> int:
        return sum(self.missing_by_field.values())

    @property
    def total_invalid(self) -> int:
        return sum(self.invalid_by_field.values())

    def to_dict(self):
        out = asdict(self)
        out["total_missing"] = self.total_missing
        out["total_invalid"] = self.total_invalid
        return out


def audit_data_quality(df: pd.DataFrame, config: PipelineConfig | None = None) -> QualityReport:
    """Count missing, duplicate and domain-invalid values.

    Accepts either the raw column names or the canonical ones. An empty
    table yields an all-zero report.
    """
    config = config or PipelineConfig()
    if df.empty:
        log.warning("Quality audit on an empty table; reporting zeros")
        return QualityReport()

    work = to_canonical(df)
    numeric = work[list(PRIMARY_FIELDS)].apply(pd.to_numeric, errors="coerce")

    report = QualityReport(
        rows=len(work),
        duplicate_rows=int(df.duplicated().sum()),
        missing_by_field={c: int(work[c].isna().sum()) for c in _AUDITED_FIELDS},
        invalid_by_field={
            c: int(n) for c, n in invalid_value_mask(numeric, config).sum().items()
        },
        dirty_text_values=int(has_dirty_text(work[TEXT_FIELD]).sum()),
    )
    log.info(
        "Quality audit: rows=%d duplicates=%d missing=%d invalid=%d dirty_text=%d",
        report.rows,
        report.duplicate_rows,
        report.total_missing,
        report.total_invalid,
        report.dirty_text_values,
    )
    return report
