# pipeline.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

import pandas as pd

from config import PipelineConfig
from data_cleaning import data_cleaning
from data_loading import load_data, validate_schema
from data_quality import QualityReport, audit_data_quality
from exceptions import RowCountMismatchError
from feature_engineering import derive_features
from imputation import GroupedImputer
from outlier_flagging import OutlierResult, flag_outliers

__all__ = ["PipelineResult", "run_pipeline", "run_pipeline_frame"]
log = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    data: pd.DataFrame
    quality: QualityReport
    imputation_counts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    price_thresholds: Tuple[float, float] = (float("nan"), float("nan"))
    outliers: OutlierResult | None = None

    def summary(self):
        return {
            "rows": len(self.data),
            "quality": self.quality.to_dict(),
            "imputation_counts": self.imputation_counts,
            "price_thresholds": list(self.price_thresholds),
            "outlier_fences": {k: list(v) for k, v in self.outliers.fences.items()}
            if self.outliers
            else {},
            "outlier_counts": self.outliers.counts if self.outliers else {},
        }


def _check_rows(stage: str, expected: int, df: pd.DataFrame) -> None:
    if len(df) != expected:
        raise RowCountMismatchError(f"{stage} changed the record count: {expected} -> {len(df)}")


def run_pipeline_frame(raw: pd.DataFrame, config: PipelineConfig | None = None) -> PipelineResult:
    """Audit → clean → impute → derive → flag an in-memory raw table."""
    config = config or PipelineConfig()
    raw = validate_schema(raw)
    n_rows = len(raw)

    log.info("Stage 1/5: quality audit")
    quality = audit_data_quality(raw, config)

    log.info("Stage 2/5: cleaning")
    cleaned = data_cleaning(raw, config)
    _check_rows("cleaning", n_rows, cleaned)

    log.info("Stage 3/5: grouped imputation")
    imputer = GroupedImputer(groups=config.impute_groups)
    imputed = imputer.fit(cleaned).transform(cleaned)
    _check_rows("imputation", n_rows, imputed)

    log.info("Stage 4/5: feature derivation")
    features = derive_features(imputed, config)
    _check_rows("feature derivation", n_rows, features.data)

    log.info("Stage 5/5: outlier flags")
    outliers = flag_outliers(features.data, config)
    _check_rows("outlier flagging", n_rows, outliers.data)

    return PipelineResult(
        data=outliers.data,
        quality=quality,
        imputation_counts=imputer.fill_counts_,
        price_thresholds=features.price_thresholds,
        outliers=outliers,
    )


def run_pipeline(file_path, config: PipelineConfig | None = None) -> PipelineResult:
    """Load *file_path* and run every stage over it."""
    log.info("🚚 Loading raw data from %s", file_path)
    raw = load_data(file_path)
    return run_pipeline_frame(raw, config)
