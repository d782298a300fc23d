# imputation.py

import logging
from typing import Dict, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.utils.validation import check_is_fitted

from config import DEFAULT_IMPUTE_GROUPS, DISCRETE_FIELDS, PipelineConfig, impute_order
from exceptions import ImputationUnresolvedError

__all__ = ["GroupedImputer", "impute_missing"]
log = logging.getLogger(__name__)

GLOBAL_LEVEL = "global"


def _level_name(keys: Sequence[str]) -> str:
    return "+".join(keys)


class GroupedImputer(BaseEstimator, TransformerMixin):
    """Fill missing values with group means, falling back to coarser groups and the global mean.

    All means are frozen at ``fit`` time from the table as passed (the
    cleaned, not-yet-imputed table), so filling one field never leaks into
    the statistics used for another. A field that other fields group by (the
    year) is resolved before them, so their lookups see its filled value.
    """

    def __init__(
        self,
        groups: Dict[str, Tuple[Tuple[str, ...], ...]] | None = None,
        discrete: Sequence[str] = DISCRETE_FIELDS,
    ):
        self.groups = groups
        self.discrete = discrete

    def _groups(self) -> Dict[str, Tuple[Tuple[str, ...], ...]]:
        return dict(DEFAULT_IMPUTE_GROUPS if self.groups is None else self.groups)

    def fit(self, X: pd.DataFrame, y=None):
        if not isinstance(X, pd.DataFrame):
            raise TypeError("GroupedImputer expects a pandas DataFrame")

        groups = self._groups()
        self.fields_ = impute_order(groups)
        self.global_means_: Dict[str, float] = {}
        self.group_means_: Dict[str, list] = {}

        for col in self.fields_:
            if col not in X.columns:
                raise KeyError(f"Column '{col}' missing in input data")
            global_mean = X[col].mean()
            if pd.isna(global_mean):
                raise ImputationUnresolvedError(col)
            self.global_means_[col] = float(global_mean)

            levels = []
            for keys in groups[col]:
                keys = list(keys)
                absent = [k for k in keys if k not in X.columns]
                if absent:
                    raise KeyError(f"Group column(s) {absent} missing in input data")
                means = (
                    X.groupby(keys, dropna=True)[col]
                    .mean()
                    .dropna()
                    .rename("__fill")
                    .reset_index()
                )
                levels.append((keys, means))
            self.group_means_[col] = levels
        return self

    def _lookup(self, X: pd.DataFrame, rows: np.ndarray, keys: list, means: pd.DataFrame) -> np.ndarray:
        left = X.loc[rows, keys].reset_index(drop=True)
        for k in keys:
            # align key dtypes with the snapshot so merges match
            if means[k].dtype != left[k].dtype:
                left[k] = left[k].astype(means[k].dtype)
        merged = left.merge(means, on=keys, how="left")
        return merged["__fill"].to_numpy(dtype=float)

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        check_is_fitted(self, "global_means_")
        X_ = X.copy()
        self.fill_counts_: Dict[str, Dict[str, int]] = {}

        for col in self.fields_:
            missing = X_[col].isna()
            counts: Dict[str, int] = {}
            if missing.any():
                # positional mask, labels may repeat
                rows = missing.to_numpy()
                fill = np.full(int(rows.sum()), np.nan)
                for keys, means in self.group_means_[col]:
                    todo = np.isnan(fill)
                    if not todo.any():
                        break
                    looked = self._lookup(X_, rows, keys, means)
                    use = todo & ~np.isnan(looked)
                    fill[use] = looked[use]
                    counts[_level_name(keys)] = int(use.sum())
                todo = np.isnan(fill)
                fill[todo] = self.global_means_[col]
                counts[GLOBAL_LEVEL] = int(todo.sum())

                if col in self.discrete:
                    fill = pd.Series(fill).round().to_numpy()
                X_.loc[rows, col] = fill
                log.info("Imputed %d missing '%s' values %s", len(fill), col, counts)
            self.fill_counts_[col] = counts
        return X_


def impute_missing(df: pd.DataFrame, config: PipelineConfig | None = None) -> pd.DataFrame:
    """Fit on *df* and fill it (the snapshot is the table as passed)."""
    config = config or PipelineConfig()
    imputer = GroupedImputer(groups=config.impute_groups)
    return imputer.fit_transform(df)
