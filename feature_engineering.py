"""
feature_engineering.py

Derived columns for the imputed car-sales table
  • car age, mileage per year and price ratios (denominators floored at 1)
  • ordered age / efficiency bins on fixed breakpoints
  • price bins on the table's own 25th/75th percentiles
  • luxury flag from a configured brand allowlist
  • (car_maker, age_category) mean price and each record's premium over it

Two phases: per-record columns and categories first, then the group
aggregate, which needs ``age_category`` to exist.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np
import pandas as pd

from config import (
    AGE_CATEGORY_NAMES,
    EFFICIENCY_CATEGORY_NAMES,
    MAKER_FIELD,
    MODEL_FIELD,
    PRIMARY_FIELDS,
    TEXT_FIELD,
    PipelineConfig,
)
from data_cleaning import split_make_model

__all__ = [
    "FeatureResult",
    "PRICE_CATEGORY_NAMES",
    "age_category_labels",
    "categorize_age",
    "categorize_efficiency",
    "categorize_price",
    "compute_price_thresholds",
    "derive_features",
    "efficiency_category_labels",
]
log = logging.getLogger(__name__)

PRICE_CATEGORY_NAMES = ("Budget", "Mid-range", "Premium")
GROUP_KEYS = [MAKER_FIELD, "age_category"]


@dataclass
class FeatureResult:
    data: pd.DataFrame
    price_thresholds: Tuple[float, float]


def _fmt(x: float) -> str:
    return f"{x:g}"


# ───────────────────────── bins ────────────────────────── #

def age_category_labels(breakpoints: Sequence[float]) -> list[str]:
    """Labels like 'New (0-3 years)', 'Recent (4-7 years)', ..., 'Vintage (15+ years)'."""
    names = AGE_CATEGORY_NAMES
    labels = [f"{names[0]} (0-{_fmt(breakpoints[0])} years)"]
    for name, lo, hi in zip(names[1:-1], breakpoints, breakpoints[1:]):
        labels.append(f"{name} ({_fmt(lo + 1)}-{_fmt(hi)} years)")
    labels.append(f"{names[-1]} ({_fmt(breakpoints[-1])}+ years)")
    return labels


def efficiency_category_labels(breakpoints: Sequence[float]) -> list[str]:
    """Labels like 'Low (<30 MPG)', 'Medium (30-45 MPG)', 'High (45+ MPG)'."""
    names = EFFICIENCY_CATEGORY_NAMES
    labels = [f"{names[0]} (<{_fmt(breakpoints[0])} MPG)"]
    for name, lo, hi in zip(names[1:-1], breakpoints, breakpoints[1:]):
        labels.append(f"{name} ({_fmt(lo)}-{_fmt(hi)} MPG)")
    labels.append(f"{names[-1]} ({_fmt(breakpoints[-1])}+ MPG)")
    return labels


def categorize_age(car_age: pd.Series, breakpoints: Sequence[float]) -> pd.Series:
    """Right-closed bins: age <= b0 is the first bin, age > b_last the last."""
    bins = [-np.inf, *breakpoints, np.inf]
    return pd.cut(car_age, bins=bins, labels=age_category_labels(breakpoints), right=True)


def categorize_efficiency(efficiency: pd.Series, breakpoints: Sequence[float]) -> pd.Series:
    """Left-closed bins: value < b0 is the first bin, value >= b_last the last."""
    bins = [-np.inf, *breakpoints, np.inf]
    return pd.cut(
        efficiency, bins=bins, labels=efficiency_category_labels(breakpoints), right=False
    )


def compute_price_thresholds(price: pd.Series) -> Tuple[float, float]:
    q25, q75 = price.quantile([0.25, 0.75])
    return float(q25), float(q75)


def categorize_price(price: pd.Series, thresholds: Tuple[float, float]) -> pd.Series:
    """Budget <= q25 < Mid-range <= q75 < Premium.

    Thresholds come from the whole table; equal thresholds are allowed.
    """
    q25, q75 = thresholds
    labels = np.select(
        [price <= q25, price <= q75],
        list(PRICE_CATEGORY_NAMES[:2]),
        default=PRICE_CATEGORY_NAMES[2],
    )
    return pd.Series(
        pd.Categorical(labels, categories=list(PRICE_CATEGORY_NAMES), ordered=True),
        index=price.index,
    )


def _is_luxury(maker: pd.Series, brands: Iterable[str]) -> pd.Series:
    allow = {str(b).strip().casefold() for b in brands}
    return maker.astype("string").str.casefold().isin(allow).fillna(False).astype(bool)


# ─────────────────────── main routine ─────────────────────── #

def derive_features(df: pd.DataFrame, config: PipelineConfig | None = None) -> FeatureResult:
    """Add the derived columns to a fully imputed table.

    Raises:
        ValueError: a primary field still holds missing values.
    """
    config = config or PipelineConfig()

    still_missing = {c: int(n) for c, n in df[list(PRIMARY_FIELDS)].isna().sum().items() if n}
    if still_missing:
        raise ValueError(f"derive_features expects an imputed table; missing: {still_missing}")

    out = df.copy()
    if MAKER_FIELD not in out.columns:
        split = split_make_model(out[TEXT_FIELD].astype("string"))
        out[MAKER_FIELD] = split[MAKER_FIELD]
        out[MODEL_FIELD] = split[MODEL_FIELD]

    # -------- phase 1: per-record features -------- #
    out["car_age"] = (config.reference_year - out["year_of_manufacture"]).astype(int)
    out["mileage_per_year"] = np.where(
        out["car_age"] > 0,
        out["mileage"] / out["car_age"].clip(lower=1),
        out["mileage"],
    )
    out["age_category"] = categorize_age(out["car_age"], config.age_category_breakpoints)
    out["efficiency_category"] = categorize_efficiency(
        out["fuel_efficiency"], config.efficiency_category_breakpoints
    )

    thresholds = compute_price_thresholds(out["sale_price"])
    out["price_category"] = categorize_price(out["sale_price"], thresholds)
    log.info("Price category cut points: q25=%.2f q75=%.2f", *thresholds)

    price = out["sale_price"]
    out["price_per_mile"] = price / out["mileage"].clip(lower=1)
    out["price_per_year"] = price / out["car_age"].clip(lower=1)
    out["price_efficiency_ratio"] = price / out["fuel_efficiency"].clip(lower=1)
    out["is_luxury"] = _is_luxury(out[MAKER_FIELD], config.luxury_brands)

    # -------- phase 2: (car_maker, age_category) aggregates -------- #
    avg = out.groupby(GROUP_KEYS, dropna=False, observed=True)["sale_price"].transform("mean")
    out["avg_group_price"] = avg
    out["price_premium"] = np.where(avg > 0, (price - avg) / avg.where(avg > 0, 1.0), 0.0)

    log.info(
        "Derived features: luxury=%d, age bins=%s",
        int(out["is_luxury"].sum()),
        out["age_category"].value_counts(sort=False).to_dict(),
    )
    return FeatureResult(data=out, price_thresholds=thresholds)
