"""Project configuration (single source of truth).

Default paths, the fixed input schema and the pipeline knobs live here.
Knobs are carried by :class:`PipelineConfig` and passed explicitly into
every stage; environment variables only override the defaults.
"""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Dict, Tuple

from exceptions import ConfigError

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

DATA_DIR = os.path.join(BASE_DIR, "data")
RAW_DATA_DIR = os.path.join(DATA_DIR, "raw")
PROCESSED_DATA_DIR = os.path.join(DATA_DIR, "processed")

RAW_DATA_PATH = os.path.join(RAW_DATA_DIR, "car_sales.csv")
PROCESSED_DATA_PATH = os.path.join(PROCESSED_DATA_DIR, "car_sales_processed.csv")

# Quality report, outlier fences and flagged rows
ARTIFACT_DIR = os.path.join(BASE_DIR, "artifacts")
QUALITY_REPORT_NAME = "quality_report.json"

# -------------------- Input schema -------------------- #
RAW_COLUMNS = (
    "MakeModel",
    "YearOfManufacture",
    "Mileage",
    "PrestigeRating",
    "FuelEfficiency",
    "SalePrice",
)

COLUMN_MAP = {
    "MakeModel": "make_model",
    "YearOfManufacture": "year_of_manufacture",
    "Mileage": "mileage",
    "PrestigeRating": "prestige_rating",
    "FuelEfficiency": "fuel_efficiency",
    "SalePrice": "sale_price",
}

TEXT_FIELD = "make_model"
MAKER_FIELD = "car_maker"
MODEL_FIELD = "model"

PRIMARY_FIELDS = (
    "year_of_manufacture",
    "mileage",
    "prestige_rating",
    "fuel_efficiency",
    "sale_price",
)

# Rounded to the nearest integer after averaging
DISCRETE_FIELDS = ("year_of_manufacture", "prestige_rating")

RATING_RANGE = (1, 10)

# -------------------- Pipeline defaults -------------------- #
DEFAULT_REFERENCE_YEAR = 2025

DEFAULT_LUXURY_BRANDS = frozenset(
    {"Audi", "BMW", "Jaguar", "Lexus", "Mercedes", "Porsche", "Tesla"}
)

DEFAULT_OUTLIER_FIELDS = (
    "sale_price",
    "mileage",
    "fuel_efficiency",
    "year_of_manufacture",
)

# field -> group levels, most specific first; global mean is always last
DEFAULT_IMPUTE_GROUPS: Dict[str, Tuple[Tuple[str, ...], ...]] = {
    "year_of_manufacture": (),
    "sale_price": (("car_maker",),),
    "mileage": (("car_maker", "year_of_manufacture"),),
    "prestige_rating": (("car_maker",),),
    "fuel_efficiency": (("car_maker", "year_of_manufacture"),),
}

AGE_CATEGORY_NAMES = ("New", "Recent", "Used", "Vintage")
EFFICIENCY_CATEGORY_NAMES = ("Low", "Medium", "High")


def _split_env_list(raw: str) -> Tuple[str, ...]:
    return tuple(s.strip() for s in raw.split(",") if s.strip())


def _env_number(name: str, kind):
    raw = os.environ[name]
    try:
        return kind(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a {kind.__name__}, got {raw!r}") from exc


def impute_order(groups: Dict[str, Tuple[Tuple[str, ...], ...]]) -> list:
    """Imputed fields ordered so that any field used as a group key comes first.

    Otherwise the order of *groups* is kept. Raises ConfigError when two
    fields group by each other.
    """
    needs = {
        f: {k for level in levels for k in level if k in groups and k != f}
        for f, levels in groups.items()
    }
    order: list = []
    pending = list(groups)
    while pending:
        ready = [f for f in pending if needs[f] <= set(order)]
        if not ready:
            raise ConfigError(f"impute_groups has a key cycle among {pending}")
        order.append(ready[0])
        pending.remove(ready[0])
    return order


@dataclass(slots=True)
class PipelineConfig:
    """Knobs for cleaning, imputation, feature derivation and outlier flags."""

    reference_year: int = DEFAULT_REFERENCE_YEAR
    luxury_brands: frozenset = DEFAULT_LUXURY_BRANDS
    age_category_breakpoints: Tuple[float, ...] = (3, 7, 15)
    efficiency_category_breakpoints: Tuple[float, ...] = (30, 45)
    outlier_fields: Tuple[str, ...] = DEFAULT_OUTLIER_FIELDS
    iqr_multiplier: float = 1.5

    # year validity window; ceiling defaults to reference_year
    year_ceiling: int | None = None
    year_floor: int | None = None

    impute_groups: Dict[str, Tuple[Tuple[str, ...], ...]] = field(
        default_factory=lambda: dict(DEFAULT_IMPUTE_GROUPS)
    )

    def __post_init__(self) -> None:
        self.reference_year = int(self.reference_year)
        self.luxury_brands = frozenset(self.luxury_brands)
        self.age_category_breakpoints = tuple(self.age_category_breakpoints)
        self.efficiency_category_breakpoints = tuple(
            self.efficiency_category_breakpoints
        )
        self.outlier_fields = tuple(dict.fromkeys(self.outlier_fields))
        self.iqr_multiplier = float(self.iqr_multiplier)
        self.validate()

    @property
    def effective_year_ceiling(self) -> int:
        return self.reference_year if self.year_ceiling is None else int(self.year_ceiling)

    def validate(self) -> None:
        _check_breakpoints(
            "age_category_breakpoints",
            self.age_category_breakpoints,
            len(AGE_CATEGORY_NAMES) - 1,
        )
        _check_breakpoints(
            "efficiency_category_breakpoints",
            self.efficiency_category_breakpoints,
            len(EFFICIENCY_CATEGORY_NAMES) - 1,
        )
        if self.iqr_multiplier <= 0:
            raise ConfigError(f"iqr_multiplier must be positive, got {self.iqr_multiplier}")
        if not self.outlier_fields:
            raise ConfigError("outlier_fields must name at least one field")
        if (
            self.year_floor is not None
            and int(self.year_floor) > self.effective_year_ceiling
        ):
            raise ConfigError(
                f"year_floor {self.year_floor} is above the year ceiling "
                f"{self.effective_year_ceiling}"
            )
        unknown = sorted(set(self.impute_groups) - set(PRIMARY_FIELDS))
        if unknown:
            raise ConfigError(f"impute_groups names unknown fields: {unknown}")
        absent = [f for f in PRIMARY_FIELDS if f not in self.impute_groups]
        if absent:
            raise ConfigError(f"impute_groups must cover every primary field, missing: {absent}")
        impute_order(self.impute_groups)

    @classmethod
    def from_env(cls, **overrides) -> "PipelineConfig":
        """Build a config from defaults, env overrides and explicit kwargs (highest)."""
        kwargs = {}
        if os.getenv("REFERENCE_YEAR"):
            kwargs["reference_year"] = _env_number("REFERENCE_YEAR", int)
        if os.getenv("LUXURY_BRANDS"):
            kwargs["luxury_brands"] = frozenset(_split_env_list(os.environ["LUXURY_BRANDS"]))
        if os.getenv("OUTLIER_FIELDS"):
            kwargs["outlier_fields"] = _split_env_list(os.environ["OUTLIER_FIELDS"])
        if os.getenv("IQR_MULTIPLIER"):
            kwargs["iqr_multiplier"] = _env_number("IQR_MULTIPLIER", float)
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)

    # helper
    def to_dict(self):
        out = asdict(self)
        out["luxury_brands"] = sorted(self.luxury_brands)
        out["impute_groups"] = {
            f: [list(level) for level in levels] for f, levels in self.impute_groups.items()
        }
        return out


def _check_breakpoints(name: str, values: Tuple[float, ...], expected: int) -> None:
    if len(values) != expected:
        raise ConfigError(f"{name} needs {expected} thresholds, got {len(values)}")
    if any(b <= a for a, b in zip(values, values[1:])):
        raise ConfigError(f"{name} must be strictly increasing, got {values}")
