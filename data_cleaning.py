# data_cleaning.py

import logging
import traceback

import numpy as np
import pandas as pd

from config import (
    COLUMN_MAP,
    DISCRETE_FIELDS,
    MAKER_FIELD,
    MODEL_FIELD,
    PRIMARY_FIELDS,
    RATING_RANGE,
    TEXT_FIELD,
    PipelineConfig,
)

# Anything that is not a letter, digit or whitespace ("_" is a word char, strip it too)
_INVALID_TEXT_CHARS = r"[^\w\s]|_"


def _apply_alias_mapping(df: pd.DataFrame, alias_map: dict[str, str]) -> pd.DataFrame:
    """Rename raw columns to canonical names, leaving canonical ones alone."""
    work = df.copy()
    for raw, canonical in alias_map.items():
        if raw not in work.columns or raw == canonical:
            continue
        if canonical in work.columns:
            work[canonical] = work[canonical].combine_first(work[raw])
            work.drop(columns=[raw], inplace=True)
        else:
            work.rename(columns={raw: canonical}, inplace=True)
    return work


def to_canonical(df: pd.DataFrame) -> pd.DataFrame:
    return _apply_alias_mapping(df, COLUMN_MAP)


def clean_text(series: pd.Series) -> pd.Series:
    """Strip stray punctuation/symbols and surrounding whitespace; blank -> NA."""
    cleaned = (
        series.astype("string")
        .str.replace(_INVALID_TEXT_CHARS, "", regex=True)
        .str.strip()
    )
    return cleaned.mask(cleaned.eq("").fillna(False))


def has_dirty_text(series: pd.Series) -> pd.Series:
    """True where cleaning would change the value."""
    text = series.astype("string")
    dirty = text.str.contains(_INVALID_TEXT_CHARS, regex=True) | text.ne(text.str.strip())
    return dirty.fillna(False).astype(bool)


def split_make_model(text: pd.Series) -> pd.DataFrame:
    """First whitespace token is the maker, the remainder (possibly empty) the model."""
    parts = text.str.split(n=1, expand=True)
    if parts.shape[1] == 0:
        parts = pd.DataFrame(index=text.index, columns=[0, 1], dtype="string")
    elif parts.shape[1] == 1:
        parts[1] = pd.NA
    maker = parts[0].astype("string")
    model = parts[1].astype("string").str.strip().fillna("")
    model = model.mask(maker.isna())
    return pd.DataFrame({MAKER_FIELD: maker, MODEL_FIELD: model}, index=text.index)


def invalid_value_mask(df: pd.DataFrame, config: PipelineConfig) -> pd.DataFrame:
    """Boolean frame, one column per primary field, True where the value breaks its domain.

    Missing values are never flagged as invalid. Fractional year or rating
    values are. *df* must use canonical names.
    """
    lo, hi = RATING_RANGE
    year = df["year_of_manufacture"]
    year_bad = year > config.effective_year_ceiling
    if config.year_floor is not None:
        year_bad |= year < config.year_floor

    mask = pd.DataFrame(
        {
            "year_of_manufacture": year_bad,
            "mileage": df["mileage"] < 0,
            "prestige_rating": (df["prestige_rating"] < lo) | (df["prestige_rating"] > hi),
            "fuel_efficiency": df["fuel_efficiency"] < 0,
            "sale_price": df["sale_price"] < 0,
        },
        index=df.index,
    )
    # integer-valued fields: fractional values are invalid too
    for col in DISCRETE_FIELDS:
        values = df[col]
        mask[col] |= values.notna() & (values % 1 != 0)
    return mask[list(PRIMARY_FIELDS)].fillna(False).astype(bool)


def data_cleaning(data: pd.DataFrame, config: PipelineConfig | None = None) -> pd.DataFrame:
    """
    Cleans the car-sales table by:
      - Renaming raw columns to canonical snake_case names.
      - Removing non-alphanumeric characters from 'make_model' and trimming it.
      - Deriving 'car_maker' (first token) and 'model' (remainder).
      - Replacing domain-invalid values with NaN so imputation can resolve them.

    Rows are never dropped.

    Returns:
        pd.DataFrame: The cleaned DataFrame.
    """
    config = config or PipelineConfig()
    logging.info("Starting data cleaning...")

    try:
        df = to_canonical(data)
        logging.info(f"Columns after renaming: {list(df.columns)}")

        #######################
        # 1. Text normalization
        #######################
        dirty = has_dirty_text(df[TEXT_FIELD])
        df[TEXT_FIELD] = clean_text(df[TEXT_FIELD])
        logging.info(f"Cleaned '{TEXT_FIELD}': {int(dirty.sum())} values changed.")

        split = split_make_model(df[TEXT_FIELD])
        df[MAKER_FIELD] = split[MAKER_FIELD]
        df[MODEL_FIELD] = split[MODEL_FIELD]
        logging.info(
            f"Derived '{MAKER_FIELD}': {df[MAKER_FIELD].nunique()} distinct makers, "
            f"{int(df[MAKER_FIELD].isna().sum())} unknown."
        )

        #######################
        # 2. Numeric coercion
        #######################
        for col in PRIMARY_FIELDS:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)

        #######################
        # 3. Invalid values -> missing
        #######################
        invalid = invalid_value_mask(df, config)
        for col in PRIMARY_FIELDS:
            n_bad = int(invalid[col].sum())
            if n_bad:
                df.loc[invalid[col], col] = np.nan
                logging.info(f"Nullified {n_bad} invalid '{col}' values.")

        logging.info(f"Final data shape: {df.shape}")
        logging.info(
            "Missing after cleaning: %s",
            {c: int(df[c].isna().sum()) for c in PRIMARY_FIELDS},
        )
        return df

    except Exception as e:
        logging.error(f"Error during data cleaning: {e}")
        logging.error(traceback.format_exc())
        raise
