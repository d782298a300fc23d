# data_loading.py

import logging

import pandas as pd

from config import COLUMN_MAP, RAW_COLUMNS, TEXT_FIELD
from exceptions import EmptyInputError, MalformedInputError

_TEXT_RAW = next(raw for raw, canon in COLUMN_MAP.items() if canon == TEXT_FIELD)
NUMERIC_RAW_COLUMNS = [c for c in RAW_COLUMNS if c != _TEXT_RAW]


def _coerce_numeric(df: pd.DataFrame, col: str) -> pd.Series:
    """Parse *col* as numbers; blanks become NaN, anything else unparsable is fatal."""
    raw = df[col]
    if pd.api.types.is_numeric_dtype(raw):
        return raw.astype(float)
    text = raw.astype(str).str.strip()
    blank = raw.isna() | text.eq("")
    parsed = pd.to_numeric(text.where(~blank), errors="coerce")
    bad = parsed.isna() & ~blank
    if bad.any():
        sample = text[bad].head(3).tolist()
        raise MalformedInputError(
            f"Column '{col}' has {int(bad.sum())} non-numeric value(s), e.g. {sample}",
            column=col,
        )
    return parsed.astype(float)


def validate_schema(df: pd.DataFrame) -> pd.DataFrame:
    """Check the fixed raw schema and return a typed copy.

    Raises:
        MalformedInputError: a required column is missing or a numeric
            column holds text that cannot be parsed.
        EmptyInputError: the table has zero records.
    """
    missing = [c for c in RAW_COLUMNS if c not in df.columns]
    if missing:
        raise MalformedInputError(
            f"Required columns missing from dataset: {', '.join(missing)}",
            column=missing[0],
        )
    if df.empty:
        raise EmptyInputError("Input table has no records")

    data = df.copy()
    for col in NUMERIC_RAW_COLUMNS:
        data[col] = _coerce_numeric(data, col)
    return data


def load_data(file_path):
    """Load the raw car-sales CSV and validate it against the fixed schema."""
    try:
        data = pd.read_csv(file_path, encoding="utf-8-sig")  # Use 'utf-8-sig' for UTF-8 with BOM
    except FileNotFoundError:
        logging.error(f"File not found at path: {file_path}")
        raise
    except pd.errors.EmptyDataError as exc:
        logging.error(f"No data in file: {file_path}")
        raise EmptyInputError(f"Input file {file_path} is empty") from exc
    except pd.errors.ParserError as exc:
        logging.error(f"Error parsing {file_path}: {exc}")
        raise MalformedInputError(f"Cannot parse {file_path}: {exc}") from exc

    logging.info(f"Data loaded successfully from {file_path}")
    logging.info(f"Columns in loaded data: {data.columns.tolist()}")
    data = validate_schema(data)
    logging.info("Loaded %d records", len(data))
    return data
