import logging
import os

import numpy as np
import pandas as pd
import taxi_cleaning.trip_contract as tc

logger = logging.getLogger(__name__)


class TripLoader:
    """
    Fail-fast loader:
    - Reads the raw trip export (CSV, or Parquet by extension)
    - Checks the fixed 19-column layout and maps it onto the schema names
    - Parses timestamps and numbers; blank nullable fields become <NA>
    - Raises ValueError on anything it cannot type
    """

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> pd.DataFrame:
        if os.path.splitext(self.path)[1].lower() == ".parquet":
            return pd.read_parquet(self.path)
        # Everything as text so that blank fields stay distinguishable.
        return pd.read_csv(self.path, dtype=str, keep_default_na=False)

    def load_data(self) -> pd.DataFrame:
        logger.info(f"Loading trip data from {self.path}...")

        try:
            df = self._read()
        except Exception as e:
            logger.error(f"Failed to read trip file: {e}")
            raise

        # 1) Critical schema check (fail fast)
        if len(df.columns) != len(tc.RAW_COLUMNS):
            raise ValueError(
                f"Schema Violation: expected {len(tc.RAW_COLUMNS)} columns, "
                f"found {len(df.columns)}"
            )
        df.columns = tc.SCHEMA_COLUMNS

        # 2) Type enforcement
        df = parse_trip_frame(df)

        logger.info(f"Loaded {len(df)} trip records")
        return df


def _blank_to_missing(series: pd.Series) -> pd.Series:
    # Typed (Parquet) columns pass through untouched.
    if series.dtype != object and not pd.api.types.is_string_dtype(series):
        return series
    series = series.astype(object).map(lambda v: v.strip() if isinstance(v, str) else v)
    return series.mask(series.eq(""), np.nan)


def _parse_timestamps(series: pd.Series, column: str) -> pd.Series:
    if pd.api.types.is_datetime64_any_dtype(series):
        return series
    try:
        return pd.to_datetime(series, format=tc.TIMESTAMP_FORMAT)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Unparseable timestamp in '{column}': {e}") from e


def _parse_numbers(series: pd.Series, column: str) -> pd.Series:
    try:
        return pd.to_numeric(_blank_to_missing(series))
    except (ValueError, TypeError) as e:
        raise ValueError(f"Non-numeric value in '{column}': {e}") from e


def parse_trip_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Cast a frame with schema column names to the pipeline dtypes."""
    out = pd.DataFrame(index=df.index)

    for col in tc.SCHEMA_COLUMNS:
        if col in tc.TIMESTAMP_COLUMNS:
            out[col] = _parse_timestamps(df[col], col)
        elif col == "store_and_forward_flag":
            out[col] = _blank_to_missing(df[col]).astype("string")
        else:
            out[col] = _parse_numbers(df[col], col)

    required = tc.TIMESTAMP_COLUMNS + tc.INTEGER_COLUMNS + tc.DECIMAL_COLUMNS
    missing = {c: int(out[c].isna().sum()) for c in required if out[c].isna().any()}
    if missing:
        raise ValueError(f"Missing values in required columns: {missing}")

    # Casting would truncate 2.5 to 2 (or fail with TypeError for Int64).
    for col in tc.INTEGER_COLUMNS + tc.NULLABLE_INTEGER_COLUMNS:
        if (out[col].dropna() % 1 != 0).any():
            raise ValueError(f"Non-integer value in '{col}'")

    for col in tc.INTEGER_COLUMNS:
        out[col] = out[col].astype("int64")
    for col in tc.NULLABLE_INTEGER_COLUMNS:
        out[col] = out[col].astype("Int64")
    for col in tc.DECIMAL_COLUMNS:
        out[col] = out[col].astype("float64")
    for col in tc.NULLABLE_MONETARY_COLUMNS:
        out[col] = out[col].astype("Float64")

    return out
