"""
Exploratory profiling of trip frames.

``profile_raw_trips`` describes the loaded data before any rule runs (what
the deletion rules will bite on); ``outlier_samples`` pulls the worst
flagged rows out of the cleaned data for manual inspection. Everything is
returned as plain dicts so it can be dumped to the JSON run report.
"""

from typing import Any, Dict, List

import pandas as pd
import taxi_cleaning.trip_contract as tc

MISSING_LABEL = "missing"


def _counts(series: pd.Series, by_frequency: bool = False) -> Dict[str, int]:
    counts = series.value_counts(dropna=False)
    if not by_frequency:
        counts = counts.sort_index()
    return {
        (MISSING_LABEL if pd.isna(key) else str(key)): int(value)
        for key, value in counts.items()
    }


def _range(series: pd.Series) -> Dict[str, Any]:
    values = series.dropna()
    if values.empty:
        return {"min": None, "max": None}
    return {"min": float(values.min()), "max": float(values.max())}


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    out = df.astype(object).where(df.notna(), None)
    for col in tc.TIMESTAMP_COLUMNS:
        if col in out.columns:
            out[col] = df[col].dt.strftime("%Y-%m-%d %H:%M:%S")
    return out.to_dict(orient="records")


def profile_raw_trips(df: pd.DataFrame) -> Dict[str, Any]:
    """Distribution checks run on the loaded data, before cleaning."""
    missing_passengers = df["passenger_count"].isna()
    zero_distance = df["trip_distance"] == 0
    negative_fare = df["fare_amount"] < 0

    other_negative = pd.Series(False, index=df.index)
    for col in tc.MONETARY_COLUMNS:
        if col != "fare_amount":
            other_negative |= df[col].lt(0).fillna(False).astype(bool)

    profile: Dict[str, Any] = {
        "records": int(len(df)),
        "vendor_counts": _counts(df["vendor_id"]),
        "passenger_count_counts": _counts(df["passenger_count"]),
        "rate_code_counts": _counts(df["rate_code"]),
        "rate_code_counts_missing_passengers": _counts(df.loc[missing_passengers, "rate_code"]),
        "store_and_forward_counts": _counts(df["store_and_forward_flag"]),
        # Busiest drop-off zones first
        "dropoff_location_counts": _counts(df["dropoff_location_id"], by_frequency=True),
        "payment_type_counts": _counts(df["payment_type"]),
        "flex_fare_records": int((df["payment_type"] == tc.FLEX_FARE_PAYMENT_TYPE).sum()),
        "trip_distance_counts": _counts(df["trip_distance"]),
        "zero_distance_records": int(zero_distance.sum()),
        "zero_distance_by_payment_type": _counts(df.loc[zero_distance, "payment_type"]),
        "fare_range": _range(df["fare_amount"]),
        "negative_fare_by_vendor": _counts(df.loc[negative_fare, "vendor_id"]),
        "other_negative_monetary_records": int((~negative_fare & other_negative).sum()),
        "monetary_ranges": {
            col: _range(df.loc[df[col].ge(0).fillna(False).astype(bool), col])
            for col in tc.MONETARY_COLUMNS
            if col != "fare_amount"
        },
    }
    return profile


def outlier_samples(df: pd.DataFrame, limit: int = 10) -> Dict[str, Any]:
    """Top flagged rows for the tip and toll outlier groups."""
    high_tip = df[df["is_high_tip_outlier"]]
    high_toll = df[df["is_high_toll_outlier"]]

    tip_cols = [
        "pickup_time", "dropoff_time", "fare_amount",
        "tip_amount", "total_amount", "tip_percentage",
    ]
    toll_cols = [
        "pickup_time", "dropoff_time", "trip_distance",
        "fare_amount", "tolls_amount", "total_amount",
    ]

    return {
        "high_tip": {
            "count": int(len(high_tip)),
            **_range(high_tip["tip_percentage"]),
            "sample": _records(high_tip.sort_values("tip_percentage", ascending=False)[tip_cols].head(limit)),
        },
        "high_toll": {
            "count": int(len(high_toll)),
            **_range(high_toll["tolls_amount"]),
            "sample": _records(high_toll.sort_values("tolls_amount", ascending=False)[toll_cols].head(limit)),
        },
    }
