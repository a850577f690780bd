from typing import Any, Dict, Iterable

import pandas as pd
import taxi_cleaning.trip_contract as tc


def _describe(series: pd.Series) -> Dict[str, Any]:
    values = series.dropna()
    if values.empty:
        return {"min": None, "max": None, "mean": None}
    return {
        "min": float(values.min()),
        "max": float(values.max()),
        "mean": float(values.mean()),
    }


def summarize_trips(df: pd.DataFrame, columns: Iterable[str] = tc.SUMMARY_COLUMNS) -> Dict[str, Any]:
    """Row count plus min / max / mean per column, ignoring undefined values."""
    summary: Dict[str, Any] = {"total_records": int(len(df))}
    for col in columns:
        summary[col] = _describe(df[col])
    return summary


def flatten_summary(summary: Dict[str, Any]) -> Dict[str, float]:
    """{"fare_amount": {"min": 1.0}} -> {"fare_amount_min": 1.0}; drops Nones."""
    flat: Dict[str, float] = {}
    for key, value in summary.items():
        if isinstance(value, dict):
            for stat, number in value.items():
                if number is not None:
                    flat[f"{key}_{stat}"] = float(number)
        elif value is not None:
            flat[key] = float(value)
    return flat
