import logging
from typing import Any, Dict, Tuple

import pandas as pd
import taxi_cleaning.trip_contract as tc
from taxi_cleaning.anomaly_flags import AnomalyFlagger, flag_counts
from taxi_cleaning.data_cleaning import DataCleaner
from taxi_cleaning.feature_engineering import FeatureEngineer

logger = logging.getLogger(__name__)


class TripCleaningPipeline:
    """
    Deletion -> derivation -> flagging, in the fixed order:

    1. record-level deletions (vendor, passengers, money, time order)
    2. trip_duration_minutes, then drop trips over the duration limit
    3. average_speed_mph, then drop trips over the speed limit
    4. tip_percentage
    5. anomaly flags

    The input frame is left untouched; all work happens on a copy.
    """

    def __init__(
        self,
        cleaner: DataCleaner | None = None,
        engineer: FeatureEngineer | None = None,
        flagger: AnomalyFlagger | None = None,
    ):
        self.cleaner = cleaner or DataCleaner()
        self.engineer = engineer or FeatureEngineer()
        self.flagger = flagger or AnomalyFlagger()

    def run(self, raw: pd.DataFrame) -> Tuple[pd.DataFrame, Dict[str, Any]]:
        self.cleaner.reset()
        initial_count = len(raw)
        logger.info(f"Cleaning {initial_count} trip records...")

        df = raw.copy(deep=True)

        df = self.cleaner.remove_invalid_records(df)

        df = self.engineer.add_trip_duration(df)
        df = self.cleaner.remove_excessive_duration(df)

        df = self.engineer.add_average_speed(df)
        df = self.cleaner.remove_excessive_speed(df)

        df = self.engineer.add_tip_percentage(df)
        df = self.flagger.flag(df)

        clean_count = len(df)
        dropped_count = initial_count - clean_count
        stats: Dict[str, Any] = {
            "initial_rows": initial_count,
            "clean_rows": clean_count,
            "dropped_rows": dropped_count,
            "cleaning_ratio": (dropped_count / initial_count) if initial_count > 0 else 0.0,
        }
        for rule, count in self.cleaner.removal_counts.items():
            stats[f"removed_{rule}"] = count
        for flag, count in flag_counts(df).items():
            stats[f"flagged_{flag}"] = count

        logger.info(f"Cleaned data stats: {stats}")
        return df[tc.SCHEMA_COLUMNS + tc.DERIVED_COLUMNS], stats


def enforce_quality_gates(stats: Dict[str, Any], max_unclean_ratio: float = tc.MAX_UNCLEAN_RATIO) -> None:
    """Raise when the cleaned result is empty or too much was deleted."""
    if stats["clean_rows"] == 0:
        raise ValueError("Data Quality Critical: Resulting dataset is empty after cleaning.")

    if stats["cleaning_ratio"] > max_unclean_ratio:
        error_msg = (
            f"Data Quality Breach! Removed {stats['cleaning_ratio']:.2%} of rows, "
            f"exceeding the limit of {max_unclean_ratio:.2%}."
        )
        logger.error(error_msg)
        raise ValueError(error_msg)
