import logging
from typing import Dict, Iterable, List

import pandas as pd
import taxi_cleaning.trip_contract as tc

logger = logging.getLogger(__name__)


class DataCleaner:
    """
    Deletion stage. Rows that are unusable (logically impossible or from an
    untrusted source) are dropped whole; nothing is corrected or imputed.

    Each rule is a row-local keep-mask. Removal counts per rule and the
    removed rows themselves are kept on the instance for audit reporting.
    """

    def __init__(
        self,
        valid_vendor_ids: Iterable[int] = tc.VALID_VENDOR_IDS,
        max_trip_duration_minutes: int = tc.MAX_TRIP_DURATION_MINUTES,
        max_average_speed_mph: float = tc.MAX_AVERAGE_SPEED_MPH,
    ):
        self.valid_vendor_ids = list(valid_vendor_ids)
        self.max_trip_duration_minutes = max_trip_duration_minutes
        self.max_average_speed_mph = max_average_speed_mph

        self.removal_counts: Dict[str, int] = {}
        self._dropped: List[pd.DataFrame] = []

    def reset(self) -> None:
        self.removal_counts = {}
        self._dropped = []

    # --------------------------------------------------
    # Keep-masks (True = row survives)
    # --------------------------------------------------
    def mask_known_vendor(self, df: pd.DataFrame) -> pd.Series:
        return df["vendor_id"].isin(self.valid_vendor_ids)

    @staticmethod
    def mask_passenger_count(df: pd.DataFrame) -> pd.Series:
        # Missing is legitimate (flex fare trips); only an explicit 0 fails.
        return df["passenger_count"].ne(0).fillna(True).astype(bool)

    @staticmethod
    def mask_non_negative_money(df: pd.DataFrame) -> pd.Series:
        negative = pd.Series(False, index=df.index)
        for col in tc.MONETARY_COLUMNS:
            negative |= df[col].lt(0).fillna(False).astype(bool)
        return ~negative

    @staticmethod
    def mask_time_order(df: pd.DataFrame) -> pd.Series:
        return df["dropoff_time"] > df["pickup_time"]

    def mask_duration(self, df: pd.DataFrame) -> pd.Series:
        return df["trip_duration_minutes"] <= self.max_trip_duration_minutes

    def mask_speed(self, df: pd.DataFrame) -> pd.Series:
        # Undefined speed (zero-minute trips) passes.
        too_fast = df["average_speed_mph"].gt(self.max_average_speed_mph)
        return ~too_fast.fillna(False).astype(bool)

    # --------------------------------------------------
    # Deletion steps
    # --------------------------------------------------
    def _apply(self, df: pd.DataFrame, rule: str, keep: pd.Series) -> pd.DataFrame:
        removed = int((~keep).sum())
        self.removal_counts[rule] = self.removal_counts.get(rule, 0) + removed
        if removed:
            self._dropped.append(df[~keep].assign(removal_reason=rule))
        logger.info(f"Rule '{rule}' removed {removed} rows")
        return df[keep]

    def remove_invalid_records(self, df: pd.DataFrame) -> pd.DataFrame:
        """Drop rows failing any of the four record-level rules, in order."""
        df = self._apply(df, "unknown_vendor", self.mask_known_vendor(df))
        df = self._apply(df, "zero_passengers", self.mask_passenger_count(df))
        df = self._apply(df, "negative_monetary", self.mask_non_negative_money(df))
        df = self._apply(df, "invalid_time_order", self.mask_time_order(df))
        return df

    def remove_excessive_duration(self, df: pd.DataFrame) -> pd.DataFrame:
        """Needs trip_duration_minutes."""
        return self._apply(df, "excessive_duration", self.mask_duration(df))

    def remove_excessive_speed(self, df: pd.DataFrame) -> pd.DataFrame:
        """Needs average_speed_mph."""
        return self._apply(df, "excessive_speed", self.mask_speed(df))

    def dropped_records(self) -> pd.DataFrame:
        """Every removed row, tagged with the rule that removed it."""
        if not self._dropped:
            return pd.DataFrame(columns=tc.SCHEMA_COLUMNS + ["removal_reason"])
        return pd.concat(self._dropped)
