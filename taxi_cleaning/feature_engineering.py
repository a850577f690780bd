import logging

import pandas as pd

logger = logging.getLogger(__name__)

ONE_MINUTE = pd.Timedelta(minutes=1)


class FeatureEngineer:
    """
    Derived trip columns.

    Ratios whose denominator is zero or missing are left as <NA>
    (nullable Float64), never 0 and never inf.
    """

    def __init__(self, decimals: int = 2):
        # Stored precision of the derived decimals (cents).
        self.decimals = decimals

    def add_trip_duration(self, df: pd.DataFrame) -> pd.DataFrame:
        """Whole minutes between pickup and dropoff, truncated."""
        df = df.copy()
        elapsed = df["dropoff_time"] - df["pickup_time"]
        df["trip_duration_minutes"] = (elapsed // ONE_MINUTE).astype("int64")
        return df

    def add_average_speed(self, df: pd.DataFrame) -> pd.DataFrame:
        """Miles per hour; undefined for trips shorter than one minute."""
        df = df.copy()
        minutes = df["trip_duration_minutes"].where(df["trip_duration_minutes"] > 0)
        speed = df["trip_distance"] / minutes * 60
        df["average_speed_mph"] = speed.round(self.decimals).astype("Float64")

        undefined = int(df["average_speed_mph"].isna().sum())
        if undefined:
            logger.info(f"average_speed_mph undefined for {undefined} zero-minute trips")
        return df

    def add_tip_percentage(self, df: pd.DataFrame) -> pd.DataFrame:
        """Tip as a percentage of the fare; undefined when fare <= 0."""
        df = df.copy()
        fare = df["fare_amount"].where(df["fare_amount"] > 0)
        pct = df["tip_amount"] / fare * 100
        df["tip_percentage"] = pct.round(self.decimals).astype("Float64")
        return df
