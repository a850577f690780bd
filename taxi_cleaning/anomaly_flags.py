import logging
from typing import Dict

import pandas as pd
import taxi_cleaning.trip_contract as tc

logger = logging.getLogger(__name__)


class AnomalyFlagger:
    """
    Marks unusual-but-plausible trips. Flags never remove rows; they let
    downstream analysis exclude or weight records.
    """

    def __init__(
        self,
        total_amount_tolerance: float = tc.TOTAL_AMOUNT_TOLERANCE,
        high_tip_percentage: float = tc.HIGH_TIP_PERCENTAGE,
        high_tolls_amount: float = tc.HIGH_TOLLS_AMOUNT,
    ):
        self.total_amount_tolerance = total_amount_tolerance
        self.high_tip_percentage = high_tip_percentage
        self.high_tolls_amount = high_tolls_amount

    def total_amount_discrepancy(self, df: pd.DataFrame) -> pd.Series:
        """total_amount minus the sum of its components, in whole cents."""
        components = df[tc.TOTAL_AMOUNT_COMPONENTS].sum(axis=1, skipna=False)
        # Rounded to cents so float noise cannot push 0.01 over the tolerance.
        return (df["total_amount"] - components).abs().round(2)

    def flag(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.copy()

        df["is_total_amount_discrepant"] = (
            self.total_amount_discrepancy(df).gt(self.total_amount_tolerance).astype(bool)
        )
        df["is_high_tip_outlier"] = (
            df["tip_percentage"].gt(self.high_tip_percentage).fillna(False).astype(bool)
        )
        df["is_high_toll_outlier"] = df["tolls_amount"].gt(self.high_tolls_amount).astype(bool)

        logger.info(f"Flag counts: {flag_counts(df)}")
        return df


def flag_counts(df: pd.DataFrame) -> Dict[str, int]:
    return {col: int(df[col].sum()) for col in tc.FLAG_COLUMNS if col in df.columns}
