import logging

import numpy as np
import pandas as pd
import great_expectations as gx
import great_expectations.expectations as gxe
from great_expectations.core.expectation_suite import ExpectationSuite
import taxi_cleaning.trip_contract as tc

logger = logging.getLogger(__name__)


def _to_numpy_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    """Nullable extension columns -> numpy dtypes (<NA> -> NaN) for GX."""
    out = df.copy()
    for col in out.columns:
        dtype = out[col].dtype
        if (
            isinstance(dtype, pd.api.extensions.ExtensionDtype)
            and pd.api.types.is_numeric_dtype(dtype)
            and not pd.api.types.is_bool_dtype(dtype)
        ):
            out[col] = out[col].to_numpy(dtype="float64", na_value=np.nan)
    return out


class DataValidator:
    """Asserts the output invariants of a cleaned trip frame."""

    def __init__(
        self,
        df: pd.DataFrame,
        valid_vendor_ids=tc.VALID_VENDOR_IDS,
        max_trip_duration_minutes: int = tc.MAX_TRIP_DURATION_MINUTES,
        max_average_speed_mph: float = tc.MAX_AVERAGE_SPEED_MPH,
    ):
        self.df = _to_numpy_dtypes(df)
        self.valid_vendor_ids = list(valid_vendor_ids)
        self.max_trip_duration_minutes = max_trip_duration_minutes
        self.max_average_speed_mph = max_average_speed_mph
        # Ephemeral Context: In-memory configuration suitable for automated pipelines.
        self.context = gx.get_context(mode="ephemeral")
        self.datasource_name = "pandas_datasource"
        self.asset_name = "clean_trips_dataframe"
        self.suite_name = "clean_trips_invariants"
        self.validation_results = None

    def build_suite(self) -> ExpectationSuite:
        suite = ExpectationSuite(name=self.suite_name)

        # --- Rule A: Structural Integrity ---
        for col in tc.SCHEMA_COLUMNS + tc.DERIVED_COLUMNS:
            suite.add_expectation(gxe.ExpectColumnToExist(column=col))

        # --- Rule B: Deletion Invariants ---
        suite.add_expectation(
            gxe.ExpectColumnValuesToBeInSet(
                column="vendor_id", value_set=self.valid_vendor_ids
            )
        )

        # Missing passenger counts are ignored by GX; only 0 can fail.
        suite.add_expectation(
            gxe.ExpectColumnValuesToBeBetween(column="passenger_count", min_value=1)
        )

        for col in tc.MONETARY_COLUMNS:
            suite.add_expectation(
                gxe.ExpectColumnValuesToBeBetween(column=col, min_value=0)
            )

        suite.add_expectation(
            gxe.ExpectColumnPairValuesAToBeGreaterThanB(
                column_A="dropoff_time", column_B="pickup_time", or_equal=False
            )
        )

        suite.add_expectation(
            gxe.ExpectColumnValuesToBeBetween(
                column="trip_duration_minutes",
                min_value=0,
                max_value=self.max_trip_duration_minutes,
            )
        )

        suite.add_expectation(
            gxe.ExpectColumnValuesToBeBetween(
                column="average_speed_mph",
                min_value=0,
                max_value=self.max_average_speed_mph,
            )
        )

        # --- Rule C: Flags are never missing ---
        for col in tc.FLAG_COLUMNS:
            suite.add_expectation(gxe.ExpectColumnValuesToNotBeNull(column=col))

        return suite

    def validate(self) -> bool:
        logger.info("Validating cleaned trips with Great Expectations...")

        # 1. Setup Datasource (Idempotent)
        try:
            ds = self.context.data_sources.get(self.datasource_name)
        except KeyError:
            ds = self.context.data_sources.add_pandas(self.datasource_name)

        try:
            asset = ds.get_asset(self.asset_name)
        except LookupError:
            asset = ds.add_dataframe_asset(name=self.asset_name)

        # 2. Create Expectation Suite
        suite = self.build_suite()

        # 3. Run Validation
        batch_def = asset.add_batch_definition_whole_dataframe("whole_df")
        batch = batch_def.get_batch(batch_parameters={"dataframe": self.df})
        self.validation_results = batch.validate(suite)

        # 4. Result Handling
        if not self.validation_results.success:
            logger.error("GX VALIDATION FAILED!")
            for res in self.validation_results.results:
                if not res.success:
                    col = res.expectation_config.kwargs.get("column", "Table-Level")
                    type_ = res.expectation_config.type
                    logger.error(f"   - Violation: {col} | Rule: {type_}")

            raise ValueError("Cleaned trip data violates its invariants. See the GX report for details.")

        logger.info("Great Expectations passed.")
        return True
