import pytest
import pandas as pd

from taxi_cleaning.anomaly_flags import AnomalyFlagger
from taxi_cleaning.data_cleaning import DataCleaner
from taxi_cleaning.data_loader import parse_trip_frame
from taxi_cleaning.feature_engineering import FeatureEngineer
from taxi_cleaning.pipeline import TripCleaningPipeline


def base_trip() -> dict:
    """A valid metered trip: 15 minutes, 3.75 miles, totals add up."""
    return {
        "vendor_id": 1,
        "pickup_time": pd.Timestamp("2023-12-01 08:00:00"),
        "dropoff_time": pd.Timestamp("2023-12-01 08:15:00"),
        "passenger_count": 1,
        "trip_distance": 3.75,
        "rate_code": 1,
        "store_and_forward_flag": "N",
        "pickup_location_id": 142,
        "dropoff_location_id": 236,
        "payment_type": 1,
        "fare_amount": 10.00,
        "extra": 2.50,
        "mta_tax": 0.50,
        "tip_amount": 3.00,
        "tolls_amount": 0.00,
        "improvement_surcharge": 1.00,
        "total_amount": 17.00,
        "congestion_surcharge": 2.50,
        "airport_fee": 0.00,
    }


@pytest.fixture
def make_trips():
    """Builds a typed trip frame; each argument overrides fields of one row."""

    def _make(*overrides: dict) -> pd.DataFrame:
        rows = [{**base_trip(), **o} for o in (overrides or ({},))]
        return parse_trip_frame(pd.DataFrame(rows))

    return _make


@pytest.fixture
def flex_fare_trip():
    """payment_type 0: passenger count, rate code and surcharges left blank."""
    return {
        "vendor_id": 2,
        "payment_type": 0,
        "passenger_count": None,
        "rate_code": None,
        "store_and_forward_flag": None,
        "congestion_surcharge": None,
        "airport_fee": None,
    }


@pytest.fixture
def cleaner():
    return DataCleaner()


@pytest.fixture
def engineer():
    return FeatureEngineer()


@pytest.fixture
def flagger():
    return AnomalyFlagger()


@pytest.fixture
def pipeline(cleaner, engineer, flagger):
    return TripCleaningPipeline(cleaner=cleaner, engineer=engineer, flagger=flagger)


@pytest.fixture
def dirty_trips(make_trips, flex_fare_trip):
    """One row per deletion rule plus survivors and flag cases."""
    return make_trips(
        {},                                                           # survives
        flex_fare_trip,                                               # survives
        {"vendor_id": 6},                                             # unknown vendor
        {"passenger_count": 0},                                       # zero passengers
        {"fare_amount": -1.00},                                       # negative money
        {"dropoff_time": pd.Timestamp("2023-12-01 08:00:00")},        # equal times
        {"dropoff_time": pd.Timestamp("2023-12-01 14:30:00")},        # 390 minutes
        {"trip_distance": 20.0},                                      # 80 mph
        {"tip_amount": 15.00, "total_amount": 29.00},                 # high tip, survives
        {"tolls_amount": 50.01, "total_amount": 67.01},               # high toll, survives
        {"total_amount": 17.02},                                      # discrepant, survives
    )
