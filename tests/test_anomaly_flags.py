import pytest
import pandas as pd

from taxi_cleaning.anomaly_flags import flag_counts


@pytest.fixture
def flag_trips(make_trips, engineer, flagger):
    def _flag(*overrides):
        return flagger.flag(engineer.add_tip_percentage(make_trips(*overrides)))

    return _flag


def test_total_amount_discrepancy_tolerance(flag_trips):
    # Components add up to 17.00
    out = flag_trips(
        {"total_amount": 17.02},
        {"total_amount": 17.01},
        {"total_amount": 16.99},
        {"total_amount": 17.00},
    )

    assert out["is_total_amount_discrepant"].tolist() == [True, False, False, False]


def test_surcharges_excluded_from_component_sum(flag_trips):
    # Including the surcharges would make this look 2.50 short.
    out = flag_trips({"congestion_surcharge": 2.50, "airport_fee": 1.75, "total_amount": 17.00})

    assert not out["is_total_amount_discrepant"].iloc[0]


def test_high_tip_outlier(flag_trips):
    out = flag_trips(
        {"tip_amount": 15.00, "total_amount": 29.00},
        {"tip_amount": 5.00, "total_amount": 19.00},
        {"tip_amount": 10.00, "total_amount": 24.00},  # exactly 100%
    )

    assert out["tip_percentage"].tolist() == [150.0, 50.0, 100.0]
    assert out["is_high_tip_outlier"].tolist() == [True, False, False]


def test_undefined_tip_percentage_is_not_an_outlier(flag_trips):
    out = flag_trips({"fare_amount": 0.00, "tip_amount": 20.00, "total_amount": 24.50})

    assert pd.isna(out["tip_percentage"].iloc[0])
    assert not out["is_high_tip_outlier"].iloc[0]


def test_high_toll_boundary_is_exclusive(flag_trips):
    out = flag_trips(
        {"tolls_amount": 50.00, "total_amount": 67.00},
        {"tolls_amount": 50.01, "total_amount": 67.01},
    )

    assert out["is_high_toll_outlier"].tolist() == [False, True]


def test_flags_never_remove_rows(flag_trips):
    out = flag_trips(
        {"total_amount": 99.00},
        {"tip_amount": 40.00, "total_amount": 54.00},
        {"tolls_amount": 80.00, "total_amount": 97.00},
        {"tip_amount": 40.00, "tolls_amount": 80.00, "total_amount": 1.00},
    )

    assert len(out) == 4
    assert out[["is_total_amount_discrepant", "is_high_tip_outlier", "is_high_toll_outlier"]].iloc[3].all()
    assert out["is_total_amount_discrepant"].dtype == bool


def test_flag_counts(flag_trips):
    out = flag_trips({}, {"tolls_amount": 60.00, "total_amount": 77.00})

    assert flag_counts(out) == {
        "is_total_amount_discrepant": 0,
        "is_high_tip_outlier": 0,
        "is_high_toll_outlier": 1,
    }
