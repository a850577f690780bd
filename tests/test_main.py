import pandas as pd

import main
import taxi_cleaning.trip_contract as tc


def test_build_pipeline_reads_thresholds(tmp_path):
    params_path = tmp_path / "params.yaml"
    params_path.write_text(
        "rules:\n"
        "  valid_vendor_ids: [1, 2, 6]\n"
        "  max_trip_duration_minutes: 240\n"
        "  max_average_speed_mph: 60\n"
        "flags:\n"
        "  total_amount_tolerance: 0.05\n"
        "  high_tip_percentage: 50\n"
        "  high_tolls_amount: 30\n"
    )

    pipeline = main.build_pipeline(main.load_params(str(params_path)))

    assert pipeline.cleaner.valid_vendor_ids == [1, 2, 6]
    assert pipeline.cleaner.max_trip_duration_minutes == 240
    assert pipeline.cleaner.max_average_speed_mph == 60.0
    assert pipeline.flagger.total_amount_tolerance == 0.05
    assert pipeline.flagger.high_tip_percentage == 50.0
    assert pipeline.flagger.high_tolls_amount == 30.0


def test_build_pipeline_defaults_to_contract():
    pipeline = main.build_pipeline({})

    assert pipeline.cleaner.valid_vendor_ids == list(tc.VALID_VENDOR_IDS)
    assert pipeline.cleaner.max_trip_duration_minutes == tc.MAX_TRIP_DURATION_MINUTES
    assert pipeline.cleaner.max_average_speed_mph == tc.MAX_AVERAGE_SPEED_MPH
    assert pipeline.flagger.high_tolls_amount == tc.HIGH_TOLLS_AMOUNT


def test_configured_thresholds_drive_the_rules(make_trips):
    pipeline = main.build_pipeline({"rules": {"valid_vendor_ids": [1, 2, 6]}, "flags": {"high_tolls_amount": 30}})

    out, _ = pipeline.run(make_trips({"vendor_id": 6, "tolls_amount": 40.00, "total_amount": 57.00}))

    assert len(out) == 1
    assert out["is_high_toll_outlier"].iloc[0]


def test_write_trips_by_extension(tmp_path, pipeline, make_trips):
    clean, _ = pipeline.run(make_trips({}, {"tip_amount": 15.00, "total_amount": 29.00}))

    csv_path = main.write_trips(clean, str(tmp_path / "out" / "trips.csv"))
    parquet_path = main.write_trips(clean, str(tmp_path / "out" / "trips.parquet"))

    assert len(pd.read_csv(csv_path)) == 2
    back = pd.read_parquet(parquet_path)
    assert list(back.columns) == tc.SCHEMA_COLUMNS + tc.DERIVED_COLUMNS
    assert back["tip_percentage"].tolist() == [30.0, 150.0]
