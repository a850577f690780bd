import argparse
import json
import logging
import os

import mlflow
import pandas as pd
import yaml

from taxi_cleaning.anomaly_flags import AnomalyFlagger
from taxi_cleaning.data_cleaning import DataCleaner
from taxi_cleaning.data_loader import TripLoader
from taxi_cleaning.data_validation import DataValidator
from taxi_cleaning.feature_engineering import FeatureEngineer
from taxi_cleaning.pipeline import TripCleaningPipeline, enforce_quality_gates
from taxi_cleaning.profiling import outlier_samples, profile_raw_trips
from taxi_cleaning.summary import flatten_summary, summarize_trips
import taxi_cleaning.trip_contract as tc


# Logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logging.getLogger("great_expectations").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def load_params(params_path: str) -> dict:
    with open(params_path, "r") as f:
        return yaml.safe_load(f) or {}


def serialize_gx_results(results) -> dict:
    output = {"success": results.success, "results": []}
    for r in results.results:
        output["results"].append(
            {
                "success": r.success,
                "expectation": r.expectation_config.type,
                "column": r.expectation_config.kwargs.get("column"),
                "unexpected_list": r.result.get("partial_unexpected_list", []),
            }
        )
    return output


def safe_log_artifact(path: str, artifact_path: str | None = None) -> None:
    """Log file to MLflow if it exists (no crash if missing)."""
    if path and os.path.exists(path):
        mlflow.log_artifact(path, artifact_path=artifact_path)


def write_json(payload: dict, path: str) -> str:
    with open(path, "w") as f:
        json.dump(payload, f, indent=2, default=str)
    return path


def write_trips(df: pd.DataFrame, path: str) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    if os.path.splitext(path)[1].lower() == ".parquet":
        df.to_parquet(path, index=False)
    else:
        df.to_csv(path, index=False)
    logger.info(f"Wrote {len(df)} cleaned trips to {path}")
    return path


def build_pipeline(params: dict) -> TripCleaningPipeline:
    rules = params.get("rules", {})
    flags = params.get("flags", {})

    cleaner = DataCleaner(
        valid_vendor_ids=rules.get("valid_vendor_ids", tc.VALID_VENDOR_IDS),
        max_trip_duration_minutes=int(rules.get("max_trip_duration_minutes", tc.MAX_TRIP_DURATION_MINUTES)),
        max_average_speed_mph=float(rules.get("max_average_speed_mph", tc.MAX_AVERAGE_SPEED_MPH)),
    )
    flagger = AnomalyFlagger(
        total_amount_tolerance=float(flags.get("total_amount_tolerance", tc.TOTAL_AMOUNT_TOLERANCE)),
        high_tip_percentage=float(flags.get("high_tip_percentage", tc.HIGH_TIP_PERCENTAGE)),
        high_tolls_amount=float(flags.get("high_tolls_amount", tc.HIGH_TOLLS_AMOUNT)),
    )
    return TripCleaningPipeline(cleaner=cleaner, engineer=FeatureEngineer(), flagger=flagger)


def run_pipeline(params_path: str) -> None:
    params = load_params(params_path)

    # --- Read config ---
    data_path = params["data"]["path"]
    output_path = params["data"]["output_path"]
    max_unclean_ratio = float(params.get("quality", {}).get("max_unclean_ratio", tc.MAX_UNCLEAN_RATIO))
    exp_name = params.get("mlflow", {}).get("experiment_name", "NYC_Taxi_Cleaning")

    # Write temp artifacts to a writable place
    artifact_dir = os.environ.get(
        "LOCAL_ARTIFACT_DIR", params["data"].get("artifact_dir", "/tmp/taxi_cleaning_artifacts")
    )
    os.makedirs(artifact_dir, exist_ok=True)

    # --- Components ---
    loader = TripLoader(data_path)
    pipeline = build_pipeline(params)

    # --- MLflow ---
    mlflow.set_experiment(exp_name)

    with mlflow.start_run() as run:
        logger.info(f"Starting Run: {run.info.run_id}")

        # Log pipeline configuration
        mlflow.log_param("contract_version", tc.CONTRACT_VERSION)
        mlflow.log_param("data_source", data_path)
        mlflow.log_params(
            {
                "valid_vendor_ids": ",".join(str(v) for v in pipeline.cleaner.valid_vendor_ids),
                "max_trip_duration_minutes": pipeline.cleaner.max_trip_duration_minutes,
                "max_average_speed_mph": pipeline.cleaner.max_average_speed_mph,
                "total_amount_tolerance": pipeline.flagger.total_amount_tolerance,
                "high_tip_percentage": pipeline.flagger.high_tip_percentage,
                "high_tolls_amount": pipeline.flagger.high_tolls_amount,
                "max_unclean_ratio": max_unclean_ratio,
            }
        )

        # 1) Load
        try:
            raw = loader.load_data()
        except Exception as e:
            mlflow.set_tag("status", "load_failed")
            logger.exception(f"Loader failed: {e}")
            raise

        profile = profile_raw_trips(raw)

        # 2) Clean, derive, flag (raw stays untouched for audit)
        clean, stats = pipeline.run(raw)
        for k, v in stats.items():
            mlflow.log_metric(k, float(v))

        dropped = pipeline.cleaner.dropped_records()
        if len(dropped) > 0:
            dropped_sample_path = os.path.join(artifact_dir, "dropped_data_sample.csv")
            dropped.head(100).to_csv(dropped_sample_path, index=False)
            safe_log_artifact(dropped_sample_path)

        try:
            enforce_quality_gates(stats, max_unclean_ratio)
        except ValueError:
            mlflow.set_tag("status", "quality_gate_failed")
            raise

        # 3) Validate invariants with Great Expectations
        validator = DataValidator(
            clean,
            valid_vendor_ids=pipeline.cleaner.valid_vendor_ids,
            max_trip_duration_minutes=pipeline.cleaner.max_trip_duration_minutes,
            max_average_speed_mph=pipeline.cleaner.max_average_speed_mph,
        )
        try:
            validator.validate()
            mlflow.set_tag("data_quality", "passed")
        except Exception as e:
            mlflow.set_tag("data_quality", "failed")
            logger.exception(f"Validation failed: {e}")

            if validator.validation_results:
                gx_report_path = os.path.join(artifact_dir, "gx_report.json")
                write_json(serialize_gx_results(validator.validation_results), gx_report_path)
                safe_log_artifact(gx_report_path)

            raise

        # 4) Summarize + write outputs
        summary = summarize_trips(clean)
        mlflow.log_metrics(flatten_summary(summary))

        report_path = write_json(
            {
                "contract_version": tc.CONTRACT_VERSION,
                "stats": stats,
                "summary": summary,
                "raw_profile": profile,
                "outliers": outlier_samples(clean),
            },
            os.path.join(artifact_dir, "cleaning_report.json"),
        )
        safe_log_artifact(report_path)
        write_trips(clean, output_path)

        logger.info("Pipeline finished successfully.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default="params.yaml", help="Path to config file")
    args = parser.parse_args()
    run_pipeline(args.config)
