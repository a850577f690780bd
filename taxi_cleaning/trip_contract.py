"""
taxi_cleaning/trip_contract.py

Single Source of Truth for the trip schema and cleaning rules.
"""

# Versioning allows us to track which rules were active
# for a specific cleaning run.
CONTRACT_VERSION = "1.0.0"

# -------------------------------------------------------------------
# System Limits
# -------------------------------------------------------------------
# If more than this share of rows is deleted we assume a systemic
# upstream failure rather than ordinary dirty data.
MAX_UNCLEAN_RATIO = 0.15


# -------------------------------------------------------------------
# Schema Definition
# -------------------------------------------------------------------
# Raw export header, in the fixed order the files arrive in.
RAW_COLUMNS = [
    "VendorID",
    "tpep_pickup_datetime",
    "tpep_dropoff_datetime",
    "passenger_count",
    "trip_distance",
    "RatecodeID",
    "store_and_fwd_flag",
    "PULocationID",
    "DOLocationID",
    "payment_type",
    "fare_amount",
    "extra",
    "mta_tax",
    "tip_amount",
    "tolls_amount",
    "improvement_surcharge",
    "total_amount",
    "congestion_surcharge",
    "airport_fee",
]

# Names used inside the pipeline. Mapped to RAW_COLUMNS by position.
SCHEMA_COLUMNS = [
    "vendor_id",
    "pickup_time",
    "dropoff_time",
    "passenger_count",
    "trip_distance",
    "rate_code",
    "store_and_forward_flag",
    "pickup_location_id",
    "dropoff_location_id",
    "payment_type",
    "fare_amount",
    "extra",
    "mta_tax",
    "tip_amount",
    "tolls_amount",
    "improvement_surcharge",
    "total_amount",
    "congestion_surcharge",
    "airport_fee",
]

TIMESTAMP_COLUMNS = ["pickup_time", "dropoff_time"]

INTEGER_COLUMNS = [
    "vendor_id",
    "pickup_location_id",
    "dropoff_location_id",
    "payment_type",
]

# Empty strings in these columns mean "missing", which is not zero.
NULLABLE_INTEGER_COLUMNS = ["passenger_count", "rate_code"]
NULLABLE_MONETARY_COLUMNS = ["congestion_surcharge", "airport_fee"]
NULLABLE_COLUMNS = (
    NULLABLE_INTEGER_COLUMNS
    + ["store_and_forward_flag"]
    + NULLABLE_MONETARY_COLUMNS
)

MONETARY_COLUMNS = [
    "fare_amount",
    "extra",
    "mta_tax",
    "tip_amount",
    "tolls_amount",
    "improvement_surcharge",
    "total_amount",
    "congestion_surcharge",
    "airport_fee",
]

# Non-nullable decimals.
DECIMAL_COLUMNS = ["trip_distance"] + [
    c for c in MONETARY_COLUMNS if c not in NULLABLE_MONETARY_COLUMNS
]

# congestion_surcharge and airport_fee are left out on purpose: the raw
# total_amount does not include them consistently.
TOTAL_AMOUNT_COMPONENTS = [
    "fare_amount",
    "extra",
    "mta_tax",
    "tip_amount",
    "tolls_amount",
    "improvement_surcharge",
]

DERIVED_COLUMNS = [
    "trip_duration_minutes",
    "average_speed_mph",
    "tip_percentage",
    "is_total_amount_discrepant",
    "is_high_tip_outlier",
    "is_high_toll_outlier",
]

FLAG_COLUMNS = [
    "is_total_amount_discrepant",
    "is_high_tip_outlier",
    "is_high_toll_outlier",
]

# Example: 12/01/2023 08:15:00 AM
TIMESTAMP_FORMAT = "%m/%d/%Y %I:%M:%S %p"


# -------------------------------------------------------------------
# Deletion Rules
# -------------------------------------------------------------------
# Vendors:
# 1 = Creative Mobile Technologies
# 2 = VeriFone
# Anything else (e.g. 6) comes from an unknown source.
VALID_VENDOR_IDS = (1, 2)

# A single continuous NYC taxi trip does not last six hours.
MAX_TRIP_DURATION_MINUTES = 360

# Above typical NYC travel speeds: a data error.
MAX_AVERAGE_SPEED_MPH = 45.0


# -------------------------------------------------------------------
# Flagging Rules (Exclusive Boundaries)
# -------------------------------------------------------------------
TOTAL_AMOUNT_TOLERANCE = 0.01
HIGH_TIP_PERCENTAGE = 100.0
HIGH_TOLLS_AMOUNT = 50.0


# -------------------------------------------------------------------
# Categorical Rules
# -------------------------------------------------------------------
# Payment Types:
# 0 = Flex Fare trip (non-metered; passenger_count, rate_code,
#     congestion_surcharge and airport_fee are often blank)
# 1 = Credit
# 2 = Cash
# 3 = No Charge
# 4 = Dispute
# 5 = Unknown
# 6 = Voided
FLEX_FARE_PAYMENT_TYPE = 0


# -------------------------------------------------------------------
# Reporting
# -------------------------------------------------------------------
SUMMARY_COLUMNS = [
    "trip_distance",
    "fare_amount",
    "total_amount",
    "trip_duration_minutes",
    "average_speed_mph",
]
