"""Output record construction for cached APRS stations."""

from aprs_etl.output.records import (
    RecordConfig,
    build_feature_collection,
    build_record,
    feature_collection,
)

__all__ = ["RecordConfig", "build_feature_collection", "build_record", "feature_collection"]
