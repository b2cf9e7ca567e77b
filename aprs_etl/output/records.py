"""Convert cached stations into GeoJSON features for downstream display."""

from __future__ import annotations

from dataclasses import asdict, dataclass
import logging
from typing import Any, Iterable

from aprs_etl.data.station_cache import CacheEntry
from aprs_etl.logic.frame_parser import normalize_identifier

logger = logging.getLogger(__name__)

KNOTS_TO_METERS_PER_SECOND = 0.514444
UID_PREFIX = "APRS."
DEFAULT_COT_TYPE = "a-f-G-I-U-T-r"
STATION_ICON = "ad78aafb-83a6-4c07-b2b9-a897a8b6a38f:Shapes/triangle"


@dataclass(frozen=True)
class RecordConfig:
    """Fixed values stamped onto every output record."""

    cot_type: str = DEFAULT_COT_TYPE
    icon: str = STATION_ICON
    uid_prefix: str = UID_PREFIX


def build_record(entry: CacheEntry, config: RecordConfig) -> dict[str, Any]:
    """Build one Feature for a cached station."""
    report = entry.report
    callsign = normalize_identifier(report.identifier)
    seen_iso = entry.last_seen.isoformat()

    return {
        "id": f"{config.uid_prefix}{callsign}",
        "type": "Feature",
        "properties": {
            "type": config.cot_type,
            "callsign": f"{callsign} (APRS)",
            "time": seen_iso,
            "start": seen_iso,
            "course": report.course if report.course is not None else 0,
            "speed": report.speed * KNOTS_TO_METERS_PER_SECOND if report.speed else 0,
            "icon": config.icon,
            "remarks": build_remarks(entry),
            "metadata": entry_metadata(entry),
        },
        "geometry": {
            "type": "Point",
            "coordinates": [
                report.longitude,
                report.latitude,
                report.altitude if report.altitude is not None else 0,
            ],
        },
    }


def build_remarks(entry: CacheEntry) -> str:
    report = entry.report
    lines = [
        f"Callsign: {normalize_identifier(report.identifier)}",
        f"Comment: {report.comment}" if report.comment else None,
        f"Last Seen: {entry.last_seen.isoformat()}",
        f"Raw: {report.raw}" if report.raw else None,
    ]
    return "\n".join(line for line in lines if line)


def entry_metadata(entry: CacheEntry) -> dict[str, Any]:
    """JSON-safe view of the whole cache entry."""
    metadata = asdict(entry.report)
    metadata["last_seen"] = entry.last_seen.isoformat()
    return metadata


def build_feature_collection(entries: Iterable[CacheEntry], config: RecordConfig) -> dict[str, Any]:
    """Build a FeatureCollection, skipping any entry that fails to convert."""
    features = []
    for entry in entries:
        try:
            features.append(build_record(entry, config))
        except Exception:
            logger.exception("record_build_failed entry=%r", entry)
    return feature_collection(features)


def feature_collection(features: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": features if features is not None else []}


__all__ = [
    "KNOTS_TO_METERS_PER_SECOND",
    "UID_PREFIX",
    "DEFAULT_COT_TYPE",
    "STATION_ICON",
    "RecordConfig",
    "build_record",
    "build_remarks",
    "entry_metadata",
    "build_feature_collection",
    "feature_collection",
]
