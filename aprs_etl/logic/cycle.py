"""One collect -> parse -> cache -> publish pass over the APRS-IS feed."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import timedelta
import logging
import time
from typing import Any

from aprs_etl.data.aprs_client import APRSISClient, FeedError
from aprs_etl.data.delivery import DeliveryError, FeatureSink
from aprs_etl.data.station_cache import DEFAULT_MAX_AGE, StationCache
from aprs_etl.logic.coordinates import format_position
from aprs_etl.logic.frame_parser import NO_POSITION_DATA, ParseFailure, parse_frame
from aprs_etl.output.records import RecordConfig, build_feature_collection, feature_collection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleResult:
    """Outcome of a single collection cycle."""

    collection: dict[str, Any]
    lines_collected: int
    reports_parsed: int
    stations: int
    fetched_at: float
    error: str | None


class CollectionCycle:
    """Runs collection cycles against a long-lived StationCache.

    The cache is only touched after the whole batch has been received, so a
    failed connection leaves it exactly as the previous cycle left it. The
    sink is called exactly once per run, with an empty collection on failure.
    """

    def __init__(
        self,
        client: APRSISClient,
        cache: StationCache,
        sink: FeatureSink,
        record_config: RecordConfig | None = None,
        max_age: timedelta = DEFAULT_MAX_AGE,
    ) -> None:
        self._client = client
        self._cache = cache
        self._sink = sink
        self._record_config = record_config or RecordConfig()
        self._max_age = max_age

    def run(self) -> CycleResult:
        fetched_at = time.time()
        try:
            lines = self._client.collect_lines()
        except FeedError as exc:
            logger.warning("cycle_feed_failed error_type=%s error=%s", type(exc).__name__, exc)
            return self._publish(feature_collection(), 0, 0, fetched_at, str(exc))
        except Exception as exc:
            logger.exception("cycle_collect_failed")
            return self._publish(feature_collection(), 0, 0, fetched_at, str(exc))

        try:
            parsed = self._ingest(lines)
            pruned = self._cache.prune_older_than(max_age=self._max_age)
            collection = build_feature_collection(self._cache.snapshot(), self._record_config)
        except Exception as exc:
            logger.exception("cycle_failed lines=%d", len(lines))
            return self._publish(feature_collection(), len(lines), 0, fetched_at, str(exc))

        logger.info(
            "cycle_complete lines=%d parsed=%d pruned=%d stations=%d",
            len(lines),
            parsed,
            pruned,
            len(collection["features"]),
        )
        return self._publish(collection, len(lines), parsed, fetched_at, None)

    def _ingest(self, lines: list[str]) -> int:
        failures: Counter[str] = Counter()
        parsed = 0
        for line in lines:
            result = parse_frame(line)
            if isinstance(result, ParseFailure):
                failures[result.reason] += 1
                if result.reason != NO_POSITION_DATA:
                    logger.debug("frame_rejected reason=%s detail=%s raw=%r", result.reason, result.detail, line)
                continue
            parsed += 1
            if self._cache.upsert(result):
                logger.debug(
                    "station_upserted identifier=%s position=%s",
                    result.identifier,
                    format_position(result.latitude, result.longitude),
                )
        if failures:
            logger.debug("frames_skipped %s", dict(failures))
        return parsed

    def _publish(
        self,
        collection: dict[str, Any],
        lines_collected: int,
        reports_parsed: int,
        fetched_at: float,
        error: str | None,
    ) -> CycleResult:
        try:
            self._sink.submit(collection)
        except DeliveryError as exc:
            logger.error("delivery_failed error=%s", exc)
            error = f"{error}; {exc}" if error else str(exc)
        return CycleResult(
            collection=collection,
            lines_collected=lines_collected,
            reports_parsed=reports_parsed,
            stations=len(collection["features"]),
            fetched_at=fetched_at,
            error=error,
        )


__all__ = ["CycleResult", "CollectionCycle"]
