"""Wiring from AppConfig to a ready-to-run collection cycle."""

from __future__ import annotations

from datetime import timedelta

from aprs_etl.config import AppConfig
from aprs_etl.data.aprs_client import APRSISClient
from aprs_etl.data.delivery import (
    FeatureSink,
    HttpFeatureSink,
    JsonlFeatureSink,
    LoggingSink,
    MultiSink,
)
from aprs_etl.data.station_cache import StationCache
from aprs_etl.logic.cycle import CollectionCycle
from aprs_etl.output.records import RecordConfig


def build_client(config: AppConfig) -> APRSISClient:
    feed = config.feed
    return APRSISClient(
        host=feed.host,
        port=feed.port,
        callsign=feed.callsign,
        passcode=feed.passcode,
        filter_expression=feed.filter,
        client_name=feed.client_name,
        collection_window_seconds=feed.collection_window_seconds,
        connect_timeout_seconds=feed.connect_timeout_seconds,
        idle_timeout_seconds=feed.idle_timeout_seconds,
    )


def build_sink(config: AppConfig) -> FeatureSink:
    """Pick the configured sinks; logs only when none are configured."""
    delivery = config.delivery
    sinks: list[FeatureSink] = []
    if delivery.url:
        sinks.append(
            HttpFeatureSink(delivery.url, token=delivery.token, timeout_seconds=delivery.timeout_seconds)
        )
    if delivery.output_path:
        sinks.append(JsonlFeatureSink(delivery.output_path))
    if not sinks:
        return LoggingSink()
    if len(sinks) == 1:
        return sinks[0]
    return MultiSink(sinks)


def build_cycle(config: AppConfig, cache: StationCache | None = None) -> CollectionCycle:
    if cache is None:
        cache = StationCache(ignore=config.stations.ignore_sources)
    return CollectionCycle(
        client=build_client(config),
        cache=cache,
        sink=build_sink(config),
        record_config=RecordConfig(cot_type=config.stations.cot_type),
        max_age=timedelta(seconds=config.stations.max_age_seconds),
    )


__all__ = ["build_client", "build_sink", "build_cycle"]
