"""Configuration loader for the APRS-IS feed ETL."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Any

from dotenv import load_dotenv
import yaml


@dataclass(frozen=True)
class FeedConfig:
    """APRS-IS connection configuration."""

    host: str
    port: int
    callsign: str
    passcode: str
    filter: str | None
    client_name: str
    collection_window_seconds: float
    connect_timeout_seconds: float
    idle_timeout_seconds: float


@dataclass(frozen=True)
class StationConfig:
    """Station cache and output record configuration."""

    cot_type: str
    ignore_sources: tuple[str, ...]
    max_age_seconds: float


@dataclass(frozen=True)
class CycleConfig:
    resend_interval_seconds: float


@dataclass(frozen=True)
class DeliveryConfig:
    """Where each cycle's FeatureCollection is sent."""

    url: str | None
    token: str
    output_path: str | None
    timeout_seconds: float


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str
    log_dir: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    feed: FeedConfig
    stations: StationConfig
    cycle: CycleConfig
    delivery: DeliveryConfig
    log: LoggingConfig


def _require_key(mapping: dict[str, Any], key: str, context: str) -> Any:
    if key not in mapping:
        raise ValueError(f"Missing required key '{key}' in {context} config")
    return mapping[key]


def _section(data: dict[str, Any], name: str, required: bool = True) -> dict[str, Any]:
    if required:
        section = _require_key(data, name, name)
    else:
        section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' config must be a mapping")
    return section


def load_config(path: str = "config/config.yaml") -> AppConfig:
    """Load application configuration from a YAML file."""
    load_dotenv()
    passcode = os.environ.get("APRS_PASSCODE", "-1")
    delivery_token = os.environ.get("DELIVERY_TOKEN", "")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ValueError(f"Config file not found: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping at the top level")

    feed_section = _section(data, "feed")
    stations_section = _section(data, "stations", required=False)
    cycle_section = _section(data, "cycle", required=False)
    delivery_section = _section(data, "delivery", required=False)
    logging_section = _section(data, "logging")

    feed = FeedConfig(
        host=_require_key(feed_section, "host", "feed"),
        port=int(_require_key(feed_section, "port", "feed")),
        callsign=_require_key(feed_section, "callsign", "feed"),
        passcode=str(passcode),
        filter=feed_section.get("filter") or None,
        client_name=feed_section.get("client_name", "aprs-etl"),
        collection_window_seconds=feed_section.get("collection_window_seconds", 300),
        connect_timeout_seconds=feed_section.get("connect_timeout_seconds", 30),
        idle_timeout_seconds=feed_section.get("idle_timeout_seconds", 30),
    )

    ignore_sources = stations_section.get("ignore_sources") or []
    if not isinstance(ignore_sources, list):
        raise ValueError("'stations.ignore_sources' must be a list")

    stations = StationConfig(
        cot_type=stations_section.get("cot_type", "a-f-G-I-U-T-r"),
        ignore_sources=tuple(str(source) for source in ignore_sources),
        max_age_seconds=stations_section.get("max_age_seconds", 3600),
    )

    cycle = CycleConfig(
        resend_interval_seconds=cycle_section.get("resend_interval_seconds", 20),
    )

    delivery = DeliveryConfig(
        url=delivery_section.get("url") or None,
        token=delivery_token,
        output_path=delivery_section.get("output_path") or None,
        timeout_seconds=delivery_section.get("timeout_seconds", 10),
    )

    logging = LoggingConfig(
        level=_require_key(logging_section, "level", "logging"),
        log_dir=_require_key(logging_section, "log_dir", "logging"),
    )

    return AppConfig(feed=feed, stations=stations, cycle=cycle, delivery=delivery, log=logging)
