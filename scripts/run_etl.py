"""Run the APRS-IS to GeoJSON feature ETL."""

from __future__ import annotations

import argparse
import logging
import sys

from aprs_etl.app import build_cycle
from aprs_etl.config import load_config
from aprs_etl.data.poller import APRSPoller
from aprs_etl.logging_setup import configure_logging

logger = logging.getLogger("aprs_etl.run")


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default="config/config.yaml")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single collection cycle and exit",
    )
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ValueError as exc:
        print(f"config_error: {exc}", file=sys.stderr)
        return 2

    configure_logging(config.log)
    logger.info(
        "etl_config host=%s port=%s callsign=%s filter=%s window=%ss interval=%ss",
        config.feed.host,
        config.feed.port,
        config.feed.callsign,
        config.feed.filter,
        config.feed.collection_window_seconds,
        config.cycle.resend_interval_seconds,
    )

    cycle = build_cycle(config)
    if args.once:
        result = cycle.run()
        return 1 if result.error else 0

    poller = APRSPoller(cycle, resend_interval_seconds=config.cycle.resend_interval_seconds)
    poller.start()
    try:
        poller.join()
    except KeyboardInterrupt:
        logger.info("etl_stopping")
        poller.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
