"""Outbound sinks for the per-cycle FeatureCollection."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Protocol, Sequence

import requests

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Raised when a FeatureCollection could not be delivered."""


class FeatureSink(Protocol):
    def submit(self, collection: dict[str, Any]) -> None:
        ...


class HttpFeatureSink:
    """POSTs each collection as JSON to a consuming service."""

    def __init__(self, url: str, token: str = "", timeout_seconds: float = 10) -> None:
        self._url = url
        self._token = token
        self._timeout_seconds = timeout_seconds

    def submit(self, collection: dict[str, Any]) -> None:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            response = requests.post(
                self._url,
                data=json.dumps(collection, default=str),
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise DeliveryError(f"Delivery request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            body_text = response.text.strip()
            detail = f"Status {response.status_code}"
            if body_text:
                detail = f"{detail}, Body: {body_text}"
            raise DeliveryError(f"Delivery request failed: {detail}")


class JsonlFeatureSink:
    """Appends each collection to a JSON Lines file with a UTC timestamp."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def submit(self, collection: dict[str, Any]) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "collection": collection,
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        except OSError as exc:
            raise DeliveryError(f"Could not write {self._path}: {exc}") from exc


class MultiSink:
    """Fans a collection out to several sinks; every sink is attempted."""

    def __init__(self, sinks: Sequence[FeatureSink]) -> None:
        self._sinks = list(sinks)

    def submit(self, collection: dict[str, Any]) -> None:
        errors = []
        for sink in self._sinks:
            try:
                sink.submit(collection)
            except DeliveryError as exc:
                logger.warning("sink_failed sink=%s error=%s", type(sink).__name__, exc)
                errors.append(str(exc))
        if errors:
            raise DeliveryError("; ".join(errors))


class LoggingSink:
    """Fallback sink that only logs the feature count."""

    def submit(self, collection: dict[str, Any]) -> None:
        logger.info("collection_ready features=%d", len(collection.get("features", [])))


__all__ = [
    "DeliveryError",
    "FeatureSink",
    "HttpFeatureSink",
    "JsonlFeatureSink",
    "MultiSink",
    "LoggingSink",
]
