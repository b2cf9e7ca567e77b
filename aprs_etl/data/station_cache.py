"""In-memory table of the latest report per APRS station."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import threading
from typing import Callable, Iterable

from aprs_etl.logic.frame_parser import StationReport

DEFAULT_MAX_AGE = timedelta(hours=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    """Latest report for a station plus when it was ingested."""

    report: StationReport
    last_seen: datetime


class StationCache:
    """Latest StationReport per identifier with age-based eviction.

    ``last_seen`` comes from the injected clock at ingestion time; the
    feed-supplied timestamp on a report is never used for freshness.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        ignore: Iterable[str] = (),
    ) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._ignored: frozenset[str] = frozenset()
        self._lock = threading.Lock()
        self.apply_ignore_list(ignore)

    def apply_ignore_list(self, identifiers: Iterable[str]) -> None:
        """Block these identifiers from future upserts.

        Entries already cached are left alone and age out normally.
        """
        self._ignored = frozenset(identifiers)

    def is_ignored(self, identifier: str) -> bool:
        return identifier in self._ignored

    def upsert(self, report: StationReport, now: datetime | None = None) -> bool:
        """Insert or replace the entry for ``report.identifier``.

        Returns False when the identifier is on the ignore list.
        """
        if self.is_ignored(report.identifier):
            return False
        seen_at = now if now is not None else self._clock()
        with self._lock:
            self._entries[report.identifier] = CacheEntry(report=report, last_seen=seen_at)
        return True

    def prune_older_than(
        self,
        now: datetime | None = None,
        max_age: timedelta = DEFAULT_MAX_AGE,
    ) -> int:
        """Drop entries last seen strictly before ``now - max_age``; returns the count removed."""
        cutoff = (now if now is not None else self._clock()) - max_age
        with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.last_seen < cutoff]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def snapshot(self) -> tuple[CacheEntry, ...]:
        """Return an immutable copy of every current entry."""
        with self._lock:
            return tuple(self._entries.values())

    def get(self, identifier: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(identifier)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._entries


__all__ = ["DEFAULT_MAX_AGE", "CacheEntry", "StationCache", "utc_now"]
