from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Sequence

from app.models.scan import ScanRecord

KEY_PREFIX = "scans"

TOTAL_KEY = f"{KEY_PREFIX}:total"
RECENT_KEY = f"{KEY_PREFIX}:recent"
RECENT_SCANS_CAP = 100


def daily_key(day: str) -> str:
    return f"{KEY_PREFIX}:daily:{day}"


def country_key(country: str) -> str:
    return f"{KEY_PREFIX}:country:{country}"


def encode_record(record: ScanRecord) -> str:
    return record.model_dump_json()


class CounterStore(ABC):
    """
    Usage counters plus a bounded, newest-first log of recent scans.
    Increments are atomic on the store side.
    """

    @abstractmethod
    def record_scan(self, record: ScanRecord, day: str, country: str) -> None:
        """Bump total/day/country counters and push the record, trimmed to the cap."""
        pass

    @abstractmethod
    def read_snapshot(
        self,
        counter_keys: Sequence[str],
        recent_limit: int,
    ) -> tuple[list[Any], list[Any]]:
        """
        Returns (counter values in key order, up to recent_limit raw recent entries).
        Values are raw store replies; callers do the parsing.
        """
        pass


def utc_today() -> date:
    return datetime.now(timezone.utc).date()
