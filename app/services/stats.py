import json
import logging
from datetime import date, timedelta
from typing import Any, Iterable

from app.models.stats import StatsResponse
from app.services.counters.base import CounterStore, TOTAL_KEY, country_key, daily_key

logger = logging.getLogger(__name__)

TRACKED_COUNTRIES = ("US", "GB", "CA", "AU", "DE")
RECENT_SCANS_LIMIT = 20


def parse_counter(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def parse_recent_scans(entries: Iterable[Any]) -> list[dict]:
    scans = []
    dropped = 0

    for entry in entries:
        try:
            decoded = json.loads(entry)
        except (TypeError, ValueError):
            dropped += 1
            continue

        if not isinstance(decoded, dict):
            dropped += 1
            continue

        scans.append(decoded)

    if dropped:
        logger.debug("Dropped %s unreadable recent-scan entries", dropped)
    return scans


def collect_stats(store: CounterStore, today: date) -> StatsResponse:
    yesterday = today - timedelta(days=1)

    keys = [
        TOTAL_KEY,
        daily_key(today.isoformat()),
        daily_key(yesterday.isoformat()),
    ]
    keys.extend(country_key(code) for code in TRACKED_COUNTRIES)

    counters, recent = store.read_snapshot(keys, RECENT_SCANS_LIMIT)
    values = [parse_counter(v) for v in counters]
    values += [0] * (len(keys) - len(values))

    total, today_count, yesterday_count = values[:3]
    countries = dict(zip(TRACKED_COUNTRIES, values[3:]))

    return StatsResponse(
        totalScans=total,
        todayScans=today_count,
        yesterdayScans=yesterday_count,
        countries=countries,
        recentScans=parse_recent_scans(recent),
    )
