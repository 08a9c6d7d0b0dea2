import logging
from datetime import date

from app.core.config import Settings
from app.core.errors import ConfigMissing
from app.models.scan import ScanRecord
from app.services.counters.base import CounterStore
from app.services.counters.redis_store import RedisCounterStore, is_redis_url
from app.services.counters.upstash import UpstashCounterStore

logger = logging.getLogger(__name__)


def get_counter_store(settings: Settings) -> CounterStore:
    if not settings.store_configured:
        raise ConfigMissing("Redis not configured")

    if is_redis_url(settings.store_url):
        return RedisCounterStore.from_url(
            settings.store_url,
            settings.store_token,
            settings.timeout_seconds,
        )
    return UpstashCounterStore(
        settings.store_url,
        settings.store_token,
        settings.timeout_seconds,
    )


def record_scan_safely(
    store: CounterStore,
    record: ScanRecord,
    day: date,
    country: str,
) -> None:
    """
    Best-effort usage write, run after the scan response has gone out.
    Failures are logged and dropped; they never reach the caller.
    """
    try:
        store.record_scan(record, day.isoformat(), country)
    except Exception:
        logger.exception("Counter store write failed")
