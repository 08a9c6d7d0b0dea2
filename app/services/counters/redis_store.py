from __future__ import annotations

from typing import Any, Sequence

from redis import Redis

from app.models.scan import ScanRecord
from app.services.counters.base import (
    RECENT_KEY,
    RECENT_SCANS_CAP,
    TOTAL_KEY,
    CounterStore,
    country_key,
    daily_key,
    encode_record,
)

REDIS_SCHEMES = ("redis://", "rediss://")

_redis_clients: dict[str, Redis] = {}


def is_redis_url(url: str) -> bool:
    return url.lower().startswith(REDIS_SCHEMES)


def get_redis(url: str, token: str | None = None, timeout: float = 2.0) -> Redis:
    client = _redis_clients.get(url)
    if client is None:
        # A password embedded in the URL takes precedence over the token
        client = Redis.from_url(
            url,
            password=token,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout,
        )
        _redis_clients[url] = client
    return client


class RedisCounterStore(CounterStore):
    """Counter store speaking the native Redis protocol (redis:// or rediss://)."""

    def __init__(self, client: Redis):
        self.redis = client

    @classmethod
    def from_url(cls, url: str, token: str | None = None, timeout: float = 2.0) -> "RedisCounterStore":
        return cls(get_redis(url, token, timeout))

    def record_scan(self, record: ScanRecord, day: str, country: str) -> None:
        pipe = self.redis.pipeline(transaction=False)
        pipe.incr(TOTAL_KEY)
        pipe.incr(daily_key(day))
        pipe.incr(country_key(country))
        pipe.lpush(RECENT_KEY, encode_record(record))
        pipe.ltrim(RECENT_KEY, 0, RECENT_SCANS_CAP - 1)
        pipe.execute()

    def read_snapshot(
        self,
        counter_keys: Sequence[str],
        recent_limit: int,
    ) -> tuple[list[Any], list[Any]]:
        pipe = self.redis.pipeline(transaction=False)
        for key in counter_keys:
            pipe.get(key)
        pipe.lrange(RECENT_KEY, 0, recent_limit - 1)
        # Per-command errors (e.g. WRONGTYPE) come back as values and read as absent
        *counters, recent = pipe.execute(raise_on_error=False)
        counters = [None if isinstance(value, Exception) else value for value in counters]
        if isinstance(recent, Exception) or not recent:
            recent = []
        return counters, list(recent)
