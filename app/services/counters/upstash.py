from __future__ import annotations

import logging
from typing import Any, Sequence

import requests

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

logger = logging.getLogger(__name__)


class UpstashCommandError(RuntimeError):
    pass


class UpstashCounterStore(CounterStore):
    """
    Upstash Redis over its REST API.

    Every call goes through POST {url}/pipeline with a JSON array of commands;
    the reply is one {"result": ...} or {"error": ...} object per command.
    """

    def __init__(self, url: str, token: str, timeout: float = 8.0):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def pipeline(self, commands: list[list[str]]) -> list[dict[str, Any]]:
        resp = requests.post(
            f"{self.url}/pipeline",
            headers=self.headers,
            json=commands,
            timeout=self.timeout,
        )
        resp.raise_for_status()

        replies = resp.json()
        if not isinstance(replies, list):
            raise UpstashCommandError("Unexpected pipeline reply")
        return replies

    def record_scan(self, record: ScanRecord, day: str, country: str) -> None:
        replies = self.pipeline([
            ["INCR", TOTAL_KEY],
            ["INCR", daily_key(day)],
            ["INCR", country_key(country)],
            ["LPUSH", RECENT_KEY, encode_record(record)],
            ["LTRIM", RECENT_KEY, "0", str(RECENT_SCANS_CAP - 1)],
        ])

        errors = [r["error"] for r in replies if isinstance(r, dict) and r.get("error")]
        if errors:
            raise UpstashCommandError("; ".join(str(e) for e in errors))

    def read_snapshot(
        self,
        counter_keys: Sequence[str],
        recent_limit: int,
    ) -> tuple[list[Any], list[Any]]:
        commands = [["GET", key] for key in counter_keys]
        commands.append(["LRANGE", RECENT_KEY, "0", str(recent_limit - 1)])

        replies = self.pipeline(commands)
        results = [_result(replies, i) for i in range(len(commands))]

        recent = results[-1]
        if not isinstance(recent, list):
            recent = []

        return results[:-1], recent


def _result(replies: list[Any], index: int) -> Any:
    if index >= len(replies):
        return None
    reply = replies[index]
    if not isinstance(reply, dict):
        return None
    if reply.get("error"):
        logger.warning("Upstash command %s failed: %s", index, reply["error"])
        return None
    return reply.get("result")
