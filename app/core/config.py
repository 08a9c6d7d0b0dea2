from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

HIBP_API_BASE = "https://haveibeenpwned.com/api/v3"
HIBP_USER_AGENT = "MyBeacon-Privacy-Scanner"
COUNTRY_HEADER = "x-vercel-ip-country"
DEFAULT_TIMEOUT_SECONDS = 8.0


def _env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration, read once from the environment.

    Required values are allowed to be missing here; the gateway and
    store factories reject them before any outbound call is made.
    """

    hibp_api_key: str | None = None
    store_url: str | None = None
    store_token: str | None = None
    hibp_api_base: str = HIBP_API_BASE
    hibp_user_agent: str = HIBP_USER_AGENT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    country_header: str = COUNTRY_HEADER

    @property
    def store_configured(self) -> bool:
        return bool(self.store_url and self.store_token)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            hibp_api_key=_env("HIBP_API_KEY"),
            store_url=_env("UPSTASH_REDIS_REST_URL"),
            store_token=_env("UPSTASH_REDIS_REST_TOKEN"),
            hibp_api_base=_env("HIBP_API_BASE", HIBP_API_BASE).rstrip("/"),
            hibp_user_agent=_env("HIBP_USER_AGENT", HIBP_USER_AGENT),
            timeout_seconds=_env_float("HTTP_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
            country_header=_env("COUNTRY_HEADER", COUNTRY_HEADER).lower(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
