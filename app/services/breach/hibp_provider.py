import logging
from urllib.parse import quote

import requests

from app.core.config import Settings
from app.core.errors import ConfigMissing, InternalError, RateLimited, UpstreamError
from app.services.breach.base import BreachGateway

logger = logging.getLogger(__name__)


class HIBPGateway(BreachGateway):
    """
    Have I Been Pwned v3 breachedaccount lookup.
    Full (non-truncated) records are requested so data classes are present.
    """

    def __init__(self, settings: Settings):
        if not settings.hibp_api_key:
            raise ConfigMissing("API key not configured")

        self.base_url = settings.hibp_api_base
        self.timeout = settings.timeout_seconds
        self.headers = {
            "hibp-api-key": settings.hibp_api_key,
            "user-agent": settings.hibp_user_agent,
        }

    def lookup(self, email: str) -> list[dict]:
        url = f"{self.base_url}/breachedaccount/{quote(email, safe='')}"

        try:
            resp = requests.get(
                url,
                headers=self.headers,
                params={"truncateResponse": "false"},
                timeout=self.timeout,
            )
        except requests.RequestException:
            logger.exception("HIBP request failed")
            raise InternalError()

        # ---------- NO BREACH ----------
        if resp.status_code == 404:
            return []

        # ---------- RATE LIMITED ----------
        if resp.status_code == 429:
            logger.warning("HIBP rate limit hit")
            raise RateLimited()

        if resp.status_code != 200:
            logger.error("HIBP returned status %s", resp.status_code)
            raise UpstreamError(resp.status_code)

        try:
            breaches = resp.json()
        except ValueError:
            logger.error("HIBP returned a non-JSON body")
            raise UpstreamError(resp.status_code)

        if not isinstance(breaches, list):
            logger.error("HIBP returned %s instead of a list", type(breaches).__name__)
            raise UpstreamError(resp.status_code)

        return breaches
