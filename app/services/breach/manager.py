from app.core.config import Settings
from app.services.breach.base import BreachGateway
from app.services.breach.hibp_provider import HIBPGateway


def get_breach_gateway(settings: Settings) -> BreachGateway:
    """
    Returns a new gateway instance per request.
    Raises ConfigMissing before any network call if the API key is absent.
    """
    return HIBPGateway(settings)


def lookup_breaches(email: str, settings: Settings) -> list[dict]:
    gateway = get_breach_gateway(settings)
    return gateway.lookup(email)
