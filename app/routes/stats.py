import logging

from fastapi import APIRouter, Depends, Response

from app.core.config import Settings, get_settings
from app.core.errors import InternalError, ScanServiceError
from app.models.stats import StatsResponse
from app.services.counters.base import utc_today
from app.services.counters.manager import get_counter_store
from app.services.stats import collect_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Stats"])


@router.options("/stats", include_in_schema=False)
def stats_preflight():
    return Response(status_code=200)


@router.get("/stats", response_model=StatsResponse)
def get_stats(settings: Settings = Depends(get_settings)):
    try:
        store = get_counter_store(settings)
        return collect_stats(store, utc_today())
    except ScanServiceError:
        raise
    except Exception:
        logger.exception("Stats error")
        raise InternalError("Failed to fetch stats")
