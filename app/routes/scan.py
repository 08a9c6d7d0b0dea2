import logging
import time
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response

from app.core.config import Settings, get_settings
from app.core.errors import InternalError, InvalidEmail, ScanServiceError
from app.models.scan import ScanRecord, ScanResponse
from app.services.breach.manager import lookup_breaches
from app.services.counters.base import utc_today
from app.services.counters.manager import get_counter_store, record_scan_safely
from app.services.exposure import build_exposure_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Exposure Scanner"])

UNKNOWN_COUNTRY = "unknown"


def validate_email_param(email: Optional[str]) -> str:
    if not email or "@" not in email:
        raise InvalidEmail()
    return email


def schedule_scan_record(
    background_tasks: BackgroundTasks,
    settings: Settings,
    request: Request,
    report: ScanResponse,
) -> None:
    # Usage tracking is optional; scans work without a store
    if not settings.store_configured:
        return

    try:
        store = get_counter_store(settings)
    except Exception:
        logger.exception("Counter store unavailable, scan not recorded")
        return

    country = request.headers.get(settings.country_header) or UNKNOWN_COUNTRY
    record = ScanRecord(
        t=int(time.time() * 1000),
        c=country,
        s=report.score,
        b=report.stats.breachCount,
    )

    background_tasks.add_task(record_scan_safely, store, record, utc_today(), country)


@router.options("/scan", include_in_schema=False)
def scan_preflight():
    return Response(status_code=200)


@router.get("/scan", response_model=ScanResponse)
def scan_email(
    request: Request,
    background_tasks: BackgroundTasks,
    email: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
):
    email = validate_email_param(email)

    try:
        raw_breaches = lookup_breaches(email, settings)
        report = build_exposure_report(raw_breaches)
    except ScanServiceError:
        raise
    except Exception:
        logger.exception("Scan failed")
        raise InternalError()

    schedule_scan_record(background_tasks, settings, request, report)

    return report
