import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

SERVICE_NAME = "mybeacon-api"
VERSION = "1.0.0"

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(message)s"
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="MyBeacon Exposure API",
    version=VERSION,
)

from app.core.errors import register_error_handlers
register_error_handlers(app)

from app.middleware.security import SecurityLoggingMiddleware
app.add_middleware(SecurityLoggingMiddleware)


@app.on_event("startup")
def startup():
    from app.core.config import get_settings

    settings = get_settings()
    if not settings.hibp_api_key:
        logger.warning("HIBP_API_KEY not set, scans will fail")
    if not settings.store_configured:
        logger.warning("Counter store not configured, usage stats disabled")

    logger.info("MyBeacon API starting up")


from app.routes.scan import router as scan_router
from app.routes.stats import router as stats_router

app.include_router(scan_router)
app.include_router(stats_router)


@app.get("/health")
def health_check():
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": VERSION,
    }
