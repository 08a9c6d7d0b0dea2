from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class ScanServiceError(Exception):
    """Terminal request error. Nothing in the service retries these."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message}


class InvalidEmail(ScanServiceError):
    status_code = 400
    default_message = "Valid email required"


class RateLimited(ScanServiceError):
    status_code = 429
    default_message = "Rate limited. Please try again in a moment."


class UpstreamError(ScanServiceError):
    status_code = 502
    default_message = "Upstream API error"

    def __init__(self, upstream_status: int, message: str | None = None):
        self.upstream_status = upstream_status
        super().__init__(message)

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, "status": self.upstream_status}


class ConfigMissing(ScanServiceError):
    status_code = 500
    default_message = "Service not configured"


class InternalError(ScanServiceError):
    status_code = 500


HTTP_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


async def scan_service_error_handler(request: Request, exc: ScanServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = HTTP_ERROR_MESSAGES.get(exc.status_code, str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ScanServiceError, scan_service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
