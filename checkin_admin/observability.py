from __future__ import annotations

import logging
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from .errors import CheckInAdminError, OutOfWindow, StorageFailure


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


class RequestTimingLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one key=value line per request and adds an 'X-Process-Time-Ms' header."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self.logger = logging.getLogger("request")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers["X-Process-Time-Ms"] = str(duration_ms)

        client_ip = request.client.host if request.client else "?"
        self.logger.info(
            "method=%s path=%s status=%s duration_ms=%s ip=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            client_ip,
        )
        return response


def _error_payload(status: int, message: str, request: Request) -> dict:
    return {
        "ok": False,
        "error": {
            "status": status,
            "message": message,
            "path": request.url.path,
        },
    }


def add_exception_handlers(app: FastAPI) -> None:
    """Register one error payload shape for domain, HTTP and unexpected exceptions."""

    @app.exception_handler(CheckInAdminError)
    async def domain_exception_handler(request: Request, exc: CheckInAdminError):
        payload = _error_payload(exc.status_code, exc.message, request)
        if isinstance(exc, OutOfWindow):
            payload["error"]["reason"] = exc.reason
        if isinstance(exc, StorageFailure):
            logging.getLogger("error").warning("Storage failure on %s: %r", request.url.path, exc.__cause__)
        return JSONResponse(status_code=exc.status_code, content=payload)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        message = exc.detail if isinstance(exc.detail, str) else ""
        return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.status_code, message, request))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        # Do not leak internals.
        logging.getLogger("error").exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content=_error_payload(500, "Internal server error", request))
