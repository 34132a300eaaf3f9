"""Request tracing, timing and response-header middleware for the Estimates API."""
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("estimates-api.middleware")

SKIP_LOG_PATHS = {"/health", "/api/health"}
SLOW_REQUEST_MS = 1000.0


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an X-Request-ID (the caller's, or a new uuid4),
    reports the handling time in X-Process-Time, and writes one structured
    log line per request. Health checks are not logged; server errors and
    slow requests are logged as warnings.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        path = request.url.path
        if path in SKIP_LOG_PATHS:
            return response

        level = logging.INFO
        if response.status_code >= 500 or duration_ms >= SLOW_REQUEST_MS:
            level = logging.WARNING
        logger.log(
            level,
            f"{request.method} {path} -> {response.status_code}",
            extra={
                "http_method": request.method,
                "http_path": path,
                "http_status": response.status_code,
                "request_id": request_id,
                "duration_ms": duration_ms,
            },
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to every response."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response
