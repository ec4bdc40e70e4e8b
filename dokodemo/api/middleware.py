"""HTTP middleware for request logging and tracing."""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.logging import generate_request_id, get_logger, request_id_var

logger = get_logger("dokodemo.api.requests")

QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware для логирования HTTP запросов.

    Request ID берётся из заголовка X-Request-ID (если его выставил reverse
    proxy) или генерируется, и попадает во все логи запроса.

    Пример лога (JSON):
    {
        "level": "INFO",
        "logger": "dokodemo.api.requests",
        "message": "Request completed",
        "request_id": "abc-123",
        "extra": {"method": "POST", "path": "/api/v1/entries", "status": 201, "duration_ms": 12}
    }
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process the request and log details."""
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        token = request_id_var.set(request_id)
        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "Request failed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": int((time.perf_counter() - start_time) * 1000),
                    "client_ip": client_ip,
                },
                exc_info=True,
            )
            request_id_var.reset(token)
            raise

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id

        if request.url.path not in QUIET_PATHS:
            level = "info" if response.status_code < 400 else "warning"
            getattr(logger, level)(
                "Request completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": duration_ms,
                    "client_ip": client_ip,
                },
            )

        request_id_var.reset(token)
        return response
