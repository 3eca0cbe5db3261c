"""
Access Logging Middleware

Logs every API request (method, path, status, duration) through the
custom logger and tags responses with an X-Request-ID for correlation.
Requests slower than SLOW_REQUEST_SECONDS are flagged as slow.
"""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from propfind.core.config import settings
from propfind.logging import get_logger

logger = get_logger("propfind.access")

SKIPPED_PATHS = ["/", "/health", "/docs", "/openapi.json"]


class AccessLoggingMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, enabled: bool = True, slow_threshold: float = settings.SLOW_REQUEST_SECONDS):
        super().__init__(app)
        self.enabled = enabled
        self.slow_threshold = slow_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled or request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "Unhandled error",
                method=request.method,
                path=request.url.path,
                duration=time.perf_counter() - start_time,
                request_id=request_id,
                exc_info=True,
            )
            raise

        duration = time.perf_counter() - start_time
        logger.request(
            "API request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration=duration,
            request_id=request_id,
            ip_address=self._get_client_ip(request),
        )
        if duration > self.slow_threshold:
            logger.slow("Slow request", duration=duration, threshold=self.slow_threshold,
                        path=request.url.path, request_id=request_id)

        response.headers["X-Request-ID"] = request_id
        return response

    def _get_client_ip(self, request: Request) -> str:
        """First X-Forwarded-For hop when proxied, otherwise the peer address."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"
