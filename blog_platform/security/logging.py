"""Request Logging Middleware"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger("blog_platform.requests")


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


class RequestLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, skip_paths: tuple[str, ...] = ("/api/health",)):
        super().__init__(app)
        self.skip_paths = skip_paths

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        path = request.url.path
        if path in self.skip_paths and response.status_code < 400:
            return response

        message = (
            f"{request.method} {path} -> {response.status_code} "
            f"in {duration_ms:.1f}ms ip={get_client_ip(request)}"
        )
        if response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)
        return response
