"""
Per-client rate limiting for the upload endpoints.

The routes are decorated once with the shared slowapi limiter, but each
application keeps its own limit, on/off switch and counter namespace on
``app.state.rate_limits``. The `bind_rate_limits` dependency makes the
current app's values visible to the limit and exemption callbacks for the
duration of the request.
"""

import logging
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_LIMIT = "30/minute"


@dataclass(frozen=True)
class RateLimits:
    enabled: bool = True
    upload_limit: str = DEFAULT_UPLOAD_LIMIT
    namespace: str = field(default_factory=lambda: uuid.uuid4().hex)


_active: ContextVar[Optional[RateLimits]] = ContextVar("rate_limits", default=None)


def client_key(request: Request) -> str:
    """Counter key: the client address, scoped to the app serving it."""
    rate_limits = getattr(request.app.state, "rate_limits", None)
    namespace = rate_limits.namespace if rate_limits else "default"
    return f"{namespace}:{get_remote_address(request)}"


limiter = Limiter(key_func=client_key)


def upload_limit() -> str:
    rate_limits = _active.get()
    return rate_limits.upload_limit if rate_limits else DEFAULT_UPLOAD_LIMIT


def rate_limiting_disabled() -> bool:
    rate_limits = _active.get()
    return rate_limits is not None and not rate_limits.enabled


async def bind_rate_limits(request: Request) -> None:
    """Dependency exposing this app's limits to the limiter callbacks."""
    _active.set(request.app.state.rate_limits)


def configure_limiter(app: FastAPI, enabled: bool, upload_rate_limit: str) -> Limiter:
    app.state.rate_limits = RateLimits(
        enabled=enabled,
        upload_limit=upload_rate_limit or DEFAULT_UPLOAD_LIMIT,
    )
    app.state.limiter = limiter
    return limiter


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(
        f"Rate limit exceeded: ip={get_remote_address(request)} "
        f"path={request.url.path} limit={exc.detail}"
    )
    return JSONResponse(status_code=429, content={"error": "Rate limit exceeded"})
