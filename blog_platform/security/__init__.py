"""Security and request middleware for the blog platform."""

from blog_platform.security.auth import require_admin
from blog_platform.security.headers import APISecurityHeadersMiddleware
from blog_platform.security.logging import RequestLogMiddleware
from blog_platform.security.rate_limit import (
    bind_rate_limits,
    configure_limiter,
    limiter,
    rate_limit_exceeded_handler,
    rate_limiting_disabled,
    upload_limit,
)

__all__ = [
    "require_admin",
    "APISecurityHeadersMiddleware",
    "RequestLogMiddleware",
    "bind_rate_limits",
    "configure_limiter",
    "limiter",
    "rate_limit_exceeded_handler",
    "rate_limiting_disabled",
    "upload_limit",
]
