"""
Security headers for the JSON API and the uploaded-image files.

Headers implemented:
- X-Content-Type-Options
- X-Frame-Options
- Referrer-Policy
- Cross-Origin-Resource-Policy
- Cache-Control (no-store for API responses, immutable for processed images)
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


class APISecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses.

    API responses are never cached and may not be embedded cross-origin.
    Processed images are immutable (every upload gets a fresh filename)
    and are served to browser clients on other origins.
    """

    def __init__(self, app, uploads_path: str = "/uploads/"):
        super().__init__(app)
        self.uploads_path = uploads_path

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"

        # Control referrer information leakage
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if request.url.path.startswith(self.uploads_path):
            response.headers["Cache-Control"] = "public, max-age=31536000, immutable"
            response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"
        else:
            response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
            if "Cache-Control" not in response.headers:
                response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"

        return response
