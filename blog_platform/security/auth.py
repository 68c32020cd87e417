"""
Optional bearer-token gate for the write endpoints.

With no admin token configured the API behaves as an open authoring
surface. Once a token is set, every create/update/delete request must
carry it in the Authorization header.
"""

import logging
import secrets

from fastapi import Request

from blog_platform.errors import UnauthorizedError

logger = logging.getLogger(__name__)


def extract_bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def require_admin(request: Request) -> None:
    """Dependency that rejects write requests without the admin token."""
    expected = request.app.state.settings.admin_token
    if not expected:
        return

    # Constant-time comparison
    if not secrets.compare_digest(extract_bearer_token(request).encode(), expected.encode()):
        logger.warning(f"Rejected unauthenticated {request.method} {request.url.path}")
        raise UnauthorizedError("Unauthorized")
