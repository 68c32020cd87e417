"""Error types raised by the services and rendered by the HTTP layer."""


class BlogError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BlogError):
    status_code = 400


class UnauthorizedError(BlogError):
    status_code = 401


class NotFoundError(BlogError):
    status_code = 404


class SlugConflictError(BlogError):
    status_code = 409

    def __init__(self, slug: str):
        super().__init__(f"A post with slug '{slug}' already exists")
        self.slug = slug


class PayloadTooLargeError(BlogError):
    status_code = 413
