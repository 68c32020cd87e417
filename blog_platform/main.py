import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from blog_platform.config import Settings
from blog_platform.db.database import init_db, make_engine, make_session_factory
from blog_platform.errors import BlogError
from blog_platform.routes import health, posts, uploads
from blog_platform.security import (
    APISecurityHeadersMiddleware,
    RequestLogMiddleware,
    configure_limiter,
    rate_limit_exceeded_handler,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Console logging; verbose in development."""
    level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("blog_platform").setLevel(level)


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(BlogError)
    async def blog_error(request: Request, exc: BlogError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = first.get("loc", ())
            if loc and loc[0] in ("body", "query", "path", "form"):
                loc = loc[1:]
            field = ".".join(str(part) for part in loc)
            message = f"Invalid {field}: {first.get('msg')}" if field else first.get("msg")
        else:
            message = "Invalid request"
        logger.info(f"Rejected {request.method} {request.url.path}: {message}")
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Application factory. Settings default to the environment."""
    settings = settings or Settings.from_env()
    configure_logging(settings)

    app = FastAPI(
        title="Blog Platform",
        description="Blog content management API",
        debug=settings.debug,
    )
    app.state.settings = settings

    # Database
    engine = make_engine(settings.sqlalchemy_url)
    init_db(engine)
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    # Rate limiting for uploads
    configure_limiter(app, settings.rate_limit_enabled, settings.upload_rate_limit)

    # Middleware
    app.add_middleware(APISecurityHeadersMiddleware)
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Processed images
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.upload_dir),
        name="uploads",
    )

    # Include routes
    app.include_router(health.router)
    app.include_router(uploads.router)
    app.include_router(posts.router)

    logger.info(
        f"Application created: env={settings.environment} "
        f"db={settings.db_name} uploads={settings.upload_dir}"
    )
    if not settings.admin_token:
        logger.info("Admin token not configured - write endpoints are open")

    return app
