"""
Runtime configuration for the blog platform.

Every option is read from the environment and has a default, so the
server starts with no configuration at all.
"""

import os
import warnings
from dataclasses import dataclass, field, replace
from pathlib import Path

BASE_DIR = Path(__file__).parent.parent

ENVIRONMENTS = ("development", "production", "test")


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class Settings:
    database_url: str = f"sqlite:///{BASE_DIR / 'data'}"
    db_name: str = "blog-platform"
    port: int = 3001
    environment: str = "development"
    upload_dir: Path = BASE_DIR / "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB
    upload_rate_limit: str = "30/minute"
    rate_limit_enabled: bool = True
    admin_token: str = ""
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from BLOG_* environment variables."""
        defaults = cls()
        environment = os.getenv("BLOG_ENV", defaults.environment).lower()
        if environment not in ENVIRONMENTS:
            raise ValueError(
                f"BLOG_ENV must be one of {', '.join(ENVIRONMENTS)}, got {environment!r}"
            )

        settings = cls(
            database_url=os.getenv("BLOG_DATABASE_URL", defaults.database_url),
            db_name=os.getenv("BLOG_DB_NAME", defaults.db_name),
            port=int(os.getenv("PORT", str(defaults.port))),
            environment=environment,
            upload_dir=Path(os.getenv("BLOG_UPLOAD_DIR", str(defaults.upload_dir))),
            max_upload_bytes=int(
                os.getenv("BLOG_MAX_UPLOAD_BYTES", str(defaults.max_upload_bytes))
            ),
            upload_rate_limit=os.getenv("BLOG_UPLOAD_RATE_LIMIT", defaults.upload_rate_limit),
            rate_limit_enabled=environment != "test",
            admin_token=os.getenv("BLOG_ADMIN_TOKEN", ""),
            cors_origins=_split_csv(os.getenv("BLOG_CORS_ORIGINS", "*")),
        )

        if settings.is_production and not settings.admin_token:
            warnings.warn(
                "BLOG_ADMIN_TOKEN not set - write endpoints are unauthenticated"
            )

        return settings

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def debug(self) -> bool:
        return self.environment == "development"

    @property
    def sqlalchemy_url(self) -> str:
        """Resolve the connection URL for the configured database name.

        A SQLite URL names a directory holding one file per database; any
        other URL is treated as a server URL and the name is appended as
        the database path. In-memory SQLite is passed through untouched.
        """
        url = self.database_url
        if url in ("sqlite://", "sqlite:///:memory:"):
            return url
        if url.startswith("sqlite:///"):
            directory = Path(url[len("sqlite:///"):])
            return f"sqlite:///{directory / (self.db_name + '.db')}"
        return f"{url.rstrip('/')}/{self.db_name}"

    def with_overrides(self, **changes) -> "Settings":
        return replace(self, **changes)
