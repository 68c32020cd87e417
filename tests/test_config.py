from pathlib import Path

import pytest

from blog_platform.config import Settings

ENV_VARS = (
    "BLOG_DATABASE_URL", "BLOG_DB_NAME", "PORT", "BLOG_ENV", "BLOG_UPLOAD_DIR",
    "BLOG_MAX_UPLOAD_BYTES", "BLOG_UPLOAD_RATE_LIMIT", "BLOG_ADMIN_TOKEN", "BLOG_CORS_ORIGINS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_need_no_environment():
    settings = Settings.from_env()
    assert settings.port == 3001
    assert settings.db_name == "blog-platform"
    assert settings.environment == "development"
    assert settings.debug is True
    assert settings.rate_limit_enabled is True
    assert settings.admin_token == ""
    assert settings.cors_origins == ["*"]


def test_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("BLOG_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("BLOG_ENV", "TEST")
    monkeypatch.setenv("BLOG_UPLOAD_DIR", str(tmp_path))
    monkeypatch.setenv("BLOG_MAX_UPLOAD_BYTES", "2048")
    monkeypatch.setenv("BLOG_UPLOAD_RATE_LIMIT", "5/second")
    monkeypatch.setenv("BLOG_ADMIN_TOKEN", "token")
    monkeypatch.setenv("BLOG_CORS_ORIGINS", "https://a.example, https://b.example,")

    settings = Settings.from_env()

    assert settings.port == 8080
    assert settings.environment == "test"
    assert settings.rate_limit_enabled is False
    assert settings.upload_dir == Path(tmp_path)
    assert settings.max_upload_bytes == 2048
    assert settings.upload_rate_limit == "5/second"
    assert settings.admin_token == "token"
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_unknown_environment_is_rejected(monkeypatch):
    monkeypatch.setenv("BLOG_ENV", "staging")
    with pytest.raises(ValueError, match="BLOG_ENV"):
        Settings.from_env()


def test_production_without_token_warns(monkeypatch):
    monkeypatch.setenv("BLOG_ENV", "production")
    with pytest.warns(UserWarning, match="BLOG_ADMIN_TOKEN"):
        settings = Settings.from_env()
    assert settings.is_production


@pytest.mark.parametrize("url, name, expected", [
    ("sqlite://", "blog", "sqlite://"),
    ("sqlite:///:memory:", "blog", "sqlite:///:memory:"),
    ("sqlite:///var/data", "blog", f"sqlite:///{Path('var/data') / 'blog.db'}"),
    ("postgresql://user@db:5432/", "blog", "postgresql://user@db:5432/blog"),
])
def test_sqlalchemy_url(url, name, expected):
    assert Settings(database_url=url, db_name=name).sqlalchemy_url == expected


def test_with_overrides_leaves_original_alone():
    base = Settings()
    changed = base.with_overrides(port=1)
    assert changed.port == 1
    assert base.port == 3001
