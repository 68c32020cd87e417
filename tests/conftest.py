import pytest
from fastapi.testclient import TestClient

from blog_platform.config import Settings
from blog_platform.main import create_app
from blog_platform.security import limiter


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        environment="test",
        upload_dir=tmp_path / "uploads",
        rate_limit_enabled=False,
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    limiter.reset()
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()
