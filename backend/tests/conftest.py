import pytest
from fastapi.testclient import TestClient

from portfolio.core.config import Settings
from portfolio.main import create_app


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        UPLOAD_ROOT=str(tmp_path / "public" / "uploads"),
        CHUNK_ROOT=str(tmp_path / "chunks"),
        PORTFOLIO_DATA_PATH=str(tmp_path / "data.json"),
        LOG_JSON=False,
    )


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def admin_client(client, settings):
    client.cookies.set(settings.SESSION_COOKIE_NAME, settings.SESSION_SENTINEL)
    return client


@pytest.fixture()
def upload_root(settings):
    return settings.upload_root


def listing(directory) -> list[str]:
    if not directory.exists():
        return []
    return sorted(str(p.relative_to(directory)) for p in directory.rglob("*"))
