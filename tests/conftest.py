import httpx
import pytest
from httpx import ASGITransport


@pytest.fixture
def mock_env(monkeypatch, tmp_path):
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "output"))
    monkeypatch.setenv("REQUEST_DELAY_MS", "0")
    monkeypatch.setenv("SEARCH_DELAY_MS", "0")
    monkeypatch.setenv("VALIDATION_DELAY_MS", "0")
    monkeypatch.setenv("EXTRACTION_DELAY_MS", "0")
    monkeypatch.setenv("SEARCH_MAX_PAGES", "1")


@pytest.fixture
async def client(mock_env):
    from prospector.main import app, lifespan

    async with lifespan(app):
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as c:
            yield c
