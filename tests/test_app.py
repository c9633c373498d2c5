"""Application startup against the database named in its settings."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from cafm.config import Settings
from cafm.infrastructure.database import get_database
from cafm.main import create_app
from tests.conftest import ALICE


def sqlite_url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.mark.asyncio
async def test_startup_uses_configured_database(tmp_path):
    database_file = tmp_path / "cafm.db"
    app = create_app(Settings(environment="staging", database_url=sqlite_url(database_file)))

    async with app.router.lifespan_context(app):
        assert get_database().engine.dialect.name == "sqlite"
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            body = (await client.get("/health")).json()

    assert body["status"] == "healthy"
    assert body["checks"]["database"] == "connected"
    assert database_file.exists()


@pytest.mark.asyncio
async def test_startup_fails_fast_outside_development(tmp_path):
    unreachable = tmp_path / "missing" / "cafm.db"
    app = create_app(Settings(environment="production", database_url=sqlite_url(unreachable)))

    with pytest.raises(OperationalError):
        async with app.router.lifespan_context(app):
            pass

    with pytest.raises(RuntimeError):
        get_database()


@pytest.mark.asyncio
async def test_development_startup_serves_suggestions_without_database(tmp_path):
    unreachable = tmp_path / "missing" / "cafm.db"
    app = create_app(Settings(environment="development", database_url=sqlite_url(unreachable)))

    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            health = (await client.get("/health")).json()
            suggestions = await client.get("/tickets/suggestions", params={"input": "water"}, headers=ALICE)

    assert health["status"] == "degraded"
    assert suggestions.status_code == 200
    assert suggestions.json()[0]["keyword"] == "water"
