"""Shared fixtures: routing engine, in-memory database and API client."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from cafm.infrastructure.database import build_engine, build_session_maker, create_tables, get_session
from cafm.main import app
from cafm.routing.application import KeywordRoutingService
from cafm.routing.domain import build_default_taxonomy
from cafm.tickets.domain import RoundRobinAssignmentPolicy

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "Admin"}
ALICE = {"X-User-Id": "alice", "X-User-Role": "EndUser"}
BOB = {"X-User-Id": "bob", "X-User-Role": "EndUser"}
PLUMBER = {"X-User-Id": "plumber-1", "X-User-Role": "Plumber"}


@pytest.fixture(scope="session")
def taxonomy():
    return build_default_taxonomy()


@pytest.fixture
def routing(taxonomy):
    return KeywordRoutingService(taxonomy)


@pytest_asyncio.fixture
async def session_maker():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    yield build_session_maker(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    original_policy = app.state.assignment_policy
    app.state.assignment_policy = RoundRobinAssignmentPolicy()
    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.assignment_policy = original_policy
