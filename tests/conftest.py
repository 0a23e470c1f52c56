import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from app.core.db import init_db, close_db
from app.consumers.registry import HandlerRegistry
from app.testing.testing_mocks import RecordingHandler


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database with all tables for every test."""
    await init_db("sqlite://:memory:")
    yield
    await close_db()


@pytest_asyncio.fixture
async def client(db):
    """HTTP client bound to the app without running its lifespan (no dispatcher)."""
    from app.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def registry(handler):
    return HandlerRegistry().register("test.event", handler)
