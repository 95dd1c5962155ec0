import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from shortlink.main import app
from shortlink.config import settings
from shortlink.database import Database

@pytest.fixture
async def client(tmp_path, monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    # One SQLite file per test; the partial unique index and UPDATE ... RETURNING
    # behave the same way they do on PostgreSQL.
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'shortlink.db'}")
    monkeypatch.setattr(settings, "ENVIRONMENT", "test")

    # ASGITransport does not emit lifespan events, so the pool is opened here.
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            yield c

@pytest.fixture
def database(client: AsyncClient) -> Database:
    return app.state.db
