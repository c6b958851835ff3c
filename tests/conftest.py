import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport

from tinylink.config import Settings
from tinylink.crud import LinkStore
from tinylink.database import Database
from tinylink.main import create_app
from tinylink.services.links import LinkService

BASE_URL = "http://test"

# Each test gets its own SQLite file so the real adapter, its primary key
# and its RETURNING statements are exercised without a Postgres server.
@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'tinylink.db'}",
        BASE_URL=BASE_URL,
        ENVIRONMENT="test",
        _env_file=None,
    )

@pytest.fixture
async def database(settings) -> AsyncGenerator[Database, None]:
    db = Database(settings.DATABASE_URL)
    await db.connect(create_tables=True)
    yield db
    await db.close()

@pytest.fixture
def store(database) -> LinkStore:
    return LinkStore(database.sessionmaker, timeout=5.0)

@pytest.fixture
def service(store) -> LinkService:
    return LinkService(store, base_url=BASE_URL)

@pytest.fixture
async def app(settings):
    app = create_app(settings)
    # ASGITransport does not run lifespan events on its own
    async with app.router.lifespan_context(app):
        yield app

@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with ASGITransport(app=app) as transport:
        async with AsyncClient(transport=transport, base_url=BASE_URL) as c:
            yield c
