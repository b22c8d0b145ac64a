"""Async test fixtures using in-memory SQLite and a temporary content directory."""

from __future__ import annotations

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from reviewsite.content.store import SchoolContentStore, get_content_store
from reviewsite.database import Database
from reviewsite.models.base import Base

ALPHA = {
    "name": "Alpha English",
    "officialUrl": "https://alpha.example.com/",
    "planUrl": "https://plans.alpha.example.com/start",
    "summary": "Curriculum-driven lessons.",
    "source": {"url": "https://alpha.example.com/", "note": "official site"},
    "rating": 4.5,
    "teacherQuality": 4.5,
    "materialQuality": 4,
    "connectionQuality": 4,
    "priceText": "月額1,000円",
    "features": ["Daily lessons", "Graded textbooks"],
    "prSections": [{"title": "PR", "body": "Partner copy"}],
}

BETA = {
    "name": "Beta Talk",
    "officialUrl": "https://beta.example.com/",
    "bannerHref": "https://aff.example.net/click?id=1",
    "summary": "Unlimited lessons, no booking.",
    "source": {"url": "https://beta.example.com/"},
    "introSectionTitle": "About Beta",
    "introPlacement": "section",
    "introSections": [{"title": "Instant lessons", "body": "Start any time."}],
}


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def content_dir(tmp_path):
    directory = tmp_path / "schools"
    directory.mkdir()
    (directory / "alpha.json").write_text(json.dumps(ALPHA, ensure_ascii=False), encoding="utf-8")
    (directory / "beta.json").write_text(json.dumps(BETA, ensure_ascii=False), encoding="utf-8")
    return directory


@pytest.fixture
def store(content_dir):
    return SchoolContentStore(content_dir)


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(engine, store):
    """HTTPX async test client against the app, backed by the test engine."""
    from reviewsite.app import app

    app.state.db = Database.from_engine(engine)
    app.dependency_overrides[get_content_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
    app.state.db = None


@pytest_asyncio.fixture
async def no_db_client(store):
    """Test client for an app started without REVIEWSITE_DATABASE_URL."""
    from reviewsite.app import app

    app.state.db = None
    app.dependency_overrides[get_content_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# Nothing listens on port 1, so every connection attempt is refused.
UNREACHABLE_URL = "postgresql+asyncpg://u:p@127.0.0.1:1/db"


@pytest_asyncio.fixture
async def unreachable_engine():
    eng = create_async_engine(UNREACHABLE_URL)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def unreachable_db(unreachable_engine):
    session_factory = async_sessionmaker(unreachable_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def offline_client(unreachable_engine, store):
    """Test client for an app whose database server is down."""
    from reviewsite.app import app

    app.state.db = Database.from_engine(unreachable_engine)
    app.dependency_overrides[get_content_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
    app.state.db = None
