"""
Pytest fixtures - per-test SQLite DB, client with overridden collaborators, auth.
Challenge: Isolated tests; no Postgres, Elasticsearch, broker or disk uploads outside tmp.
"""

from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.dependencies import get_image_storage, get_listing_indexer, get_search_index
from app.core.revocation import InMemoryRevocationRegistry
from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.db.models import Listing, User
from app.db.session import get_db, get_session_factory
from app.main import app
from app.search.indexer import ListingIndexer
from app.storage.images import LocalImageStorage


class FakeSearchIndex:
    """Maps a search string to the ids the real index would return."""

    def __init__(self):
        self.hits: dict[str, list[int]] = {}
        self.fail = False
        self.queries: list[str] = []
        self.filters: list[tuple[str | None, str | None]] = []

    async def search_ids(self, query: str, category: str | None = None, subcategory: str | None = None) -> list[int]:
        self.queries.append(query)
        self.filters.append((category, subcategory))
        if self.fail:
            raise ConnectionError("elasticsearch down")
        return self.hits.get(query, [])


class RecordingIndexer(ListingIndexer):
    def __init__(self):
        self.indexed: list[dict] = []
        self.removed: list[int] = []

    def index(self, doc: dict) -> None:
        self.indexed.append(doc)

    def remove(self, listing_id: int) -> None:
        self.removed.append(listing_id)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as s:
        yield s


@pytest.fixture
def search_index() -> FakeSearchIndex:
    return FakeSearchIndex()


@pytest.fixture
def indexer() -> RecordingIndexer:
    return RecordingIndexer()


@pytest.fixture
def registry() -> InMemoryRevocationRegistry:
    return InMemoryRevocationRegistry()


@pytest_asyncio.fixture
async def client(session_factory, search_index, indexer, registry, tmp_path):
    async def override_get_db():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_search_index] = lambda: search_index
    app.dependency_overrides[get_listing_indexer] = lambda: indexer
    app.dependency_overrides[get_image_storage] = lambda: LocalImageStorage(tmp_path / "uploads")
    app.state.revocation_registry = registry
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


async def _create_user(session: AsyncSession, email: str, full_name: str) -> User:
    user = User(email=email, hashed_password=hash_password("password123"), full_name=full_name)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(session: AsyncSession) -> User:
    return await _create_user(session, "test@example.com", "Test User")


@pytest_asyncio.fixture
async def other_user(session: AsyncSession) -> User:
    return await _create_user(session, "other@example.com", "Other User")


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(other_user: User) -> dict:
    token = create_access_token(other_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_listing(session_factory, test_user):
    """Insert a listing directly; created_at is explicit so ordering is deterministic."""

    async def _make(**overrides) -> Listing:
        fields = {
            "owner_id": test_user.id,
            "title": "Organic tomatoes",
            "description": "Fresh from the farm",
            "price": 40.0,
            "quantity": 10,
            "category": "vegetables",
            "subcategory": "fruiting",
            "location": "Bengaluru",
            "main_image": "default-image.jpg",
            "additional_images": [],
            "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        async with session_factory() as s:
            listing = Listing(**fields)
            s.add(listing)
            await s.commit()
            await s.refresh(listing)
            return listing

    return _make
