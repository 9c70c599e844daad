"""测试配置和 fixtures."""

from collections.abc import AsyncGenerator
from datetime import date
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from newsdesk.core.cache import TaggedCache
from newsdesk.core.idcodec import get_codec
from newsdesk.main import app
from newsdesk.models.article import Article
from newsdesk.models.database import get_session
from newsdesk.models.user import User


@pytest_asyncio.fixture
async def session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """创建测试用的数据库（文件库，允许多个会话并发）."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """创建测试会话."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache() -> TaggedCache:
    return TaggedCache()


@pytest_asyncio.fixture
async def user(async_session: AsyncSession) -> User:
    """创建测试用户."""
    user = User(name="Jane Doe", email="jane@example.com")
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def other_user(async_session: AsyncSession) -> User:
    """创建另一个测试用户."""
    user = User(name="John Smith", email="john@example.com")
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(user: User) -> dict[str, str]:
    return {"X-User-Id": get_codec().encode(user.id)}


def _make_article(**overrides: object) -> Article:
    """构造测试文章."""
    values: dict[str, object] = {
        "provider": "NewsAPI",
        "category": "technology",
        "source": "TechCrunch",
        "title": "AI chips are getting faster",
        "content": "Full content about AI chips",
        "summary": "AI chips summary",
        "author": "Jane Doe",
        "article_url": "https://example.com/ai-chips",
        "image_url": None,
        "published_at": date(2025, 2, 20),
    }
    values.update(overrides)
    return Article(**values)


@pytest.fixture
def make_article():
    """文章构造函数."""
    return _make_article


@pytest_asyncio.fixture
async def sample_articles(async_session: AsyncSession) -> list[Article]:
    """创建测试用的文章列表."""
    articles = [
        _make_article(),
        _make_article(
            provider="The Guardian",
            category="politics",
            source="BBC",
            title="Election results",
            content="Votes were counted",
            summary="Results are in",
            author="John Smith",
            article_url="https://example.com/election",
            published_at=date(2025, 2, 21),
        ),
        _make_article(
            provider="NewsData.Io",
            category="sports",
            source="ESPN",
            title="Cup final",
            content="A late goal decided it",
            summary="Match report",
            author=None,
            article_url="https://example.com/cup-final",
            published_at=date(2025, 2, 22),
        ),
    ]
    for article in articles:
        async_session.add(article)
    await async_session.commit()
    for article in articles:
        await async_session.refresh(article)
    return articles


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    cache: TaggedCache,
) -> AsyncGenerator[AsyncClient, None]:
    """创建测试客户端."""

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    original_cache = app.state.cache
    app.state.cache = cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.cache = original_cache
    app.dependency_overrides.clear()
