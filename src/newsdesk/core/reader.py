"""读路径：文章列表、文章详情、个性化推荐（均经过缓存）."""

from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.config import Settings, get_settings
from newsdesk.core.cache import (
    ARTICLE_LIST_TAG,
    TaggedCache,
    article_key,
    article_list_key,
    feed_key,
)
from newsdesk.core.errors import (
    ArticleNotFoundError,
    InvalidTokenError,
    PreferencesNotSetError,
)
from newsdesk.core.idcodec import IdCodec, get_codec
from newsdesk.core.preferences import PreferenceService
from newsdesk.core.store import ArticleFilters, ArticleStore, Page


def page_to_dict(page: Page, codec: IdCodec) -> dict[str, Any]:
    """分页结果转换为可缓存的字典."""
    return {
        "total": page.total,
        "page": page.page,
        "per_page": page.per_page,
        "last_page": page.last_page,
        "items": [article.to_public(codec) for article in page.items],
    }


class ArticleReader:
    """文章读服务."""

    def __init__(
        self,
        session: AsyncSession,
        cache: TaggedCache,
        codec: IdCodec | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.cache = cache
        self.codec = codec or get_codec()
        self.settings = settings or get_settings()
        self.store = ArticleStore(session)

    async def list_articles(
        self,
        filters: ArticleFilters,
        page: int = 1,
        per_page: int = 10,
    ) -> dict[str, Any]:
        """按条件列出文章."""
        key = article_list_key({**filters.as_dict(), "page": page, "per_page": per_page})

        async def compute() -> dict[str, Any]:
            result = await self.store.list_articles(filters, page=page, per_page=per_page)
            return page_to_dict(result, self.codec)

        return await self.cache.get_or_compute(
            key,
            timedelta(minutes=self.settings.list_cache_ttl_minutes),
            [ARTICLE_LIST_TAG],
            compute,
        )

    async def show(self, token: str) -> dict[str, Any]:
        """按公开 token 获取文章详情."""
        article_id = self.codec.decode(token)
        if article_id is None:
            msg = f"无法解码的文章 ID: {token!r}"
            raise InvalidTokenError(msg)

        async def compute() -> dict[str, Any]:
            article = await self.store.get(article_id)
            if article is None:
                msg = f"文章不存在: {token}"
                raise ArticleNotFoundError(msg)
            return article.to_public(self.codec)

        return await self.cache.get_or_compute(
            article_key(self.codec.encode(article_id)),
            timedelta(minutes=self.settings.article_cache_ttl_minutes),
            [ARTICLE_LIST_TAG],
            compute,
        )

    async def feed(self, user_id: int, page: int = 1, per_page: int = 10) -> dict[str, Any]:
        """按用户偏好生成推荐，未设置偏好时抛出 PreferencesNotSetError."""
        preference = await PreferenceService(self.session, self.cache).get_model(user_id)
        if preference is None or preference.is_empty:
            msg = f"用户 {user_id} 尚未设置偏好"
            raise PreferencesNotSetError(msg)

        async def compute() -> dict[str, Any]:
            result = await self.store.feed(preference, page=page, per_page=per_page)
            return page_to_dict(result, self.codec)

        return await self.cache.get_or_compute(
            feed_key(user_id, page, per_page),
            timedelta(minutes=self.settings.feed_cache_ttl_minutes),
            [ARTICLE_LIST_TAG],
            compute,
        )
