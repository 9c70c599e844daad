"""用户偏好读写."""

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from newsdesk.config import Settings, get_settings
from newsdesk.core.cache import TaggedCache, feed_key, preference_key
from newsdesk.core.idcodec import IdCodec, get_codec
from newsdesk.models.preference import UserPreference

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS = ("preferred_sources", "preferred_categories", "preferred_authors")


class PreferenceService:
    """用户偏好服务."""

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

    async def get_model(self, user_id: int) -> UserPreference | None:
        """直接从数据库读取偏好."""
        result = await self.session.execute(
            select(UserPreference).where(UserPreference.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get(self, user_id: int) -> dict[str, Any] | None:
        """读取偏好（带缓存），未设置返回 None."""

        async def compute() -> dict[str, Any] | None:
            preference = await self.get_model(user_id)
            return preference.to_public(self.codec) if preference else None

        return await self.cache.get_or_compute(
            preference_key(user_id),
            timedelta(minutes=self.settings.feed_cache_ttl_minutes),
            [],
            compute,
        )

    async def save(
        self,
        user_id: int,
        values: dict[str, str | None],
        page: int = 1,
        per_page: int = 10,
    ) -> dict[str, Any]:
        """创建或更新偏好，并失效该用户的偏好缓存和当前分页的推荐缓存."""
        preference = await self.get_model(user_id)
        if preference is None:
            preference = UserPreference(user_id=user_id)
            self.session.add(preference)

        for name in PREFERENCE_FIELDS:
            if name in values:
                setattr(preference, name, values[name])
        preference.updated_at = datetime.utcnow()

        await self.session.commit()
        await self.session.refresh(preference)

        self.cache.forget(preference_key(user_id))
        self.cache.forget(feed_key(user_id, page, per_page))
        logger.info(f"用户 {user_id} 偏好已更新")

        return preference.to_public(self.codec)
