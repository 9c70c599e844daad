"""带标签的读缓存.

读路径通过 get_or_compute 读取；写路径按标签整组失效（flush_tags）
或按 key 精确失效（forget）。缓存只是加速层，随时整体清空都不影响正确性。
"""

import asyncio
import hashlib
import json
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

logger = logging.getLogger(__name__)

ARTICLE_LIST_TAG = "article_list"


@dataclass
class CacheEntry:
    """缓存条目."""

    value: Any
    expires_at: float | None
    tags: frozenset[str] = field(default_factory=frozenset)

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class TaggedCache:
    """进程内的 TTL + 标签缓存.

    每个进程只创建一个实例，通过依赖注入传给需要读写缓存的组件。
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._tag_index: dict[str, set[str]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._drop(key)
            return None
        return entry

    def _drop(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        for tag in entry.tags:
            keys = self._tag_index.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._tag_index[tag]

    def get(self, key: str, default: Any = None) -> Any:
        """读取缓存，未命中或已过期返回 default."""
        entry = self._live_entry(key)
        return default if entry is None else entry.value

    def set(
        self,
        key: str,
        value: Any,
        ttl: timedelta | float | None = None,
        tags: Iterable[str] = (),
    ) -> None:
        """写入缓存并登记标签."""
        seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else ttl
        expires_at = self._clock() + seconds if seconds is not None else None

        self._drop(key)
        entry = CacheEntry(value=value, expires_at=expires_at, tags=frozenset(tags))
        self._entries[key] = entry
        for tag in entry.tags:
            self._tag_index.setdefault(tag, set()).add(key)

    async def get_or_compute(
        self,
        key: str,
        ttl: timedelta | float | None,
        tags: Iterable[str],
        compute: Callable[[], Awaitable[Any]],
    ) -> Any:
        """命中直接返回；未命中时计算、写入并返回.

        同一个 key 的并发未命中只会触发一次计算。
        """
        entry = self._live_entry(key)
        if entry is not None:
            return entry.value

        lock = self._locks.setdefault(key, asyncio.Lock())
        try:
            async with lock:
                entry = self._live_entry(key)
                if entry is not None:
                    return entry.value

                value = await compute()
                self.set(key, value, ttl=ttl, tags=tags)
                return value
        finally:
            if not lock.locked() and self._locks.get(key) is lock:
                del self._locks[key]

    def forget(self, key: str) -> bool:
        """删除单个 key."""
        existed = key in self._entries
        self._drop(key)
        return existed

    def flush_tags(self, tags: Iterable[str]) -> int:
        """删除所有登记在这些标签下的 key，返回删除数量."""
        tags = list(tags)
        keys: set[str] = set()
        for tag in tags:
            keys |= self._tag_index.pop(tag, set())

        for key in keys:
            self._drop(key)

        logger.info(f"缓存标签失效: tags={tags}, keys={len(keys)}")
        return len(keys)

    def clear(self) -> None:
        """清空缓存."""
        self._entries.clear()
        self._tag_index.clear()


def fingerprint(params: dict[str, Any]) -> str:
    """参数字典的稳定摘要，用于派生缓存 key."""
    payload = json.dumps(params, sort_keys=True, default=str)
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


def article_key(token: str) -> str:
    return f"article_{token}"


def article_list_key(params: dict[str, Any]) -> str:
    return f"article_list_{fingerprint(params)}"


def preference_key(user_id: int) -> str:
    return f"user_preference_{user_id}"


def feed_key(user_id: int, page: int, per_page: int) -> str:
    return f"user_feed_{user_id}_{fingerprint({'page': page, 'per_page': per_page})}"
