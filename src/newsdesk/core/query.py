"""搜索词选择."""

import random
from collections.abc import Sequence

STATIC_TOPICS: tuple[str, ...] = (
    "technology",
    "politics",
    "sports",
    "health",
    "business",
    "science",
    "entertainment",
    "environment",
    "education",
    "world",
)


class QuerySelector:
    """为一次抓取选择搜索词：显式指定优先，否则从固定主题中随机."""

    def __init__(
        self,
        topics: Sequence[str] = STATIC_TOPICS,
        rng: random.Random | None = None,
    ) -> None:
        if not topics:
            msg = "主题列表不能为空"
            raise ValueError(msg)
        self.topics = tuple(topics)
        self._rng = rng or random.Random()

    def select(self, explicit_term: str | None = None) -> str:
        """返回本次使用的搜索词（每次调用独立随机）."""
        if explicit_term and explicit_term.strip():
            return explicit_term.strip()
        return self._rng.choice(self.topics)
