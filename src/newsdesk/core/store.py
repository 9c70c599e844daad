"""文章存储：按 article_url 幂等写入，以及列表/推荐查询."""

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from newsdesk.models.article import Article
from newsdesk.models.preference import UserPreference
from newsdesk.providers.base import ArticleFields

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


@dataclass
class ArticleFilters:
    """文章列表筛选条件."""

    keyword: str | None = None
    published_on: date | None = None
    category: str | None = None
    source: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "keyword": self.keyword,
            "date": self.published_on.isoformat() if self.published_on else None,
            "category": self.category,
            "source": self.source,
        }


@dataclass
class Page:
    """分页结果."""

    items: list[Article]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))


class ArticleStore:
    """文章存储."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def upsert(self, fields: ArticleFields) -> Article:
        """按 article_url 插入或覆盖全部字段，返回入库后的文章.

        依赖数据库的原子 upsert 保证并发安全，不做应用层加锁。
        调用方负责 commit。
        """
        values = fields.model_dump()
        now = datetime.utcnow()
        updates = {**values, "updated_at": now}
        updates.pop("article_url")

        dialect = self.session.bind.dialect.name
        table = Article.__table__

        if dialect == "mysql":
            stmt = mysql.insert(table).values(**values, created_at=now, updated_at=now)
            stmt = stmt.on_duplicate_key_update(**updates)
        elif dialect in _UPSERT_DIALECTS:
            stmt = _UPSERT_DIALECTS[dialect](table).values(
                **values, created_at=now, updated_at=now
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.article_url],
                set_=updates,
            )
        else:
            msg = f"不支持的数据库: {dialect}"
            raise NotImplementedError(msg)

        await self.session.execute(stmt)

        result = await self.session.execute(
            select(Article)
            .where(Article.article_url == fields.article_url)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def get(self, article_id: int) -> Article | None:
        """按内部 ID 获取文章."""
        return await self.session.get(Article, article_id)

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Article))
        return result.scalar_one()

    async def list_articles(
        self,
        filters: ArticleFilters,
        page: int = 1,
        per_page: int = 10,
    ) -> Page:
        """按关键词/日期/分类/媒体筛选文章."""
        conditions = []

        if filters.keyword:
            pattern = f"%{filters.keyword}%"
            conditions.append(
                or_(
                    Article.title.like(pattern),
                    Article.content.like(pattern),
                    Article.summary.like(pattern),
                )
            )
        if filters.published_on:
            conditions.append(Article.published_at == filters.published_on)
        if filters.category:
            conditions.append(Article.category == filters.category)
        if filters.source:
            conditions.append(Article.source == filters.source)

        return await self._paginate(conditions, page, per_page, order_by=Article.id)

    async def feed(
        self,
        preference: UserPreference,
        page: int = 1,
        per_page: int = 10,
    ) -> Page:
        """按偏好（媒体/分类/作者任一命中）查询文章，发布日期倒序."""
        matches = []

        sources = UserPreference.split(preference.preferred_sources)
        if sources:
            matches.append(Article.source.in_(sources))

        categories = UserPreference.split(preference.preferred_categories)
        if categories:
            matches.append(Article.category.in_(categories))

        authors = UserPreference.split(preference.preferred_authors)
        if authors:
            matches.append(Article.author.in_(authors))

        if not matches:
            return Page(items=[], total=0, page=page, per_page=per_page)

        return await self._paginate(
            [or_(*matches)],
            page,
            per_page,
            order_by=(Article.published_at.desc(), Article.id.desc()),
        )

    async def _paginate(
        self,
        conditions: list[Any],
        page: int,
        per_page: int,
        order_by: Any,
    ) -> Page:
        count_stmt = select(func.count()).select_from(Article)
        stmt = select(Article)
        for condition in conditions:
            count_stmt = count_stmt.where(condition)
            stmt = stmt.where(condition)

        total = (await self.session.execute(count_stmt)).scalar_one()

        if not isinstance(order_by, tuple):
            order_by = (order_by,)
        stmt = stmt.order_by(*order_by).offset((page - 1) * per_page).limit(per_page)

        result = await self.session.execute(stmt)
        return Page(
            items=list(result.scalars().all()),
            total=total,
            page=page,
            per_page=per_page,
        )
