"""文章 API."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.api.deps import get_cache, get_current_user
from newsdesk.api.responses import error_response, success_response
from newsdesk.config import get_settings
from newsdesk.core.cache import TaggedCache
from newsdesk.core.errors import ArticleNotFoundError, InvalidTokenError
from newsdesk.core.reader import ArticleReader
from newsdesk.core.store import ArticleFilters
from newsdesk.models.database import get_session

router = APIRouter(prefix="/api", tags=["articles"], dependencies=[Depends(get_current_user)])


@router.get("/articles")
async def list_articles(
    keyword: str | None = Query(None, description="标题/正文/摘要关键词"),
    published_on: date | None = Query(None, alias="date", description="发布日期 YYYY-MM-DD"),
    category: str | None = Query(None, description="分类"),
    source: str | None = Query(None, description="发布媒体"),
    page: int = Query(1, ge=1, description="页码"),
    per_page: int | None = Query(None, ge=1, description="每页数量"),
    session: AsyncSession = Depends(get_session),
    cache: TaggedCache = Depends(get_cache),
) -> JSONResponse:
    """获取文章列表."""
    settings = get_settings()
    per_page = min(per_page or settings.default_per_page, settings.max_per_page)

    filters = ArticleFilters(
        keyword=keyword or None,
        published_on=published_on,
        category=category or None,
        source=source or None,
    )
    reader = ArticleReader(session, cache)
    data = await reader.list_articles(filters, page=page, per_page=per_page)

    return success_response(data, "Articles retrieved successfully")


@router.get("/article")
async def get_article(
    hashed_id: str | None = Query(None, description="文章公开 ID"),
    session: AsyncSession = Depends(get_session),
    cache: TaggedCache = Depends(get_cache),
) -> JSONResponse:
    """获取文章详情."""
    if hashed_id is None:
        return error_response("Article id is required.", 400)

    reader = ArticleReader(session, cache)
    try:
        data = await reader.show(hashed_id)
    except InvalidTokenError:
        return error_response("Invalid or malformed article id.", 404)
    except ArticleNotFoundError:
        return error_response("Article not found.", 404)

    return success_response(data, "Article details retrieved successfully")
