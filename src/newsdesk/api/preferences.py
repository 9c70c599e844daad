"""用户偏好与个性化推荐 API."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.api.deps import get_cache, get_current_user
from newsdesk.api.responses import error_response, success_response
from newsdesk.config import get_settings
from newsdesk.core.cache import TaggedCache
from newsdesk.core.errors import PreferencesNotSetError
from newsdesk.core.preferences import PreferenceService
from newsdesk.core.reader import ArticleReader
from newsdesk.models.database import get_session
from newsdesk.models.user import User

router = APIRouter(prefix="/api", tags=["preferences"])


class PreferenceRequest(BaseModel):
    """偏好设置请求（逗号分隔，如 "TechCrunch,BBC"）."""

    preferred_sources: str | None = Field(default=None, max_length=255)
    preferred_categories: str | None = Field(default=None, max_length=255)
    preferred_authors: str | None = Field(default=None, max_length=255)


def _per_page(per_page: int | None) -> int:
    settings = get_settings()
    return min(per_page or settings.default_per_page, settings.max_per_page)


@router.post("/preferences")
async def save_preferences(
    body: PreferenceRequest,
    page: int = Query(1, ge=1, description="需要失效的推荐页码"),
    per_page: int | None = Query(None, ge=1, description="需要失效的推荐每页数量"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    cache: TaggedCache = Depends(get_cache),
) -> JSONResponse:
    """创建或更新当前用户的偏好."""
    service = PreferenceService(session, cache)
    data = await service.save(
        user.id,
        body.model_dump(exclude_unset=True),
        page=page,
        per_page=_per_page(per_page),
    )
    return success_response(data, "Preferences updated successfully")


@router.get("/preferences")
async def get_preferences(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    cache: TaggedCache = Depends(get_cache),
) -> JSONResponse:
    """获取当前用户的偏好."""
    data = await PreferenceService(session, cache).get(user.id)
    if data is None:
        return success_response(None, "No preferences set yet")
    return success_response(data, "Preferences retrieved successfully")


@router.get("/feed")
async def get_feed(
    page: int = Query(1, ge=1, description="页码"),
    per_page: int | None = Query(None, ge=1, description="每页数量"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    cache: TaggedCache = Depends(get_cache),
) -> JSONResponse:
    """按偏好获取个性化推荐."""
    reader = ArticleReader(session, cache)
    try:
        data = await reader.feed(user.id, page=page, per_page=_per_page(per_page))
    except PreferencesNotSetError:
        return error_response("No preferences set. Please set preferences first.", 400)

    return success_response(data, "Personalized feed retrieved successfully")
