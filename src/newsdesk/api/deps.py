"""路由依赖."""

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.core.cache import TaggedCache
from newsdesk.core.idcodec import IdCodec, get_codec
from newsdesk.models.database import get_session
from newsdesk.models.user import User

UNAUTHORIZED_MESSAGE = "Unauthorized: No token provided."


def get_cache(request: Request) -> TaggedCache:
    """获取进程级缓存（启动时挂在 app.state 上）."""
    return request.app.state.cache


async def get_current_user(
    x_user_id: str | None = Header(default=None),
    codec: IdCodec = Depends(get_codec),
    session: AsyncSession = Depends(get_session),
) -> User:
    """解析当前用户.

    认证由外部网关完成，这里只接收网关透传的用户公开 ID（X-User-Id）。
    """
    user_id = codec.decode(x_user_id)
    user = await session.get(User, user_id) if user_id else None
    if user is None:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED_MESSAGE)
    return user
