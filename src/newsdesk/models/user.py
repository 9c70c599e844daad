"""User 用户模型."""

from datetime import datetime

from sqlmodel import Field, SQLModel

from newsdesk.models.base import PublicIdMixin


class User(PublicIdMixin, SQLModel, table=True):
    """用户（认证由外部负责，这里只保留身份信息）."""

    __tablename__ = "users"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(description="用户名")
    email: str = Field(unique=True, description="邮箱")
    created_at: datetime = Field(default_factory=datetime.utcnow)
