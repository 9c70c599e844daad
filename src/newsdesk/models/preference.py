"""UserPreference 用户偏好模型."""

from datetime import datetime
from typing import ClassVar

from sqlmodel import Field, SQLModel

from newsdesk.models.base import PublicIdMixin


class UserPreference(PublicIdMixin, SQLModel, table=True):
    """用户偏好（与用户一对一）."""

    __tablename__ = "user_preferences"  # type: ignore[assignment]

    public_id_fields: ClassVar[dict[str, str]] = {"x_id": "id", "x_user_id": "user_id"}
    hidden_fields: ClassVar[frozenset[str]] = frozenset(
        {"id", "user_id", "created_at", "updated_at"}
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, description="关联用户")
    preferred_sources: str | None = Field(default=None, description="逗号分隔的媒体")
    preferred_categories: str | None = Field(default=None, description="逗号分隔的分类")
    preferred_authors: str | None = Field(default=None, description="逗号分隔的作者")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @staticmethod
    def split(value: str | None) -> list[str]:
        """拆分逗号分隔的偏好值."""
        if not value:
            return []
        return [item for item in value.split(",") if item]

    @property
    def is_empty(self) -> bool:
        """三类偏好是否都为空."""
        return not (
            self.split(self.preferred_sources)
            or self.split(self.preferred_categories)
            or self.split(self.preferred_authors)
        )
