"""Article 文章模型."""

from datetime import date, datetime

from sqlmodel import Field, SQLModel

from newsdesk.models.base import PublicIdMixin


class Article(PublicIdMixin, SQLModel, table=True):
    """新闻文章（以 article_url 唯一）."""

    __tablename__ = "articles"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    provider: str = Field(description="抓取来源: NewsAPI|NewsData.Io|The Guardian")
    category: str = Field(default="general", index=True, description="分类")
    source: str = Field(default="Unknown", index=True, description="发布媒体")
    title: str = Field(description="标题")
    content: str = Field(description="正文")
    summary: str = Field(description="摘要")
    author: str | None = Field(default=None, index=True, description="作者")
    article_url: str = Field(unique=True, description="原文链接（自然键）")
    image_url: str | None = Field(default=None, description="配图链接")
    published_at: date = Field(index=True, description="发布日期")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
