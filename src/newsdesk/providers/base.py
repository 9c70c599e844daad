"""新闻源适配器抽象基类."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser
from pydantic import BaseModel

NO_TITLE = "No Title"
NO_CONTENT = "No Content"
NO_SUMMARY = "No Summary"


class ArticleFields(BaseModel):
    """归一化后的文章字段."""

    provider: str
    category: str = "general"
    source: str = "Unknown"
    title: str = NO_TITLE
    content: str = NO_CONTENT
    summary: str = NO_SUMMARY
    author: str | None = None
    article_url: str
    image_url: str | None = None
    published_at: date


class SourceAdapter(ABC):
    """新闻源适配器：负责请求参数和原始数据到 ArticleFields 的映射."""

    name: str

    def __init__(self, endpoint: str, api_key: str) -> None:
        self.endpoint = endpoint
        self.api_key = api_key

    @abstractmethod
    def build_params(self, term: str) -> dict[str, Any]:
        """构造搜索请求参数."""
        ...

    @abstractmethod
    def extract_items(self, payload: dict[str, Any]) -> list[dict[str, Any]]:
        """从响应中取出文章列表."""
        ...

    @abstractmethod
    def normalize(self, raw: dict[str, Any], fallback: datetime) -> ArticleFields:
        """把单条原始数据转换为 ArticleFields."""
        ...

    @staticmethod
    def parse_date(value: Any, fallback: datetime) -> date:
        """解析时间戳并截断到日期，缺失或无法解析时使用 fallback."""
        if not value or not isinstance(value, str):
            return fallback.date()
        try:
            return date_parser.parse(value).date()
        except (ValueError, OverflowError):
            return fallback.date()

    @staticmethod
    def first(value: Any) -> Any:
        """取列表的第一个元素（用于 category/creator 这类数组字段）."""
        if isinstance(value, list):
            return value[0] if value else None
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(endpoint={self.endpoint!r})"
