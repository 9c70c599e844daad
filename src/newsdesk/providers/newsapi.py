"""NewsAPI 适配器."""

from datetime import datetime
from typing import Any

from newsdesk.providers.base import (
    NO_CONTENT,
    NO_SUMMARY,
    NO_TITLE,
    ArticleFields,
    SourceAdapter,
)


class NewsApiAdapter(SourceAdapter):
    """newsapi.org /v2/everything."""

    name = "NewsAPI"

    def build_params(self, term: str) -> dict[str, Any]:
        return {
            "apiKey": self.api_key,
            "q": term,
            "language": "en",
            "pageSize": 20,
        }

    def extract_items(self, payload: dict[str, Any]) -> list[dict[str, Any]]:
        return payload.get("articles") or []

    def normalize(self, raw: dict[str, Any], fallback: datetime) -> ArticleFields:
        # NewsAPI 没有分类字段，用媒体名代替
        source_name = (raw.get("source") or {}).get("name")

        return ArticleFields(
            provider=self.name,
            category=source_name or "general",
            source=source_name or "Unknown",
            title=raw.get("title") or NO_TITLE,
            content=raw.get("content") or raw.get("description") or NO_CONTENT,
            summary=raw.get("description") or NO_SUMMARY,
            author=raw.get("author"),
            article_url=raw.get("url") or "",
            image_url=raw.get("urlToImage"),
            published_at=self.parse_date(raw.get("publishedAt"), fallback),
        )
