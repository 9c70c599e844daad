"""NewsData.io 适配器."""

from datetime import datetime
from typing import Any

from newsdesk.providers.base import (
    NO_CONTENT,
    NO_SUMMARY,
    NO_TITLE,
    ArticleFields,
    SourceAdapter,
)


class NewsDataAdapter(SourceAdapter):
    """newsdata.io /api/1/latest."""

    name = "NewsData.Io"

    def build_params(self, term: str) -> dict[str, Any]:
        return {
            "apiKey": self.api_key,
            "q": term,
            "language": "en",
        }

    def extract_items(self, payload: dict[str, Any]) -> list[dict[str, Any]]:
        return payload.get("results") or []

    def normalize(self, raw: dict[str, Any], fallback: datetime) -> ArticleFields:
        return ArticleFields(
            provider=self.name,
            category=self.first(raw.get("category")) or "general",
            source=raw.get("source_name") or "Unknown",
            title=raw.get("title") or NO_TITLE,
            content=raw.get("content") or raw.get("description") or NO_CONTENT,
            summary=raw.get("description") or NO_SUMMARY,
            author=self.first(raw.get("creator")),
            article_url=raw.get("link") or "",
            image_url=raw.get("image_url"),
            published_at=self.parse_date(raw.get("pubDate"), fallback),
        )
