"""The Guardian 适配器."""

from datetime import datetime
from typing import Any

from newsdesk.providers.base import (
    NO_CONTENT,
    NO_SUMMARY,
    NO_TITLE,
    ArticleFields,
    SourceAdapter,
)


class GuardianAdapter(SourceAdapter):
    """content.guardianapis.com /search."""

    name = "The Guardian"

    def build_params(self, term: str) -> dict[str, Any]:
        return {
            "api-key": self.api_key,
            "q": term,
            "show-fields": "body,trailText,byline,thumbnail",
            "page-size": 20,
        }

    def extract_items(self, payload: dict[str, Any]) -> list[dict[str, Any]]:
        return (payload.get("response") or {}).get("results") or []

    def normalize(self, raw: dict[str, Any], fallback: datetime) -> ArticleFields:
        fields = raw.get("fields") or {}

        return ArticleFields(
            provider=self.name,
            category=raw.get("sectionName") or "general",
            source=self.name,
            title=raw.get("webTitle") or NO_TITLE,
            content=fields.get("body") or NO_CONTENT,
            summary=fields.get("trailText") or NO_SUMMARY,
            author=fields.get("byline"),
            article_url=raw.get("webUrl") or "",
            image_url=fields.get("thumbnail"),
            published_at=self.parse_date(raw.get("webPublicationDate"), fallback),
        )
