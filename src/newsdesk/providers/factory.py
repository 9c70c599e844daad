"""新闻源适配器工厂."""

from newsdesk.config import Settings
from newsdesk.providers.base import SourceAdapter
from newsdesk.providers.guardian import GuardianAdapter
from newsdesk.providers.newsapi import NewsApiAdapter
from newsdesk.providers.newsdata import NewsDataAdapter


def create_adapters(settings: Settings) -> list[SourceAdapter]:
    """根据配置创建全部新闻源适配器."""
    return [
        NewsApiAdapter(endpoint=settings.news_api_url, api_key=settings.news_api_key),
        NewsDataAdapter(endpoint=settings.newsdata_url, api_key=settings.newsdata_api_key),
        GuardianAdapter(endpoint=settings.guardian_url, api_key=settings.guardian_api_key),
    ]
