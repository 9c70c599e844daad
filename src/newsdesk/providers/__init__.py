"""新闻源适配层."""

from newsdesk.providers.base import ArticleFields, SourceAdapter
from newsdesk.providers.factory import create_adapters
from newsdesk.providers.guardian import GuardianAdapter
from newsdesk.providers.newsapi import NewsApiAdapter
from newsdesk.providers.newsdata import NewsDataAdapter

__all__ = [
    "ArticleFields",
    "GuardianAdapter",
    "NewsApiAdapter",
    "NewsDataAdapter",
    "SourceAdapter",
    "create_adapters",
]
