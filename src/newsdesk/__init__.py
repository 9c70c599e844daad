"""Newsdesk - 新闻聚合后端."""

__version__ = "0.1.0"
