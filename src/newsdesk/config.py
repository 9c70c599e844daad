"""应用配置管理."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置（环境变量）."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 新闻源配置
    news_api_key: str = ""
    news_api_url: str = "https://newsapi.org/v2/everything"
    newsdata_api_key: str = ""
    newsdata_url: str = "https://newsdata.io/api/1/latest"
    guardian_api_key: str = ""
    guardian_url: str = "https://content.guardianapis.com/search"

    # 应用配置
    database_url: str = "sqlite+aiosqlite:///./newsdesk.db"

    # 抓取配置
    ingest_enabled: bool = True
    ingest_interval_minutes: int = 60
    provider_timeout_seconds: float = 15.0
    ingest_deadline_seconds: float = 60.0

    # 公开 ID 编码
    hashids_salt: str = "newsdesk"
    hashids_min_length: int = 8

    # 缓存 TTL（分钟）
    article_cache_ttl_minutes: int = 30
    list_cache_ttl_minutes: int = 15
    feed_cache_ttl_minutes: int = 15

    # 分页
    default_per_page: int = 10
    max_per_page: int = 100


@lru_cache
def get_settings() -> Settings:
    """获取应用配置（带缓存）."""
    return Settings()
