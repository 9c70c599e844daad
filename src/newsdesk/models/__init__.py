"""数据模型."""

from newsdesk.models.article import Article
from newsdesk.models.database import get_session, init_db
from newsdesk.models.ingestion_run import IngestionRun
from newsdesk.models.preference import UserPreference
from newsdesk.models.user import User

__all__ = [
    "Article",
    "IngestionRun",
    "User",
    "UserPreference",
    "get_session",
    "init_db",
]
