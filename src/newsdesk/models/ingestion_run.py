"""IngestionRun 抓取记录模型."""

from datetime import datetime

from sqlmodel import Field, SQLModel


class IngestionRun(SQLModel, table=True):
    """一次抓取任务的执行记录."""

    __tablename__ = "ingestion_runs"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    query: str | None = Field(default=None, description="指定的搜索词")
    status: str = Field(description="状态: running|success|partial|failed")
    articles_stored: int = Field(default=0, description="入库文章数")
    provider_results: str | None = Field(default=None, description="各来源结果 (JSON)")
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: datetime | None = Field(default=None)
