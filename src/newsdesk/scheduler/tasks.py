"""定时任务定义."""

import logging

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from newsdesk.config import Settings, get_settings
from newsdesk.core.cache import TaggedCache
from newsdesk.core.ingest import IngestionOrchestrator, ProviderOutcome, is_running
from newsdesk.models.database import async_session_maker
from newsdesk.providers import create_adapters

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


async def run_ingestion(
    cache: TaggedCache,
    query: str | None = None,
    settings: Settings | None = None,
) -> dict[str, ProviderOutcome]:
    """执行一轮抓取."""
    settings = settings or get_settings()

    async with httpx.AsyncClient(timeout=settings.provider_timeout_seconds) as client:
        orchestrator = IngestionOrchestrator(
            session_factory=async_session_maker(),
            cache=cache,
            adapters=create_adapters(settings),
            client=client,
            deadline_seconds=settings.ingest_deadline_seconds,
        )
        return await orchestrator.run(query)


async def ingest_task(settings: Settings, cache: TaggedCache) -> None:
    """抓取任务：从各新闻源拉取最新文章."""
    if not settings.ingest_enabled:
        logger.info("抓取已禁用，跳过")
        return

    # 检查是否已有任务在运行
    if is_running():
        logger.info("已有抓取任务在运行，跳过本次调度")
        return

    logger.info("开始抓取任务...")
    try:
        outcomes = await run_ingestion(cache, settings=settings)
    except Exception as e:
        logger.exception(f"抓取任务失败: {e}")
        return

    failed = [name for name, o in outcomes.items() if not o.ok]
    if failed:
        logger.warning(f"抓取完成，失败来源: {', '.join(failed)}")


def create_scheduler(settings: Settings, cache: TaggedCache) -> AsyncIOScheduler:
    """创建并启动定时任务调度器."""
    global _scheduler

    _scheduler = AsyncIOScheduler()

    _scheduler.add_job(
        ingest_task,
        "interval",
        minutes=settings.ingest_interval_minutes,
        args=[settings, cache],
        id="ingest_task",
        name="新闻抓取",
        replace_existing=True,
    )

    # 启动时立即执行一次
    _scheduler.add_job(
        ingest_task,
        "date",  # 一次性任务
        args=[settings, cache],
        id="ingest_task_initial",
        name="初始抓取",
    )

    _scheduler.start()
    logger.info(f"定时任务调度器已启动，抓取间隔: {settings.ingest_interval_minutes} 分钟")

    return _scheduler


async def shutdown_scheduler() -> None:
    """关闭定时任务调度器."""
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("定时任务调度器已关闭")
        _scheduler = None
