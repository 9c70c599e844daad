"""多源文章抓取编排."""

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from datetime import datetime

import httpx
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newsdesk.core.cache import ARTICLE_LIST_TAG, TaggedCache
from newsdesk.core.query import QuerySelector
from newsdesk.core.store import ArticleStore
from newsdesk.models.ingestion_run import IngestionRun
from newsdesk.providers.base import SourceAdapter

logger = logging.getLogger(__name__)


@dataclass
class ProviderOutcome:
    """单个新闻源的抓取结果."""

    provider: str
    status: str  # success | failed
    query: str | None = None
    count: int = 0
    skipped: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


# 正在进行的抓取数量
_active_runs = 0


def is_running() -> bool:
    """是否有抓取任务正在运行."""
    return _active_runs > 0


class IngestionOrchestrator:
    """依次驱动各新闻源：选词 -> 请求 -> 归一化 -> upsert，最后统一失效缓存."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: TaggedCache,
        adapters: Sequence[SourceAdapter],
        client: httpx.AsyncClient,
        selector: QuerySelector | None = None,
        deadline_seconds: float | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.cache = cache
        self.adapters = list(adapters)
        self.client = client
        self.selector = selector or QuerySelector()
        self.deadline_seconds = deadline_seconds

    async def run(self, explicit_term: str | None = None) -> dict[str, ProviderOutcome]:
        """执行一轮抓取，返回 {provider: outcome}.

        任一来源失败不会影响其他来源；全部结束后只做一次缓存失效。
        """
        global _active_runs
        _active_runs += 1
        started_at = datetime.utcnow()

        try:
            outcomes = await asyncio.gather(
                *(
                    self._run_provider(adapter, explicit_term, started_at)
                    for adapter in self.adapters
                )
            )
        finally:
            # 无论成败都要失效，已提交的数据不能被旧缓存遮住
            self.cache.flush_tags([ARTICLE_LIST_TAG])
            _active_runs -= 1

        results = {outcome.provider: outcome for outcome in outcomes}
        await self._record_run(explicit_term, started_at, results)

        logger.info(
            "抓取完成: "
            + ", ".join(
                f"{o.provider}={o.count if o.ok else 'failed'}" for o in outcomes
            )
        )
        return results

    async def _run_provider(
        self,
        adapter: SourceAdapter,
        explicit_term: str | None,
        started_at: datetime,
    ) -> ProviderOutcome:
        term = self.selector.select(explicit_term)
        outcome = ProviderOutcome(provider=adapter.name, status="success", query=term)

        try:
            if self.deadline_seconds:
                await asyncio.wait_for(
                    self._fetch_and_store(adapter, term, started_at, outcome),
                    timeout=self.deadline_seconds,
                )
            else:
                await self._fetch_and_store(adapter, term, started_at, outcome)
        except httpx.HTTPStatusError as e:
            outcome.status = "failed"
            outcome.error = f"HTTP {e.response.status_code}"
        except httpx.HTTPError as e:
            outcome.status = "failed"
            outcome.error = f"{type(e).__name__}: {e}"
        except TimeoutError:
            outcome.status = "failed"
            outcome.error = f"超时（{self.deadline_seconds}s）"
        except ValueError as e:
            outcome.status = "failed"
            outcome.error = f"响应不是合法 JSON: {e}"
        except Exception as e:
            outcome.status = "failed"
            outcome.error = str(e) or type(e).__name__
            logger.exception(f"[{adapter.name}] 抓取异常: {e}")

        if outcome.ok:
            logger.info(
                f"[{adapter.name}] q={term} 入库 {outcome.count} 篇，跳过 {outcome.skipped} 篇"
            )
        else:
            logger.warning(f"[{adapter.name}] q={term} 抓取失败: {outcome.error}")

        return outcome

    async def _fetch_and_store(
        self,
        adapter: SourceAdapter,
        term: str,
        started_at: datetime,
        outcome: ProviderOutcome,
    ) -> None:
        response = await self.client.get(adapter.endpoint, params=adapter.build_params(term))
        response.raise_for_status()

        items = adapter.extract_items(response.json())

        async with self.session_factory() as session:
            store = ArticleStore(session)

            for raw in items:
                try:
                    fields = adapter.normalize(raw, fallback=started_at)
                except (ValidationError, AttributeError, TypeError) as e:
                    outcome.skipped += 1
                    logger.warning(f"[{adapter.name}] 无法解析的条目: {e}")
                    continue

                if not fields.article_url:
                    outcome.skipped += 1
                    continue

                await store.upsert(fields)
                # 逐条提交，单条之后的失败不影响已入库的数据
                await session.commit()
                outcome.count += 1

    async def _record_run(
        self,
        explicit_term: str | None,
        started_at: datetime,
        results: dict[str, ProviderOutcome],
    ) -> None:
        succeeded = [o for o in results.values() if o.ok]
        if len(succeeded) == len(results):
            status = "success"
        elif succeeded:
            status = "partial"
        else:
            status = "failed"

        run = IngestionRun(
            query=explicit_term,
            status=status,
            articles_stored=sum(o.count for o in succeeded),
            provider_results=json.dumps(
                {name: asdict(o) for name, o in results.items()}, ensure_ascii=False
            ),
            started_at=started_at,
            completed_at=datetime.utcnow(),
        )
        async with self.session_factory() as session:
            session.add(run)
            await session.commit()
