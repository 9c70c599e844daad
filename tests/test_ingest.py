"""测试多源抓取编排."""

import asyncio
import json
from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from newsdesk.core.cache import ARTICLE_LIST_TAG, TaggedCache
from newsdesk.core.ingest import IngestionOrchestrator, is_running
from newsdesk.core.query import QuerySelector
from newsdesk.models.article import Article
from newsdesk.models.ingestion_run import IngestionRun
from newsdesk.providers import GuardianAdapter, NewsApiAdapter, NewsDataAdapter

NEWSAPI_URL = "https://newsapi.test/v2/everything"
NEWSDATA_URL = "https://newsdata.test/api/1/latest"
GUARDIAN_URL = "https://guardian.test/search"


def newsapi_payload(count: int, prefix: str = "newsapi") -> dict:
    return {
        "status": "ok",
        "articles": [
            {
                "source": {"name": "TechCrunch"},
                "title": f"{prefix} title {i}",
                "description": f"{prefix} description {i}",
                "url": f"https://{prefix}.test/{i}",
                "publishedAt": "2025-02-20T10:00:00Z",
                "content": f"{prefix} content {i}",
            }
            for i in range(count)
        ],
    }


def newsdata_payload(count: int) -> dict:
    return {
        "status": "success",
        "results": [
            {
                "title": f"newsdata title {i}",
                "link": f"https://newsdata.test/{i}",
                "source_name": "BBC",
                "category": ["world"],
                "pubDate": "2025-02-21 08:00:00",
            }
            for i in range(count)
        ],
    }


def guardian_payload(count: int) -> dict:
    return {
        "response": {
            "status": "ok",
            "results": [
                {
                    "sectionName": "World news",
                    "webTitle": f"guardian title {i}",
                    "webUrl": f"https://guardian.test/{i}",
                    "webPublicationDate": "2025-02-22T12:00:00Z",
                    "fields": {"body": "body", "trailText": "trail"},
                }
                for i in range(count)
            ],
        }
    }


Handler = Callable[[httpx.Request], httpx.Response]


def make_transport(routes: dict[str, Handler]) -> httpx.MockTransport:
    """按 host 路由到各自的假响应."""

    def handler(request: httpx.Request) -> httpx.Response:
        return routes[request.url.host](request)

    return httpx.MockTransport(handler)


def respond(status: int, payload: dict | None = None) -> Handler:
    return lambda request: httpx.Response(status, json=payload or {})


@pytest.fixture
def adapters() -> list:
    return [
        NewsApiAdapter(endpoint=NEWSAPI_URL, api_key="k1"),
        NewsDataAdapter(endpoint=NEWSDATA_URL, api_key="k2"),
        GuardianAdapter(endpoint=GUARDIAN_URL, api_key="k3"),
    ]


@pytest_asyncio.fixture
async def build_orchestrator(
    session_factory: async_sessionmaker[AsyncSession],
    cache: TaggedCache,
    adapters: list,
):
    """按路由构造编排器."""
    clients: list[httpx.AsyncClient] = []

    def _build(routes: dict[str, Handler], **kwargs: object) -> IngestionOrchestrator:
        client = httpx.AsyncClient(transport=make_transport(routes))
        clients.append(client)
        return IngestionOrchestrator(
            session_factory=session_factory,
            cache=cache,
            adapters=adapters,
            client=client,
            **kwargs,
        )

    yield _build

    for client in clients:
        await client.aclose()


async def count_articles(session_factory: async_sessionmaker[AsyncSession]) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(Article))
        return result.scalar_one()


class TestRun:
    """测试一轮抓取."""

    async def test_partial_failure_scenario(
        self,
        build_orchestrator,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """A 返回 5 条、B 返回 500、C 返回 3 条."""
        orchestrator = build_orchestrator(
            {
                "newsapi.test": respond(200, newsapi_payload(5)),
                "newsdata.test": respond(500, {"status": "error"}),
                "guardian.test": respond(200, guardian_payload(3)),
            }
        )

        outcomes = await orchestrator.run()

        assert outcomes["NewsAPI"].ok
        assert outcomes["NewsAPI"].count == 5
        assert not outcomes["NewsData.Io"].ok
        assert outcomes["NewsData.Io"].error == "HTTP 500"
        assert outcomes["The Guardian"].ok
        assert outcomes["The Guardian"].count == 3
        assert await count_articles(session_factory) == 8

    async def test_rerun_is_idempotent(
        self,
        build_orchestrator,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """重复抓取相同 URL 不会产生重复行，只刷新字段."""
        routes = {
            "newsapi.test": respond(200, newsapi_payload(4)),
            "newsdata.test": respond(200, newsdata_payload(2)),
            "guardian.test": respond(200, guardian_payload(1)),
        }
        await build_orchestrator(routes).run("technology")
        assert await count_articles(session_factory) == 7

        updated = newsapi_payload(4, prefix="newsapi")
        for item in updated["articles"]:
            item["title"] = "refreshed"
        routes["newsapi.test"] = respond(200, updated)
        await build_orchestrator(routes).run("technology")

        assert await count_articles(session_factory) == 7
        async with session_factory() as session:
            result = await session.execute(
                select(Article).where(Article.provider == "NewsAPI")
            )
            assert {a.title for a in result.scalars().all()} == {"refreshed"}

    async def test_explicit_term_used_for_every_provider(self, build_orchestrator) -> None:
        seen: list[str] = []

        def capture(payload: dict) -> Handler:
            def handler(request: httpx.Request) -> httpx.Response:
                seen.append(request.url.params["q"])
                return httpx.Response(200, json=payload)

            return handler

        orchestrator = build_orchestrator(
            {
                "newsapi.test": capture(newsapi_payload(0)),
                "newsdata.test": capture(newsdata_payload(0)),
                "guardian.test": capture(guardian_payload(0)),
            }
        )
        outcomes = await orchestrator.run("climate")

        assert seen == ["climate"] * 3
        assert {o.query for o in outcomes.values()} == {"climate"}

    async def test_provider_params_are_sent(self, build_orchestrator) -> None:
        requests: dict[str, httpx.Request] = {}

        def capture(request: httpx.Request) -> httpx.Response:
            requests[request.url.host] = request
            return httpx.Response(200, json={})

        orchestrator = build_orchestrator(
            {host: capture for host in ("newsapi.test", "newsdata.test", "guardian.test")}
        )
        await orchestrator.run("science")

        assert requests["newsapi.test"].url.params["apiKey"] == "k1"
        assert requests["newsapi.test"].url.params["pageSize"] == "20"
        assert requests["newsdata.test"].url.params["apiKey"] == "k2"
        assert requests["guardian.test"].url.params["api-key"] == "k3"
        assert requests["guardian.test"].url.params["show-fields"] == (
            "body,trailText,byline,thumbnail"
        )

    async def test_network_error_does_not_block_siblings(
        self,
        build_orchestrator,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        orchestrator = build_orchestrator(
            {
                "newsapi.test": unreachable,
                "newsdata.test": slow,
                "guardian.test": respond(200, guardian_payload(2)),
            }
        )
        outcomes = await orchestrator.run()

        assert "ConnectError" in (outcomes["NewsAPI"].error or "")
        assert "ReadTimeout" in (outcomes["NewsData.Io"].error or "")
        assert outcomes["The Guardian"].count == 2
        assert await count_articles(session_factory) == 2

    async def test_invalid_json_is_a_provider_failure(self, build_orchestrator) -> None:
        orchestrator = build_orchestrator(
            {
                "newsapi.test": lambda request: httpx.Response(200, text="<html>"),
                "newsdata.test": respond(200, newsdata_payload(1)),
                "guardian.test": respond(200, guardian_payload(1)),
            }
        )
        outcomes = await orchestrator.run()

        assert not outcomes["NewsAPI"].ok
        assert outcomes["NewsData.Io"].count == 1
        assert outcomes["The Guardian"].count == 1

    async def test_items_without_url_are_skipped(
        self,
        build_orchestrator,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        payload = newsapi_payload(2)
        payload["articles"].append({"title": "no url"})

        orchestrator = build_orchestrator(
            {
                "newsapi.test": respond(200, payload),
                "newsdata.test": respond(200, newsdata_payload(0)),
                "guardian.test": respond(200, guardian_payload(0)),
            }
        )
        outcomes = await orchestrator.run()

        assert outcomes["NewsAPI"].count == 2
        assert outcomes["NewsAPI"].skipped == 1
        assert await count_articles(session_factory) == 2

    async def test_records_run(
        self,
        build_orchestrator,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        orchestrator = build_orchestrator(
            {
                "newsapi.test": respond(200, newsapi_payload(1)),
                "newsdata.test": respond(503),
                "guardian.test": respond(200, guardian_payload(1)),
            }
        )
        await orchestrator.run("ai")

        async with session_factory() as session:
            run = (await session.execute(select(IngestionRun))).scalar_one()

        assert run.status == "partial"
        assert run.query == "ai"
        assert run.articles_stored == 2
        assert run.completed_at is not None
        assert json.loads(run.provider_results)["NewsData.Io"]["error"] == "HTTP 503"


class TestCacheInvalidation:
    """测试抓取后的缓存失效."""

    async def test_flushes_article_group_once(
        self, build_orchestrator, cache: TaggedCache, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[list[str]] = []
        original = cache.flush_tags

        def spy(tags):
            calls.append(list(tags))
            return original(tags)

        monkeypatch.setattr(cache, "flush_tags", spy)

        orchestrator = build_orchestrator(
            {
                "newsapi.test": respond(200, newsapi_payload(3)),
                "newsdata.test": respond(200, newsdata_payload(3)),
                "guardian.test": respond(200, guardian_payload(3)),
            }
        )
        await orchestrator.run()

        assert calls == [[ARTICLE_LIST_TAG]]

    async def test_flushes_even_when_all_providers_fail(
        self, build_orchestrator, cache: TaggedCache
    ) -> None:
        cache.set("article_abc", {"title": "stale"}, 60, [ARTICLE_LIST_TAG])
        cache.set("user_preference_1", {"preferred_sources": "BBC"}, 60)

        orchestrator = build_orchestrator(
            {host: respond(500) for host in ("newsapi.test", "newsdata.test", "guardian.test")}
        )
        outcomes = await orchestrator.run()

        assert not any(o.ok for o in outcomes.values())
        assert "article_abc" not in cache
        assert cache.get("user_preference_1") == {"preferred_sources": "BBC"}


async def test_random_term_per_provider(build_orchestrator) -> None:
    """未指定搜索词时，每个来源独立随机."""
    import random

    selector = QuerySelector(topics=["a", "b", "c"], rng=random.Random(3))
    orchestrator = build_orchestrator(
        {host: respond(200) for host in ("newsapi.test", "newsdata.test", "guardian.test")},
        selector=selector,
    )
    outcomes = await orchestrator.run()

    assert all(o.query in {"a", "b", "c"} for o in outcomes.values())


class TestDeadline:
    """测试单个来源超出截止时间."""

    async def test_slow_provider_times_out(
        self,
        build_orchestrator,
        cache: TaggedCache,
        session_factory: async_sessionmaker[AsyncSession],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        calls: list[list[str]] = []
        original = cache.flush_tags

        def spy(tags):
            calls.append(list(tags))
            return original(tags)

        monkeypatch.setattr(cache, "flush_tags", spy)

        async def hang(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json=newsapi_payload(1))

        orchestrator = build_orchestrator(
            {
                "newsapi.test": hang,
                "newsdata.test": respond(200, newsdata_payload(2)),
                "guardian.test": respond(200, guardian_payload(1)),
            },
            deadline_seconds=0.05,
        )
        outcomes = await orchestrator.run()

        assert outcomes["NewsAPI"].status == "failed"
        assert "0.05" in (outcomes["NewsAPI"].error or "")
        assert outcomes["NewsData.Io"].count == 2
        assert outcomes["The Guardian"].count == 1
        assert await count_articles(session_factory) == 3
        assert calls == [[ARTICLE_LIST_TAG]]


async def test_overlapping_runs_keep_running_flag(build_orchestrator) -> None:
    """先结束的一轮不会清掉仍在进行的一轮."""
    entered = asyncio.Event()
    release = asyncio.Event()

    async def gated(request: httpx.Request) -> httpx.Response:
        entered.set()
        await release.wait()
        return httpx.Response(200, json=newsapi_payload(0))

    empty = {
        "newsdata.test": respond(200, newsdata_payload(0)),
        "guardian.test": respond(200, guardian_payload(0)),
    }
    slow = build_orchestrator({"newsapi.test": gated, **empty})
    fast = build_orchestrator({"newsapi.test": respond(200, newsapi_payload(0)), **empty})

    assert not is_running()
    task = asyncio.create_task(slow.run())
    await entered.wait()

    await fast.run()
    assert is_running()

    release.set()
    await task
    assert not is_running()
