"""抓取 API."""

import json
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from newsdesk.api.deps import get_cache, get_current_user
from newsdesk.api.responses import success_response
from newsdesk.core.cache import TaggedCache
from newsdesk.core.idcodec import IdCodec, get_codec
from newsdesk.core.ingest import is_running
from newsdesk.models.database import get_session
from newsdesk.models.ingestion_run import IngestionRun
from newsdesk.scheduler.tasks import run_ingestion

router = APIRouter(
    prefix="/api/ingest", tags=["ingest"], dependencies=[Depends(get_current_user)]
)


@router.post("")
async def trigger_ingest(
    q: str | None = Query(None, description="指定搜索词，不填则随机选择主题"),
    cache: TaggedCache = Depends(get_cache),
) -> JSONResponse:
    """手动触发一轮抓取."""
    if is_running():
        raise HTTPException(status_code=409, detail="已有抓取任务在运行中")

    outcomes = await run_ingestion(cache, q)
    return success_response(
        {name: asdict(outcome) for name, outcome in outcomes.items()},
        "Articles fetched",
    )


@router.get("/runs")
async def list_runs(
    limit: int = Query(5, ge=1, le=50),
    session: AsyncSession = Depends(get_session),
    codec: IdCodec = Depends(get_codec),
) -> JSONResponse:
    """获取最近的抓取记录."""
    stmt = select(IngestionRun).order_by(IngestionRun.started_at.desc()).limit(limit)
    result = await session.execute(stmt)
    runs = result.scalars().all()

    return success_response(
        [
            {
                "x_id": codec.encode(r.id),
                "query": r.query,
                "status": r.status,
                "articles_stored": r.articles_stored,
                "provider_results": json.loads(r.provider_results)
                if r.provider_results
                else {},
                "started_at": r.started_at.isoformat(),
                "completed_at": r.completed_at.isoformat() if r.completed_at else None,
            }
            for r in runs
        ],
        "Ingestion runs retrieved successfully",
    )
