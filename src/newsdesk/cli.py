"""命令行入口."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from newsdesk.config import get_settings
from newsdesk.core.cache import TaggedCache
from newsdesk.core.ingest import ProviderOutcome
from newsdesk.models.database import close_db, init_db
from newsdesk.scheduler.tasks import run_ingestion

console = Console()
app = typer.Typer(
    name="newsdesk",
    help="Newsdesk - 新闻聚合",
    no_args_is_help=True,
)


async def _fetch(query: str | None) -> dict[str, ProviderOutcome]:
    settings = get_settings()
    await init_db(settings.database_url)
    try:
        # 独立进程的缓存，服务端缓存依靠 TTL 过期
        return await run_ingestion(TaggedCache(), query, settings=settings)
    finally:
        await close_db()


@app.command("fetch")
def fetch_command(
    query: str | None = typer.Option(
        None,
        "--q",
        "-q",
        help="搜索词，不填则每个来源随机选择主题",
    ),
) -> None:
    """从全部新闻源抓取并入库."""
    outcomes = asyncio.run(_fetch(query))

    table = Table(title="抓取结果")
    table.add_column("Provider", style="cyan")
    table.add_column("Query", style="magenta")
    table.add_column("Stored", style="green")
    table.add_column("Skipped", style="yellow")
    table.add_column("Error", style="red")

    for outcome in outcomes.values():
        table.add_row(
            outcome.provider,
            outcome.query or "",
            str(outcome.count) if outcome.ok else "-",
            str(outcome.skipped),
            outcome.error or "",
        )
    console.print(table)

    if not any(o.ok for o in outcomes.values()):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
