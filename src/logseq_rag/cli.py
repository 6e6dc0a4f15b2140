from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel

from .config import Settings, get_settings
from .embeddings import create_embeddings_client
from .indexing import VectorIndexer
from .llms import create_llm_client
from .observability import LoggingMetricsHook
from .parsers import LogseqParser
from .querying import QueryHandler, SearchResult, VectorRetriever
from .querying.query_handler import format_date
from .sync import SyncReport, SyncService

console = Console()
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logseq-rag",
        description="Index a Logseq vault and ask questions about your notes.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser(
        "sync", help="Parse, chunk and index the vault into Qdrant."
    )
    sync_parser.add_argument(
        "mode",
        nargs="?",
        choices=["full", "incremental"],
        default="full",
        help="full: every page; incremental: recently modified pages (default: full).",
    )
    sync_parser.add_argument(
        "--since-hours",
        type=float,
        default=24.0,
        help="Incremental mode: pages modified within this many hours (default: 24).",
    )

    query_parser = subparsers.add_parser("query", help="Ask a question about your notes.")
    query_parser.add_argument("question", nargs="+", help="Question to ask.")
    query_parser.add_argument(
        "--show-context",
        action="store_true",
        help="Show the retrieved context chunks before the answer.",
    )
    query_parser.add_argument(
        "--no-stream",
        action="store_true",
        help="Wait for the full answer instead of streaming it.",
    )
    query_parser.add_argument(
        "--top-k",
        type=int,
        default=None,
        help="Number of context chunks to retrieve (default: TOP_K_RESULTS).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        raise SystemExit(f"Invalid configuration:\n{e}") from e

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "sync":
        try:
            report = asyncio.run(run_sync(settings, args.mode, args.since_hours))
        except Exception:
            logger.exception("Sync failed")
            return 1
        print_sync_report(report)
        return 0 if report.ok else 1

    question = " ".join(args.question).strip()
    if not question:
        raise SystemExit("Please provide a question")
    try:
        return asyncio.run(
            run_query(
                settings,
                question,
                top_k=args.top_k,
                show_context=args.show_context,
                stream=not args.no_stream,
            )
        )
    except Exception:
        logger.exception("Query failed")
        return 1


async def run_sync(settings: Settings, mode: str, since_hours: float) -> SyncReport:
    if settings.logseq_path is None:
        raise SystemExit("LOGSEQ_PATH is required for sync")

    metrics_hook = LoggingMetricsHook()
    embeddings = create_embeddings_client(settings.embeddings_config(), metrics_hook)
    store = settings.create_vector_store(metrics_hook, vector_size=embeddings.dimensions)
    indexer = VectorIndexer(
        embeddings=embeddings,
        store=store,
        batch_size=settings.index_batch_size,
        metrics_hook=metrics_hook,
    )
    service = SyncService(
        parser=LogseqParser(settings.logseq_path),
        chunker=settings.create_chunker(metrics_hook),
        indexer=indexer,
        metrics_hook=metrics_hook,
    )

    console.print(f"[bold green]Starting {mode} sync of {settings.logseq_path}[/bold green]")
    try:
        if mode == "incremental":
            since = datetime.now(timezone.utc) - timedelta(hours=since_hours)
            return await service.incremental_sync(since)
        return await service.full_sync()
    finally:
        await store.close()


async def run_query(
    settings: Settings,
    question: str,
    *,
    top_k: int | None,
    show_context: bool,
    stream: bool,
) -> int:
    metrics_hook = LoggingMetricsHook()
    embeddings = create_embeddings_client(settings.embeddings_config(), metrics_hook)
    store = settings.create_vector_store(metrics_hook, vector_size=embeddings.dimensions)
    retriever = VectorRetriever(
        embeddings=embeddings,
        store=store,
        default_top_k=settings.top_k_results,
        metrics_hook=metrics_hook,
    )
    handler = QueryHandler(
        llm=create_llm_client(settings.llm_config(), metrics_hook),
        max_tokens=settings.max_response_tokens,
    )

    console.print(f"[green]Searching for:[/green] {question!r}")
    try:
        results = await retriever.search(question, top_k=top_k)
    finally:
        await store.close()

    if not results:
        console.print("[yellow]No relevant context found in the knowledge base.[/yellow]")
        console.print("Try syncing your Logseq notes first with: logseq-rag sync")
        return 0

    console.print(f"[green]Found {len(results)} relevant chunks[/green]")
    if show_context:
        print_context(results)

    console.rule("[bold green]Answer[/bold green]")
    if stream:
        async for token in handler.stream_query(question, results):
            console.out(token, end="", highlight=False)
        console.out("")
    else:
        console.print(await handler.query(question, results))
    return 0


def print_context(results: list[SearchResult]) -> None:
    for index, result in enumerate(results, start=1):
        metadata = result.chunk.metadata
        preview = result.chunk.content[:150]
        console.print(
            Panel(
                f"{preview}...",
                title=f"[{index}] {metadata.title} ({format_date(metadata.date) or 'Unknown'})",
                subtitle=f"relevance={result.score * 100:.1f}%",
                expand=False,
            )
        )


def print_sync_report(report: SyncReport) -> None:
    console.print(
        f"[bold]{report.mode}[/bold] sync: {len(report.indexed)} pages, "
        f"{report.total_chunks} chunks"
    )
    for path, error in report.failed.items():
        console.print(f"[red]Failed:[/red] {path}: {error}")
    if report.ok:
        console.print("[bold green]Sync complete![/bold green]")


if __name__ == "__main__":
    sys.exit(main())
