"""
quotesmith.cli - Typer CLI entry point.

Provides the generate, library, topics, and init-config commands.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from rich.table import Table

from quotesmith import __version__
from quotesmith.config import CONFIG_FILENAME, create_default_config, load_config, write_config
from quotesmith.exceptions import ConfigError, MediaProbeError, ValidationFault
from quotesmith.library import ALL_CATEGORY, QuoteLibrary, load_library
from quotesmith.logging import configure_logging
from quotesmith.media import probe_duration
from quotesmith.models import AnalysisStatus, GenerationResult, QuoteRecord
from quotesmith.orchestrator import GenerationOrchestrator
from quotesmith.progress import stage_caption
from quotesmith.rotation import RotationScheduler
from quotesmith.utils import format_duration, format_size_mb

app = typer.Typer(
    name="quotesmith",
    help="Turn a short video or a topic into heart-piercing quotes.\n\n"
    "Also browses a rotating library of built-in quotes.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"quotesmith {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Quotesmith - AI quote generation from video or topic."""
    configure_logging(verbose)


def _print_result(result: GenerationResult, set_number: int, has_video: bool) -> None:
    heading = "原视频内容摘要" if has_video else "创作主题背景"
    console.print(f"\n[bold magenta]第 {set_number} 组[/bold magenta]")
    console.print(f"[dim]{heading}[/dim]")
    console.print(result.summary_text)
    console.print()
    for index, quote in enumerate(result.quotes, start=1):
        console.print(f"[cyan]{index}.[/cyan] {quote}")


async def _run_generation(orchestrator: GenerationOrchestrator, sets: int) -> int:
    """Run `sets` generations in the same context. Returns the number that succeeded."""
    succeeded = 0
    for set_number in range(1, sets + 1):
        run = orchestrator.submit if set_number == 1 else orchestrator.another_set
        task = asyncio.create_task(run())
        with console.status("") as status:
            while not task.done():
                value = orchestrator.progress.value
                status.update(f"{stage_caption(value)} {int(value)}%")
                await asyncio.sleep(0.1)
        result = await task

        if orchestrator.status is AnalysisStatus.FAILED or result is None:
            console.print(f"[red]Error: {orchestrator.error}[/red]")
            break

        _print_result(result, set_number, orchestrator.ingest.asset is not None)
        succeeded += 1
    return succeeded


@app.command("generate")
def generate(
    video: Path | None = typer.Option(None, "--video", "-V", help="Video file to analyze"),
    topic: str | None = typer.Option(None, "--topic", "-t", help="Topic to write about"),
    length: str | None = typer.Option(
        None,
        "--length",
        "-l",
        help="Length bucket: xs, s, m, l, xl, xxl (or 10s, 15s, 25s, 60s, 3m, 5m)",
    ),
    sets: int = typer.Option(1, "--sets", "-n", min=1, help="Number of sets to generate"),
) -> None:
    """Generate quotes from a video and/or a topic.

    Extra sets reuse the same context and avoid repeating earlier quotes.
    """
    try:
        config = load_config()
        orchestrator = GenerationOrchestrator.from_config(config)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    try:
        if video is not None:
            asset = orchestrator.upload(video.expanduser().resolve())
            try:
                asset = orchestrator.report_duration(probe_duration(asset.path))
            except MediaProbeError as e:
                console.print(f"[yellow]Warning: duration unknown ({e})[/yellow]")
            console.print(
                f"[dim]{asset.path.name} · {format_duration(asset.duration_seconds)} · "
                f"{format_size_mb(asset.byte_size)}[/dim]"
            )
        if topic:
            orchestrator.set_topic(topic)
        if length:
            orchestrator.set_length(length)

        succeeded = asyncio.run(_run_generation(orchestrator, sets))
    except (ValidationFault, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        orchestrator.close()

    if succeeded < sets:
        raise typer.Exit(1)


def _quote_table(quotes: list[QuoteRecord], title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Quote", style="white")
    table.add_column("Category", style="magenta")
    for quote in quotes:
        table.add_row(str(quote.id), quote.text, quote.category)
    if not quotes:
        table.add_row("", "[dim]该分类下暂无相关语录[/dim]", "")
    return table


def _library_view(scheduler: RotationScheduler) -> Table:
    if scheduler.searching:
        return _quote_table(scheduler.display(), "Search results")
    return _quote_table(
        scheduler.display(),
        f"{scheduler.category} · 下次刷新: {format_duration(scheduler.countdown)}",
    )


async def _watch_library(scheduler: RotationScheduler) -> None:
    scheduler.start()
    try:
        with Live(_library_view(scheduler), console=console, refresh_per_second=2) as live:
            while True:
                await asyncio.sleep(0.5)
                live.update(_library_view(scheduler))
    finally:
        scheduler.stop()


@app.command("library")
def library(
    category: str = typer.Option(ALL_CATEGORY, "--category", "-c", help="Category to show"),
    search: str = typer.Option("", "--search", "-s", help="Search the whole collection"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Keep rotating until Ctrl-C"),
) -> None:
    """Show a random page of built-in quotes."""
    try:
        config = load_config()
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    quote_library = load_library()

    scheduler = RotationScheduler(
        quote_library,
        period_seconds=config.rotation_period_seconds,
        page_size=config.page_size,
    )
    try:
        scheduler.select_category(category)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print(f"[dim]Categories: {', '.join(quote_library.categories)}[/dim]")
        raise typer.Exit(1)
    scheduler.set_search(search)

    if not watch:
        console.print(_library_view(scheduler))
        return

    try:
        asyncio.run(_watch_library(scheduler))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")


def _topics_table(quote_library: QuoteLibrary) -> Table:
    table = Table(title="Suggested topics")
    table.add_column("Topic", style="cyan")
    for topic in quote_library.hot_topics:
        table.add_row(topic)
    return table


@app.command("topics")
def topics() -> None:
    """List suggested topics and library categories."""
    quote_library = load_library()
    console.print(_topics_table(quote_library))
    console.print(f"\nCategories: {', '.join(quote_library.categories)}")


@app.command("init-config")
def init_config(
    path: str = typer.Option(".", "--path", "-d", help="Directory to write the config into"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
) -> None:
    """Write a default quotesmith.yaml."""
    config_path = Path(path) / CONFIG_FILENAME
    if config_path.exists() and not force:
        console.print(f"[red]Error: '{config_path}' already exists[/red]")
        raise typer.Exit(1)

    write_config(create_default_config(), config_path)
    console.print(f"[green]✓[/green] Wrote {config_path}")
    console.print("[dim]Set GEMINI_API_KEY in your environment before generating.[/dim]")
