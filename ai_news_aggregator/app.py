"""Typer CLI entrypoint for the AI news aggregator."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .aggregator import AggregateResult, Aggregator, SourceResult
from .config import ConfigRepository
from .errors import UnknownSourceError
from .logging_conf import application_log_path, configure_logging, tail_log

app = typer.Typer(
    help="AI news aggregator command line tool",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    aggregator: Aggregator


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    global_config = repository.load_global_config()
    configure_logging(verbose=verbose, level=global_config.log_level)
    aggregator = Aggregator(global_config)
    return AppState(repository=repository, aggregator=aggregator)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=ctx.meta.get("verbose", False))
        ctx.obj = state
    return state


def _truncate(text: str | None, width: int = 80) -> str:
    if not text:
        return "-"
    return text if len(text) <= width else text[: width - 1] + "…"


def _render_records_table(result: SourceResult) -> Table:
    table = Table(title=f"{result.label or result.source} · {result.count} items", box=box.SIMPLE_HEAD)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Title", style="cyan", overflow="fold")
    table.add_column("Description", overflow="fold")
    table.add_column("Extra", style="magenta")
    for record in result.records:
        payload = record.to_dict()
        title = payload.get("title") or payload.get("name")
        if "score" in payload:
            extra = f"{payload['score']} pts · {payload.get('time_ago') or '-'}"
        else:
            extra = payload.get("category") or "-"
        table.add_row(str(record.id), _truncate(title, 60), _truncate(payload["description"]), extra)
    return table


def _render_summary_table(result: AggregateResult) -> Table:
    table = Table(title="Aggregation result", box=box.SIMPLE_HEAD)
    table.add_column("Source", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Items", style="green", justify="right")
    table.add_column("Note", style="yellow", overflow="fold")
    for name, source_result in result.sources.items():
        status = "[green]ok[/green]" if source_result.success else "[red]failed[/red]"
        note = source_result.error or source_result.warning or ""
        table.add_row(name, status, str(source_result.count), note)
    table.add_row("Total", "", str(result.total_items), "", style="bold")
    return table


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging", is_flag=True),
) -> None:
    ctx.meta["verbose"] = verbose


@app.command("sources", help="List configured sources.")
def list_sources(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    sources = state.aggregator.config.sources
    table = Table(title=f"Sources · {len(sources)} configured", box=box.SIMPLE_HEAD)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Kind", style="magenta")
    table.add_column("Aliases")
    table.add_column("URL", style="green", overflow="fold")
    table.add_column("Enabled")
    for source in sources:
        table.add_row(
            source.name,
            source.kind.value,
            ", ".join(source.aliases) or "-",
            source.target_url,
            "yes" if source.enabled else "no",
        )
    console.print(table)


@app.command("fetch", help="Fetch and extract a single source.")
def fetch_source(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Source name or alias."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON instead of a table.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    try:
        result = state.aggregator.run_source(name)
    except UnknownSourceError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=2) from exc
    finally:
        state.aggregator.close()
    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    elif result.success:
        console.print(_render_records_table(result))
        if result.warning:
            console.print(result.warning, style="yellow")
    else:
        console.print(f"Fetch failed after {result.attempts} attempts: {result.error}", style="red")
    if not result.success:
        raise typer.Exit(code=1)


@app.command("all", help="Fetch every enabled source concurrently.")
def fetch_all(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON instead of a table.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    try:
        result = state.aggregator.aggregate()
    finally:
        state.aggregator.close()
    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        console.print(_render_summary_table(result))
    if not result.success:
        raise typer.Exit(code=1)


@app.command("serve", help="Run the HTTP API with uvicorn.")
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address."),
    port: int = typer.Option(8787, "--port", help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes.", is_flag=True),
) -> None:
    import uvicorn

    if ctx.meta.get("verbose"):
        configure_logging(verbose=True)
    console.print(f"Serving on http://{host}:{port}", style="green")
    uvicorn.run(
        "ai_news_aggregator.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


@log_app.command("show", help="Show the most recent application log lines.")
def log_show(
    tail: int = typer.Option(100, "--tail", help="Number of lines to show."),
) -> None:
    lines = tail_log(application_log_path(), tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"Application log · last {len(lines)} lines", style="cyan")
    console.print("".join(lines))


app.add_typer(log_app, name="log", help="Inspect log files")


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
