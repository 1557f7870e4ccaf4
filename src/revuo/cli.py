"""CLI interface using Typer."""

import logging
import os
import traceback
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from revuo import __version__
from revuo.cache import ResultCache
from revuo.config import Settings, load_config
from revuo.errors import ReviewError, format_error
from revuo.files import FileError
from revuo.models import Category, ReviewResult
from revuo.output import RunSummary, get_formatter
from revuo.providers import MODELS, CredentialResolver, models_for_provider
from revuo.ratelimit import RateTracker
from revuo.review import run_review
from revuo.session import SessionOptions, SessionStore
from revuo.storage import JsonDirectoryStore

app = typer.Typer(
  name="revuo",
  help="Multi-model AI code review with caching, fallback and resumable sessions",
  no_args_is_help=True,
)
cache_app = typer.Typer(help="Inspect and maintain the review cache")
app.add_typer(cache_app, name="cache")

console = Console()
err_console = Console(stderr=True)


def _is_debug() -> bool:
  return os.environ.get("REVUO_DEBUG", "").lower() in ("1", "true", "yes")


def _setup_logging(debug: bool) -> None:
  logging.basicConfig(
    level=logging.DEBUG if debug else logging.WARNING,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=err_console, show_path=debug, rich_tracebacks=debug)],
    force=True,
  )


def _load_settings(config: Path | None) -> Settings:
  try:
    return load_config(config)
  except (FileNotFoundError, ValueError) as e:
    err_console.print(f"[red]Error:[/red] {escape(str(e))}")
    raise typer.Exit(1) from None


def version_callback(value: bool) -> None:
  if value:
    console.print(f"revuo {__version__}")
    raise typer.Exit()


@app.callback()
def main(
  version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
) -> None:
  """Review source files with one or more LLM providers."""


@app.command()
def review(
  paths: list[str] = typer.Argument(..., help="Files, directories or glob patterns to review"),
  category: Optional[Category] = typer.Option(None, "--category", help="Review focus"),
  concurrency: Optional[int] = typer.Option(
    None, "--concurrency", "-j", min=1, help="Files reviewed at the same time"
  ),
  model: str = typer.Option(None, "--model", "-m", help="Use one model key (see `revuo status`)"),
  fallback: Optional[bool] = typer.Option(
    None, "--fallback/--no-fallback", help="Walk the configured fallback_models chain"
  ),
  compare: bool = typer.Option(False, "--compare", help="Query up to three models and merge"),
  no_cache: bool = typer.Option(False, "--no-cache", help="Ignore and do not update the cache"),
  resume: bool = typer.Option(False, "--resume", "-r", help="Resume an interrupted session"),
  session_id: str = typer.Option(None, "--session-id", help="Session to resume"),
  format_type: str = typer.Option("terminal", "--format", help="Output format: terminal, json"),
  config: Path = typer.Option(None, "--config", "-c", help="Config file path"),
  debug: bool = typer.Option(False, "--debug", "-d", help="Verbose logs and full tracebacks"),
) -> None:
  """Review files, reusing cached results and falling back across models."""
  show_traceback = debug or _is_debug()
  _setup_logging(show_traceback)

  try:
    formatter = get_formatter(format_type, console)
  except ValueError as e:
    err_console.print(f"[red]Error:[/red] {escape(str(e))}")
    raise typer.Exit(1) from None

  options = SessionOptions(
    resume=resume or session_id is not None,
    session_id=session_id,
    output_format=format_type,
    no_cache=no_cache,
  )

  progress = Progress(
    SpinnerColumn(),
    TextColumn("{task.description}"),
    BarColumn(),
    MofNCompleteColumn(),
    console=err_console,
    transient=True,
    disable=format_type != "terminal",
  )
  task = progress.add_task("Reviewing", total=None)

  def on_progress(index: int, total: int, result: ReviewResult) -> None:
    progress.update(task, completed=index, total=total, description=result.file_path)

  try:
    with progress:
      outcome = run_review(
        paths,
        category=category,
        model=model,
        fallback=fallback,
        compare=compare or None,
        concurrency=concurrency,
        no_cache=no_cache,
        options=options,
        config_path=config,
        on_progress=on_progress,
      )
  except ReviewError as e:
    err_console.print(f"[red]Error:[/red] {escape(format_error(e))}")
    raise typer.Exit(1) from None
  except (FileError, FileNotFoundError, ValueError) as e:
    err_console.print(f"[red]Error:[/red] {escape(str(e))}")
    raise typer.Exit(1) from None
  except Exception as e:
    err_console.print(f"[red]Error:[/red] {escape(str(e))}")
    if show_traceback:
      err_console.print("\n[dim]Traceback:[/dim]")
      err_console.print(escape(traceback.format_exc()))
    raise typer.Exit(1) from None

  if outcome.resumed:
    err_console.print(f"[dim]Resumed session with {outcome.resumed} completed files[/dim]")
  for failure in outcome.failures:
    err_console.print(f"[yellow]Failed:[/yellow] {failure.file.relative_path}")
    err_console.print(f"[dim]{escape(format_error(failure.error))}[/dim]")

  summary = RunSummary.from_results(outcome.results, len(outcome.failures), outcome.cache_stats)
  output = formatter.format(outcome.results, summary)
  if output:
    console.print(output, markup=False, highlight=False)

  if outcome.pending:
    err_console.print(
      f"\n[yellow]{outcome.pending} files still pending.[/yellow] "
      f"Resume with: revuo review {' '.join(paths)} --session-id {outcome.session_id}"
    )
  if outcome.failures and not outcome.results:
    raise typer.Exit(1)


@app.command()
def status(
  config: Path = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
  """Show authenticated providers and model limits."""
  _setup_logging(_is_debug())
  settings = _load_settings(config)
  resolver = CredentialResolver(use_claude_cli=settings.use_claude_cli)
  statuses = {s.name: s for s in resolver.get_status()}

  console.print("[bold]Providers[/bold]")
  for s in statuses.values():
    mark = "[green]\\[ok][/green]" if s.available else "[dim]\\[--][/dim]"
    method = f" ({s.auth_method.value})" if s.auth_method else ""
    console.print(f"  {mark} {s.name}: {s.reason}{method}")
    console.print(f"       [dim]{', '.join(models_for_provider(s.name))}[/dim]")

  tracker = RateTracker()
  table = Table(title="Models", title_justify="left")
  table.add_column("Key")
  table.add_column("Provider")
  table.add_column("Available")
  table.add_column("Requests/min", justify="right")
  table.add_column("Tokens/min", justify="right")
  table.add_column("Price in/out ($/M)", justify="right")
  table.add_column("Cost/speed")
  table.add_column("Strengths")
  for key, spec in MODELS.items():
    snapshot = tracker.snapshot(key)
    available = statuses.get(spec.provider)
    table.add_row(
      key,
      spec.provider,
      "[green]yes[/green]" if available and available.available else "[dim]no[/dim]",
      f"{spec.requests_per_minute - snapshot.requests_this_minute}/{spec.requests_per_minute}",
      f"{spec.tokens_per_minute - snapshot.tokens_this_minute:,}",
      "free" if spec.is_free else f"{spec.input_price:g}/{spec.output_price:g}",
      f"{spec.cost_tier}/{spec.speed_tier}",
      ", ".join(spec.strengths),
    )
  console.print()
  console.print(table)


@app.command()
def sessions(
  config: Path = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
  """List resumable sessions."""
  _setup_logging(_is_debug())
  settings = _load_settings(config)
  store = SessionStore(JsonDirectoryStore(Path.cwd() / settings.session_dir))
  summaries = store.list_sessions()
  if not summaries:
    console.print("No saved sessions.")
    return

  table = Table(show_header=True, header_style="bold")
  table.add_column("Session")
  table.add_column("Category")
  table.add_column("Target")
  table.add_column("Started")
  table.add_column("Progress", justify="right")
  for s in summaries:
    table.add_row(
      s.id,
      s.category.value,
      s.target_path,
      s.started_at.strftime("%Y-%m-%d %H:%M"),
      f"{s.progress.completed}/{s.progress.total} ({s.progress.percentage}%)",
    )
  console.print(table)


def _open_cache(config: Path | None) -> ResultCache:
  settings = _load_settings(config)
  return ResultCache(JsonDirectoryStore(Path.cwd() / settings.cache_dir))


@cache_app.command("stats")
def cache_stats(
  config: Path = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
  """Show cache size."""
  _setup_logging(_is_debug())
  info = _open_cache(config).info()
  console.print(f"Entries: {info.entry_count}")
  console.print(f"Size on disk: {info.size_label}")


@cache_app.command("clear")
def cache_clear(
  config: Path = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
  """Delete every cached result."""
  _setup_logging(_is_debug())
  cache = _open_cache(config)
  count = len(cache)
  cache.clear()
  console.print(f"Cleared {count} cached results.")


@cache_app.command("clean")
def cache_clean(
  config: Path = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
  """Delete cached results older than the retention window."""
  _setup_logging(_is_debug())
  removed = _open_cache(config).evict_expired()
  console.print(f"Removed {removed} expired cached results.")


if __name__ == "__main__":
  app()
