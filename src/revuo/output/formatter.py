"""Output formatting for review results."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from revuo.models import CacheStats, ReviewResult


@dataclass(frozen=True)
class RunSummary:
  """Totals for one review run."""

  files_reviewed: int
  with_issues: int
  clean: int
  failed: int
  input_tokens: int
  output_tokens: int
  models: dict[str, int]
  cache: CacheStats | None = None

  @property
  def total_tokens(self) -> int:
    return self.input_tokens + self.output_tokens

  @classmethod
  def from_results(
    cls,
    results: list[ReviewResult],
    failed: int = 0,
    cache: CacheStats | None = None,
  ) -> "RunSummary":
    models: dict[str, int] = {}
    for r in results:
      models[r.model] = models.get(r.model, 0) + 1
    with_issues = sum(1 for r in results if r.has_issues)
    return cls(
      files_reviewed=len(results),
      with_issues=with_issues,
      clean=len(results) - with_issues,
      failed=failed,
      input_tokens=sum(r.tokens.input for r in results),
      output_tokens=sum(r.tokens.output for r in results),
      models=models,
      cache=cache,
    )


class OutputFormatter(ABC):
  """Base output formatter."""

  @abstractmethod
  def format(self, results: list[ReviewResult], summary: RunSummary) -> str:
    """Format review results for output."""
    ...


class TerminalFormatter(OutputFormatter):
  """Rich terminal output formatter."""

  def __init__(self, console: Console | None = None):
    self.console = console or Console()

  def format(self, results: list[ReviewResult], summary: RunSummary) -> str:
    for result in results:
      self._print_result(result)
    self._print_summary(summary)
    return ""

  def _print_result(self, result: ReviewResult) -> None:
    style = "yellow" if result.has_issues else "green"
    self.console.print()
    self.console.print(Panel(
      Markdown(result.feedback),
      title=f"[bold]{self._make_file_link(result.file_path)}[/bold]",
      subtitle=f"{result.model} | {result.tokens.total:,} tokens | {result.latency_ms}ms",
      border_style=style,
    ))

  def _print_summary(self, summary: RunSummary) -> None:
    table = Table(show_header=False, title="Review summary", title_justify="left")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Files reviewed", str(summary.files_reviewed))
    table.add_row("With issues", f"[yellow]{summary.with_issues}[/yellow]")
    table.add_row("Clean", f"[green]{summary.clean}[/green]")
    if summary.failed:
      table.add_row("Failed", f"[red]{summary.failed}[/red]")
    table.add_row("Tokens", f"{summary.total_tokens:,}")
    if summary.models:
      table.add_row("Models", ", ".join(f"{m} ({n})" for m, n in summary.models.items()))
    if summary.cache and summary.cache.cached_files:
      table.add_row(
        "Cache hits",
        f"{summary.cache.cached_files} ({summary.cache.hit_rate:.0f}%, saved ~{summary.cache.time_saved})",
      )

    self.console.print()
    self.console.print(table)

  def _make_file_link(self, file_path: str) -> str:
    """Create a clickable file link for terminals that support hyperlinks."""
    url = Path(file_path).resolve().as_uri()
    return f"[link={url}]{file_path}[/link]"


class JsonFormatter(OutputFormatter):
  """JSON output formatter."""

  def format(self, results: list[ReviewResult], summary: RunSummary) -> str:
    data = {
      "summary": {
        "files_reviewed": summary.files_reviewed,
        "with_issues": summary.with_issues,
        "clean": summary.clean,
        "failed": summary.failed,
        "tokens": {
          "input": summary.input_tokens,
          "output": summary.output_tokens,
          "total": summary.total_tokens,
        },
        "models": summary.models,
      },
      "results": [r.to_dict() for r in results],
    }
    if summary.cache:
      data["summary"]["cache"] = {
        "cached_files": summary.cache.cached_files,
        "new_files": summary.cache.new_files,
        "changed_files": summary.cache.changed_files,
        "hit_rate": round(summary.cache.hit_rate, 1),
        "time_saved": summary.cache.time_saved,
      }
    return json.dumps(data, indent=2, ensure_ascii=False)


def get_formatter(format_type: str, console: Console | None = None) -> OutputFormatter:
  """Get formatter by type name."""
  if format_type == "terminal":
    return TerminalFormatter(console)
  if format_type == "json":
    return JsonFormatter()
  raise ValueError(f"Unknown format: {format_type}")
