"""Output formatting."""

from revuo.output.formatter import (
  JsonFormatter,
  OutputFormatter,
  RunSummary,
  TerminalFormatter,
  get_formatter,
)

__all__ = [
  "OutputFormatter",
  "TerminalFormatter",
  "JsonFormatter",
  "RunSummary",
  "get_formatter",
]
