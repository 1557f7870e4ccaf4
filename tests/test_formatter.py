"""Tests for output formatters."""

import json
from dataclasses import replace
from io import StringIO

import pytest
from revuo.models import CacheStats
from revuo.output import JsonFormatter, RunSummary, TerminalFormatter, get_formatter
from rich.console import Console


@pytest.fixture
def results(make_result):
  clean = make_result("a.py", "Looks good.")
  flagged = make_result("b.py", "Possible SQL injection.", model="gemini-flash")
  return [clean, replace(flagged, has_issues=True)]


class TestRunSummary:
  def test_from_results(self, results) -> None:
    summary = RunSummary.from_results(results, failed=1)
    assert summary.files_reviewed == 2
    assert summary.with_issues == 1
    assert summary.clean == 1
    assert summary.failed == 1
    assert summary.total_tokens == 300
    assert summary.models == {"claude-sonnet": 1, "gemini-flash": 1}

  def test_empty(self) -> None:
    summary = RunSummary.from_results([])
    assert summary.files_reviewed == 0
    assert summary.total_tokens == 0


class TestJsonFormatter:
  def test_structure(self, results) -> None:
    cache = CacheStats(total_files=4, cached_files=2, new_files=1, changed_files=1, time_saved_seconds=90)
    summary = RunSummary.from_results(results, cache=cache)

    data = json.loads(JsonFormatter().format(results, summary))

    assert data["summary"]["tokens"] == {"input": 200, "output": 100, "total": 300}
    assert data["summary"]["cache"]["hit_rate"] == 50.0
    assert data["summary"]["cache"]["time_saved"] == "2m"
    assert [r["file_path"] for r in data["results"]] == ["a.py", "b.py"]
    assert data["results"][1]["has_issues"] is True
    assert data["results"][0]["category"] == "quality"

  def test_no_cache_section(self, results) -> None:
    data = json.loads(JsonFormatter().format(results, RunSummary.from_results(results)))
    assert "cache" not in data["summary"]


class TestTerminalFormatter:
  def test_renders_results_and_summary(self, results) -> None:
    buffer = StringIO()
    console = Console(file=buffer, width=120, force_terminal=False)

    output = TerminalFormatter(console).format(results, RunSummary.from_results(results, failed=1))

    text = buffer.getvalue()
    assert output == ""
    assert "a.py" in text
    assert "Possible SQL injection." in text
    assert "Review summary" in text
    assert "Failed" in text


class TestGetFormatter:
  def test_known_formats(self) -> None:
    assert isinstance(get_formatter("terminal"), TerminalFormatter)
    assert isinstance(get_formatter("json"), JsonFormatter)

  def test_unknown_format(self) -> None:
    with pytest.raises(ValueError, match="Unknown format"):
      get_formatter("xml")
