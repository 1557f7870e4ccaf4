"""Pytest fixtures."""

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import pytest
from revuo.files import GitInfo
from revuo.models import AuthMethod, Category, FileInfo, ReviewRequest, ReviewResult, TokenUsage
from revuo.providers.base import CallOutput, ModelClient
from revuo.providers.catalog import ModelSpec

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

Responder = Callable[[ModelSpec, ReviewRequest], str]


class FakeClient(ModelClient):
  """Scripted model client that records every call it receives."""

  def __init__(
    self,
    family: str,
    responder: Responder | None = None,
    log: list[tuple[str, str]] | None = None,
    tokens: TokenUsage | None = TokenUsage(100, 50),
    events: list[tuple[str, str]] | None = None,
  ):
    self._family = family
    self._responder = responder or (lambda spec, request: "Looks good.")
    self.log = log if log is not None else []
    self._tokens = tokens
    self._events = events

  @property
  def name(self) -> str:
    return self._family

  @property
  def auth_method(self) -> AuthMethod:
    return AuthMethod.API_KEY

  async def _call(self, spec: ModelSpec, request: ReviewRequest, timeout: float) -> CallOutput:
    self.log.append((spec.key, request.relative_path))
    if self._events is not None:
      self._events.append(("start", request.relative_path))
    await asyncio.sleep(0)
    try:
      text = self._responder(spec, request)
    finally:
      if self._events is not None:
        self._events.append(("end", request.relative_path))
    return CallOutput(text=text, tokens=self._tokens)


class FakeClock:
  """Manually advanced wall clock in seconds."""

  def __init__(self, start: float = 1_700_000_000.0):
    self.now = start

  def __call__(self) -> float:
    return self.now

  def advance(self, seconds: float) -> None:
    self.now += seconds


def no_git(cwd: Path | None = None) -> GitInfo:
  return GitInfo(commit="abc123", branch="main")


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., FileInfo]:
  """Write a real file under tmp_path and return its FileInfo."""

  def _make(name: str, content: str = "def hello():\n    return 1\n") -> FileInfo:
    path = tmp_path / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return FileInfo(
      path=str(path),
      relative_path=name,
      size=len(content.encode()),
      extension=path.suffix,
      content=content,
    )

  return _make


@pytest.fixture
def make_result() -> Callable[..., ReviewResult]:
  def _make(
    file_path: str = "a.py",
    feedback: str = "Looks good.",
    category: Category = Category.QUALITY,
    model: str = "claude-sonnet",
  ) -> ReviewResult:
    return ReviewResult(
      file_path=file_path,
      category=category,
      feedback=feedback,
      tokens=TokenUsage(100, 50),
      timestamp=FIXED_NOW,
      has_issues=False,
      model=model,
      provider="claude",
      latency_ms=120,
      auth_method=AuthMethod.API_KEY,
    )

  return _make


@pytest.fixture
def sample_request() -> ReviewRequest:
  return ReviewRequest(
    path="/repo/app.py",
    relative_path="app.py",
    content="def add(a, b):\n    return a + b\n",
    size=32,
    category=Category.QUALITY,
    system_prompt="You are a reviewer.",
    extension=".py",
  )
