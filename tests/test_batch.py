"""Tests for the batch runner."""

import pytest
from conftest import FIXED_NOW, FakeClient, FakeClock, no_git
from revuo.batch import BatchRunner
from revuo.cache import ResultCache
from revuo.config import ModelConfig
from revuo.errors import AllModelsFailedError, NoModelsAvailableError, ProviderError
from revuo.models import AuthMethod, Category
from revuo.providers.registry import ClientSet
from revuo.ratelimit import RateTracker
from revuo.router import FallbackRouter
from revuo.session import SessionStore
from revuo.storage import MemoryStore

PROMPT = "You are a reviewer."


def _router(client: FakeClient, **kwargs) -> FallbackRouter:
  return FallbackRouter(
    ClientSet({client.name: client}), RateTracker(clock=FakeClock()), ModelConfig(), **kwargs
  )


def _fail_for(*paths: str):
  def respond(spec, request):
    if request.relative_path in paths:
      raise ProviderError("boom", model_key=spec.key)
    return f"Review of {request.relative_path}"
  return respond


class TestBatchRunner:
  @pytest.mark.asyncio
  async def test_cached_first_then_waves(self, make_file, make_result) -> None:
    files = [make_file(f"f{i}.py", f"x = {i}\n") for i in range(5)]
    cache = ResultCache(MemoryStore(), clock=lambda: FIXED_NOW)
    cache.store(files[1], Category.QUALITY, make_result("f1.py"))
    cache.store(files[3], Category.QUALITY, make_result("f3.py"))

    events: list = []
    client = FakeClient("claude", _fail_for(), events=events)
    runner = BatchRunner(_router(client), cache=cache)
    progress: list = []

    results = await runner.run(
      files, Category.QUALITY, PROMPT, concurrency=2,
      on_progress=lambda i, total, r: progress.append((i, total, r.file_path)),
    )

    assert len(results) == 5
    assert [p[2] for p in progress[:2]] == ["f1.py", "f3.py"]
    assert [p[0] for p in progress] == [1, 2, 3, 4, 5]
    assert all(p[1] == 5 for p in progress)
    assert sorted(path for _, path in client.log) == ["f0.py", "f2.py", "f4.py"]

    # two waves: two calls overlap, then a single call
    assert [kind for kind, _ in events] == ["start", "start", "end", "end", "start", "end"]
    assert events[4][1] == "f4.py"

    assert runner.cache_stats.cached_files == 2
    assert runner.cache_stats.new_files == 3

  @pytest.mark.asyncio
  async def test_failure_isolated(self, make_file) -> None:
    files = [make_file(f"f{i}.py", f"x = {i}\n") for i in range(3)]
    runner = BatchRunner(_router(FakeClient("claude", _fail_for("f1.py"))))

    results = await runner.run(files, Category.QUALITY, PROMPT, concurrency=2)

    assert sorted(r.file_path for r in results) == ["f0.py", "f2.py"]
    assert [f.file.relative_path for f in runner.failures] == ["f1.py"]
    assert runner.failures[0].error.remediation

  @pytest.mark.asyncio
  async def test_unexpected_client_exception_isolated(self, make_file) -> None:
    files = [make_file(f"f{i}.py", f"x = {i}\n") for i in range(3)]

    def respond(spec, request):
      if request.relative_path == "f1.py":
        raise RuntimeError("unexpected payload")
      return f"Review of {request.relative_path}"

    sessions = SessionStore(MemoryStore(), clock=lambda: FIXED_NOW, git=no_git)
    session = sessions.start(files, Category.QUALITY, "src")
    runner = BatchRunner(_router(FakeClient("claude", respond)), sessions=sessions)

    results = await runner.run(files, Category.QUALITY, PROMPT, concurrency=3)

    assert sorted(r.file_path for r in results) == ["f0.py", "f2.py"]
    assert [f.file.relative_path for f in runner.failures] == ["f1.py"]
    error = runner.failures[0].error
    assert isinstance(error, AllModelsFailedError)
    assert all(isinstance(a.error, ProviderError) for a in error.attempts)
    saved = sessions.load(session.id)
    assert saved.completed_files == 2
    assert [f.relative_path for f in saved.pending_files] == ["f1.py"]

  @pytest.mark.asyncio
  async def test_second_run_served_from_cache(self, make_file) -> None:
    files = [make_file("a.py"), make_file("b.py", "y = 2\n")]
    store = MemoryStore()
    client = FakeClient("claude")

    first = await BatchRunner(_router(client), cache=ResultCache(store)).run(files, Category.QUALITY, PROMPT)
    calls_after_first = len(client.log)
    second = await BatchRunner(_router(client), cache=ResultCache(store)).run(files, Category.QUALITY, PROMPT)

    assert calls_after_first == 2
    assert len(client.log) == 2
    assert sorted(second, key=lambda r: r.file_path) == sorted(first, key=lambda r: r.file_path)

  @pytest.mark.asyncio
  async def test_checkpoints_each_wave_into_session(self, make_file) -> None:
    files = [make_file(f"f{i}.py", f"x = {i}\n") for i in range(3)]
    store = MemoryStore()
    sessions = SessionStore(store, clock=lambda: FIXED_NOW, git=no_git)
    session = sessions.start(files, Category.QUALITY, "src")
    runner = BatchRunner(_router(FakeClient("claude", _fail_for("f2.py"))), sessions=sessions)

    await runner.run(files, Category.QUALITY, PROMPT, concurrency=2)

    saved = sessions.load(session.id)
    assert saved.completed_files == 2
    assert [f.relative_path for f in saved.pending_files] == ["f2.py"]

  @pytest.mark.asyncio
  async def test_comparison_mode_merges(self, make_file) -> None:
    files = [make_file("a.py")]
    clients = ClientSet({"claude": FakeClient("claude"), "gemini": FakeClient("gemini")})
    router = FallbackRouter(clients, RateTracker(clock=FakeClock()), ModelConfig())
    runner = BatchRunner(router, comparison=True)

    results = await runner.run(files, Category.QUALITY, PROMPT)

    assert len(results) == 1
    assert results[0].auth_method == AuthMethod.MULTI_MODEL
    assert results[0].model.count("+") == 2

  @pytest.mark.asyncio
  async def test_no_models_aborts_batch(self, make_file) -> None:
    router = FallbackRouter(ClientSet({}), RateTracker(clock=FakeClock()), ModelConfig())
    with pytest.raises(NoModelsAvailableError):
      await BatchRunner(router).run([make_file("a.py")], Category.QUALITY, PROMPT)

  @pytest.mark.asyncio
  async def test_rejects_zero_concurrency(self, make_file) -> None:
    runner = BatchRunner(_router(FakeClient("claude")))
    with pytest.raises(ValueError):
      await runner.run([make_file("a.py")], Category.QUALITY, PROMPT, concurrency=0)
