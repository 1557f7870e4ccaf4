"""Core review orchestration."""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path

from revuo.batch import BatchRunner, FileFailure, ProgressCallback
from revuo.cache import ResultCache
from revuo.config import Settings, load_config
from revuo.files import discover_files
from revuo.models import CacheStats, Category, FileInfo, ReviewResult
from revuo.prompts import get_template
from revuo.providers import ClientSet, CredentialResolver
from revuo.ratelimit import RateTracker
from revuo.router import FallbackRouter
from revuo.session import SessionOptions, SessionStore
from revuo.storage import JsonDirectoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
  """Everything a caller needs to render one run."""

  results: list[ReviewResult]
  failures: list[FileFailure] = field(default_factory=list)
  skipped: list[str] = field(default_factory=list)
  cache_stats: CacheStats | None = None
  session_id: str | None = None
  pending: int = 0
  resumed: int = 0


class ReviewEngine:
  """Wires cache, session store, router and batch runner for one run."""

  def __init__(
    self,
    settings: Settings,
    router: FallbackRouter,
    cache: ResultCache | None = None,
    sessions: SessionStore | None = None,
    comparison: bool = False,
  ):
    self.settings = settings
    self.router = router
    self.cache = cache
    self.sessions = sessions
    self.runner = BatchRunner(router, cache=cache, sessions=sessions, comparison=comparison)

  @classmethod
  def from_settings(
    cls,
    settings: Settings,
    root: Path | None = None,
    model: str | None = None,
    use_cache: bool = True,
    resolver: CredentialResolver | None = None,
  ) -> "ReviewEngine":
    """Build an engine with on-disk cache and sessions under `root`."""
    base = root or Path.cwd()
    resolver = resolver or CredentialResolver(use_claude_cli=settings.use_claude_cli)
    clients = ClientSet.from_statuses(resolver.get_status())
    logger.debug("Authenticated provider families: %s", ", ".join(clients.families) or "none")

    router = FallbackRouter(clients, RateTracker(), settings.models, model=model)
    cache = None
    if use_cache and settings.cache_enabled:
      cache = ResultCache(JsonDirectoryStore(base / settings.cache_dir))
    sessions = SessionStore(JsonDirectoryStore(base / settings.session_dir))
    return cls(settings, router, cache, sessions, comparison=settings.models.comparison_mode)

  async def review(
    self,
    files: list[FileInfo],
    category: Category,
    target_path: str,
    options: SessionOptions | None = None,
    on_progress: ProgressCallback | None = None,
  ) -> ReviewOutcome:
    options = options or SessionOptions()
    if self.cache is not None:
      evicted = self.cache.evict_expired()
      if evicted:
        logger.info("Evicted %d expired cache entries", evicted)

    template = get_template(category)
    prior: list[ReviewResult] = []
    pending = files
    session_id = None
    if self.sessions is not None:
      session = self.sessions.start(files, category, target_path, options)
      session_id = session.id
      prior = self.sessions.completed_results()
      pending = _refresh(self.sessions.remaining_files(), files)

    results = await self.runner.run(
      pending, category, template.system_prompt, self.settings.concurrency, on_progress
    )

    remaining = 0
    if self.sessions is not None:
      remaining = len(self.sessions.remaining_files())
      if remaining:
        logger.warning(
          "%d files still pending; resume with --resume --session-id %s", remaining, session_id
        )
      else:
        self.sessions.complete()

    return ReviewOutcome(
      results=prior + results,
      failures=list(self.runner.failures),
      cache_stats=self.runner.cache_stats,
      session_id=session_id,
      pending=remaining,
      resumed=len(prior),
    )


def _refresh(pending: list[FileInfo], scanned: list[FileInfo]) -> list[FileInfo]:
  """Prefer freshly scanned contents for files a resumed session still owes."""
  current = {f.relative_path: f for f in scanned}
  refreshed = []
  for file in pending:
    fresh = current.get(file.relative_path)
    if fresh is None:
      logger.warning("%s is no longer in the scanned file set; leaving it pending", file.relative_path)
      continue
    refreshed.append(fresh)
  return refreshed


def run_review(
  paths: list[str],
  category: Category | None = None,
  model: str | None = None,
  fallback: bool | None = None,
  compare: bool | None = None,
  concurrency: int | None = None,
  no_cache: bool = False,
  options: SessionOptions | None = None,
  config_path: Path | None = None,
  cwd: Path | None = None,
  on_progress: ProgressCallback | None = None,
) -> ReviewOutcome:
  """Run a review with the given options."""
  base = cwd or Path.cwd()
  settings = load_config(config_path, base).model_copy(deep=True)

  if category:
    settings.category = category
  if concurrency:
    settings.concurrency = concurrency
  if fallback is not None:
    settings.models.auto_fallback = fallback
  if compare is not None:
    settings.models.comparison_mode = compare

  scan = discover_files(
    paths,
    cwd=base,
    max_file_size=settings.max_file_size,
    ignore_patterns=settings.ignore_patterns,
  )
  if not scan.files:
    return ReviewOutcome(results=[], skipped=scan.skipped)

  logger.info(
    "Found %d files (%d bytes, ~%d tokens)", len(scan.files), scan.total_size, scan.estimated_tokens
  )
  engine = ReviewEngine.from_settings(settings, base, model=model, use_cache=not no_cache)
  outcome = asyncio.run(engine.review(
    scan.files, settings.category, " ".join(paths), options, on_progress
  ))
  return replace(outcome, skipped=scan.skipped)
