"""Bounded-concurrency batch execution."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from revuo.cache import ResultCache
from revuo.errors import FileReviewError, NoModelsAvailableError, ReviewError
from revuo.models import CacheStats, Category, FileInfo, ReviewRequest, ReviewResult
from revuo.router import FallbackRouter, merge_comparison
from revuo.session import SessionStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, ReviewResult], None]


@dataclass(frozen=True)
class FileFailure:
  """A file that produced no result."""

  file: FileInfo
  error: ReviewError


class BatchRunner:
  """Runs a file list through the cache and the router in waves.

  Cache hits are emitted first. Misses are split into waves of
  `concurrency` files; each wave settles completely before the next starts.
  After every wave new results are cached and checkpointed into the session.
  """

  def __init__(
    self,
    router: FallbackRouter,
    cache: ResultCache | None = None,
    sessions: SessionStore | None = None,
    comparison: bool = False,
  ):
    self._router = router
    self._cache = cache
    self._sessions = sessions
    self._comparison = comparison
    self.failures: list[FileFailure] = []
    self.cache_stats: CacheStats | None = None

  async def run(
    self,
    files: list[FileInfo],
    category: Category,
    system_prompt: str,
    concurrency: int = 2,
    on_progress: ProgressCallback | None = None,
  ) -> list[ReviewResult]:
    if concurrency < 1:
      raise ValueError("concurrency must be at least 1")

    self.failures = []
    self.cache_stats = None
    total = len(files)
    index = 0
    results: list[ReviewResult] = []

    def emit(result: ReviewResult) -> None:
      results.append(result)
      if on_progress:
        on_progress(index, total, result)

    misses = list(files)
    if self._cache is not None:
      partition = self._cache.partition(files, category)
      self.cache_stats = partition.stats
      misses = partition.misses
      for result, _ in partition.hits:
        index += 1
        emit(result)
      if partition.hits and self._sessions is not None:
        self._sessions.mark_completed([result for result, _ in partition.hits])

    try:
      for start in range(0, len(misses), concurrency):
        wave = misses[start:start + concurrency]
        logger.info(
          "Wave %d: reviewing %d files (%d/%d done)",
          start // concurrency + 1, len(wave), index, total,
        )

        completed: list[tuple[FileInfo, ReviewResult]] = []
        tasks = [asyncio.ensure_future(self._review_file(f, category, system_prompt)) for f in wave]
        try:
          for next_done in asyncio.as_completed(tasks):
            file, result = await next_done
            index += 1
            if result is None:
              continue
            completed.append((file, result))
            emit(result)
        finally:
          for task in tasks:
            task.cancel()

        self._checkpoint(completed, category)
    finally:
      if self._cache is not None:
        self._cache.flush()

    logger.info(
      "Batch finished: %d results, %d failed, %d from cache",
      len(results), len(self.failures), len(files) - len(misses),
    )
    return results

  async def _review_file(
    self,
    file: FileInfo,
    category: Category,
    system_prompt: str,
  ) -> tuple[FileInfo, ReviewResult | None]:
    request = ReviewRequest.for_file(file, category, system_prompt)
    try:
      if self._comparison:
        return file, merge_comparison(await self._router.compare(request))
      return file, await self._router.review(request)
    except NoModelsAvailableError:
      raise
    except ReviewError as e:
      self._fail(file, e)
    except OSError as e:
      self._fail(file, FileReviewError(f"{file.relative_path}: {e}"))
    return file, None

  def _fail(self, file: FileInfo, error: ReviewError) -> None:
    logger.warning("Review failed for %s: %s", file.relative_path, error.cause)
    self.failures.append(FileFailure(file, error))

  def _checkpoint(self, completed: list[tuple[FileInfo, ReviewResult]], category: Category) -> None:
    if self._cache is not None:
      for file, result in completed:
        self._cache.store(file, category, result)
    if self._sessions is not None:
      self._sessions.mark_completed([result for _, result in completed])
