"""Content-addressed cache of review results.

An entry is reused only while both the content hash and the modification
time of the live file still match what was recorded. Any mismatch evicts the
entry. Persisted state that cannot be decoded is treated as an empty cache.
"""

import hashlib
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from revuo.errors import StorageError
from revuo.models import CacheEntry, CacheStats, Category, FileInfo, ReviewResult, utcnow
from revuo.storage import KeyValueStore

logger = logging.getLogger(__name__)

CACHE_RECORD = "review-cache"
HASH_LENGTH = 16
RETENTION = timedelta(days=7)
AVERAGE_REVIEW_SECONDS = 30


def content_hash(content: str) -> str:
  """Truncated SHA-256 digest of file content."""
  return hashlib.sha256(content.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def cache_key(relative_path: str, category: Category) -> str:
  return f"{relative_path}:{category.value}"


def _modified_ns(file: FileInfo) -> int | None:
  try:
    return os.stat(file.path).st_mtime_ns
  except OSError:
    return None


@dataclass(frozen=True)
class Partition:
  """Files split into reusable results and files needing review."""

  hits: list[tuple[ReviewResult, FileInfo]]
  misses: list[FileInfo]
  stats: CacheStats


@dataclass(frozen=True)
class CacheInfo:
  entry_count: int
  size_on_disk: int

  @property
  def size_label(self) -> str:
    size = self.size_on_disk
    if size < 1024:
      return f"{size}B"
    if size < 1024 * 1024:
      return f"{size / 1024:.1f}KB"
    return f"{size / (1024 * 1024):.1f}MB"


class ResultCache:
  """Maps (relative path, category) to a previously computed result."""

  def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = utcnow):
    self._store = store
    self._clock = clock
    self._entries: dict[str, CacheEntry] = self._load()

  def __len__(self) -> int:
    return len(self._entries)

  def _load(self) -> dict[str, CacheEntry]:
    try:
      data = self._store.get(CACHE_RECORD)
    except StorageError as e:
      logger.warning("Could not load cache, starting fresh: %s", e.cause)
      return {}
    if not data:
      return {}

    try:
      entries = {key: CacheEntry.from_dict(value) for key, value in data.items()}
    except (KeyError, TypeError, ValueError, AttributeError) as e:
      logger.warning("Cache file is corrupt, starting fresh: %s", e)
      return {}

    logger.info("Loaded cache with %d entries", len(entries))
    return entries

  def _validate(self, key: str, file: FileInfo) -> tuple[CacheEntry | None, bool]:
    """Return (valid entry, whether any entry existed) evicting stale ones."""
    entry = self._entries.get(key)
    if entry is None:
      return None, False

    if entry.file_hash != content_hash(file.content) or entry.modified_ns != _modified_ns(file):
      del self._entries[key]
      return None, True

    return entry, True

  def lookup(self, file: FileInfo, category: Category) -> ReviewResult | None:
    entry, _ = self._validate(cache_key(file.relative_path, category), file)
    return entry.result if entry else None

  def store(self, file: FileInfo, category: Category, result: ReviewResult) -> None:
    modified = _modified_ns(file)
    if modified is None:
      modified = self._clock().timestamp() * 1_000_000_000
    self._entries[cache_key(file.relative_path, category)] = CacheEntry(
      file_hash=content_hash(file.content),
      file_path=file.relative_path,
      category=category,
      result=result,
      cached_at=self._clock(),
      file_size=file.size,
      modified_ns=int(modified),
    )

  def partition(self, files: list[FileInfo], category: Category) -> Partition:
    """Split files into cache hits and misses in a single pass."""
    hits: list[tuple[ReviewResult, FileInfo]] = []
    misses: list[FileInfo] = []
    changed = 0

    for file in files:
      entry, existed = self._validate(cache_key(file.relative_path, category), file)
      if entry is not None:
        hits.append((entry.result, file))
      else:
        misses.append(file)
        if existed:
          changed += 1

    stats = CacheStats(
      total_files=len(files),
      cached_files=len(hits),
      new_files=len(misses) - changed,
      changed_files=changed,
      time_saved_seconds=len(hits) * AVERAGE_REVIEW_SECONDS,
    )
    return Partition(hits=hits, misses=misses, stats=stats)

  def evict_expired(self) -> int:
    """Drop entries older than the retention window and persist."""
    cutoff = self._clock() - RETENTION
    expired = [key for key, entry in self._entries.items() if entry.cached_at < cutoff]
    for key in expired:
      del self._entries[key]
    if expired:
      logger.info("Cleaned up %d stale cache entries", len(expired))
    self.flush()
    return len(expired)

  def clear(self) -> None:
    self._entries.clear()
    try:
      self._store.delete(CACHE_RECORD)
    except StorageError as e:
      logger.warning("Could not clear cache file: %s", e.cause)

  def flush(self) -> None:
    """Persist the whole cache as one record."""
    try:
      self._store.put(CACHE_RECORD, {key: entry.to_dict() for key, entry in self._entries.items()})
    except StorageError as e:
      logger.warning("Could not save cache: %s", e.cause)

  def info(self) -> CacheInfo:
    return CacheInfo(entry_count=len(self._entries), size_on_disk=self._store.size_on_disk(CACHE_RECORD))
