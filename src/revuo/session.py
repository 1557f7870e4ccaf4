"""Resumable batch progress.

A session records which files are still pending and which results are
already done. It is re-persisted after every checkpoint so an interrupted
run can pick up where it stopped. Session ids are deterministic in target
path, category and creation time; resuming requires the same id (or the
latest session for the exact same category and target).
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from revuo.errors import SessionMismatchError, StorageError
from revuo.files.git import GitInfo, git_info
from revuo.models import Category, FileInfo, ReviewResult, ReviewSession, utcnow
from revuo.storage import KeyValueStore

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
  if value == 0:
    return "0"
  digits = []
  while value:
    value, rem = divmod(value, 36)
    digits.append(_BASE36[rem])
  return "".join(reversed(digits))


def session_id_for(target_path: str, category: Category, created_at: datetime) -> str:
  """Derive a session id from target path, category and creation time."""
  path_part = re.sub(r"[^a-zA-Z0-9]", "_", target_path)[:20]
  stamp = _base36(int(created_at.timestamp() * 1000))
  return f"{category.value}_{path_part}_{stamp}"


@dataclass(frozen=True)
class SessionOptions:
  """How a session is started."""

  resume: bool = False
  session_id: str | None = None
  output_format: str = "terminal"
  no_cache: bool = False


@dataclass(frozen=True)
class SessionProgress:
  completed: int
  total: int

  @property
  def percentage(self) -> int:
    if not self.total:
      return 0
    return round(self.completed / self.total * 100)


@dataclass(frozen=True)
class SessionSummary:
  """Listing entry for a persisted session."""

  id: str
  category: Category
  target_path: str
  started_at: datetime
  progress: SessionProgress


class SessionStore:
  """Owns the active session for one run and persists its checkpoints."""

  def __init__(
    self,
    store: KeyValueStore,
    clock: Callable[[], datetime] = utcnow,
    git: Callable[[Path | None], GitInfo] = git_info,
  ):
    self._store = store
    self._clock = clock
    self._git = git
    self.current: ReviewSession | None = None

  def start(
    self,
    files: list[FileInfo],
    category: Category,
    target_path: str,
    options: SessionOptions | None = None,
  ) -> ReviewSession:
    """Resume a persisted session or create one from the scanned files."""
    options = options or SessionOptions()

    if options.resume:
      existing = self._find_resumable(category, target_path, options.session_id)
      if existing:
        logger.info(
          "Resuming session %s: %d/%d files completed",
          existing.id, existing.completed_files, existing.total_files,
        )
        self.current = existing
        return existing
      logger.info("No existing session found, starting a new one")

    now = self._clock()
    info = self._git(None)
    session = ReviewSession(
      id=session_id_for(target_path, category, now),
      started_at=now,
      last_updated=now,
      category=category,
      total_files=len(files),
      target_path=target_path,
      pending_files=list(files),
      git_commit=info.commit,
      git_branch=info.branch,
      options={"output_format": options.output_format, "no_cache": options.no_cache},
    )
    self.current = session
    self._save(session)
    logger.info("Started review session %s with %d files", session.id, session.total_files)
    return session

  def mark_completed(self, results: list[ReviewResult]) -> None:
    """Checkpoint: record results and drop their files from the pending list."""
    session = self._require()
    if not results:
      return
    session.completed_results.extend(results)
    done = {r.file_path for r in results}
    session.pending_files = [f for f in session.pending_files if f.relative_path not in done]
    session.last_updated = self._clock()
    self._save(session)
    progress = self.progress()
    logger.info("Progress: %d/%d files completed", progress.completed, progress.total)

  def remaining_files(self) -> list[FileInfo]:
    return list(self.current.pending_files) if self.current else []

  def completed_results(self) -> list[ReviewResult]:
    return list(self.current.completed_results) if self.current else []

  def progress(self) -> SessionProgress:
    if not self.current:
      return SessionProgress(0, 0)
    return SessionProgress(self.current.completed_files, self.current.total_files)

  def complete(self) -> None:
    """Delete the persisted session record."""
    session = self._require()
    self._store.delete(session.id)
    logger.info(
      "Session completed: %d/%d files", session.completed_files, session.total_files,
    )
    self.current = None

  def load(self, session_id: str) -> ReviewSession | None:
    try:
      data = self._store.get(session_id)
    except StorageError as e:
      logger.warning("Could not load session %s: %s", session_id, e.cause)
      return None
    if data is None:
      return None
    try:
      return ReviewSession.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
      logger.warning("Session %s is corrupt: %s", session_id, e)
      return None

  def list_sessions(self) -> list[SessionSummary]:
    summaries = []
    for key in self._store.keys():
      session = self.load(key)
      if session is None:
        continue
      summaries.append(SessionSummary(
        id=session.id,
        category=session.category,
        target_path=session.target_path,
        started_at=session.started_at,
        progress=SessionProgress(session.completed_files, session.total_files),
      ))
    return sorted(summaries, key=lambda s: s.started_at, reverse=True)

  def _find_resumable(
    self,
    category: Category,
    target_path: str,
    session_id: str | None,
  ) -> ReviewSession | None:
    if session_id:
      session = self.load(session_id)
      if session and (session.category != category or session.target_path != target_path):
        raise SessionMismatchError(
          f"Session {session_id} reviews {session.target_path!r} for {session.category.value}, "
          f"not {target_path!r} for {category.value}",
          [
            f"Resume it with the same paths and --category {session.category.value}",
            "Run `revuo sessions` to list saved sessions",
          ],
        )
      return session

    candidates = [
      s for s in self.list_sessions()
      if s.category == category and s.target_path == target_path
    ]
    return self.load(candidates[0].id) if candidates else None

  def _require(self) -> ReviewSession:
    if self.current is None:
      raise RuntimeError("No active session; call start() first")
    return self.current

  def _save(self, session: ReviewSession) -> None:
    data: dict[str, Any] = session.to_dict()
    self._store.put(session.id, data)
