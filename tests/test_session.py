"""Tests for resumable sessions."""

from datetime import timedelta

import pytest
from conftest import FIXED_NOW, no_git
from revuo.errors import SessionMismatchError, StorageError
from revuo.models import Category
from revuo.session import SessionOptions, SessionStore, session_id_for
from revuo.storage import JsonDirectoryStore, MemoryStore


def _store(backend, now=FIXED_NOW) -> SessionStore:
  return SessionStore(backend, clock=lambda: now, git=no_git)


class TestSessionId:
  def test_deterministic(self) -> None:
    a = session_id_for("src/app", Category.SECURITY, FIXED_NOW)
    b = session_id_for("src/app", Category.SECURITY, FIXED_NOW)
    assert a == b
    assert a.startswith("security_src_app_")

  def test_varies_with_time_and_category(self) -> None:
    base = session_id_for("src", Category.QUALITY, FIXED_NOW)
    assert session_id_for("src", Category.QUALITY, FIXED_NOW + timedelta(seconds=1)) != base
    assert session_id_for("src", Category.SECURITY, FIXED_NOW) != base

  def test_path_part_truncated(self) -> None:
    sid = session_id_for("a" * 50, Category.QUALITY, FIXED_NOW)
    assert sid.split("_")[1] == "a" * 20


class TestSessionStore:
  def test_start_persists_session(self, make_file) -> None:
    backend = MemoryStore()
    files = [make_file("a.py"), make_file("b.py")]

    session = _store(backend).start(files, Category.QUALITY, "src")

    assert session.total_files == 2
    assert session.git_commit == "abc123"
    assert session.git_branch == "main"
    assert backend.get(session.id)["total_files"] == 2

  def test_mark_completed_checkpoints(self, make_file, make_result) -> None:
    backend = MemoryStore()
    store = _store(backend)
    files = [make_file("a.py"), make_file("b.py")]
    session = store.start(files, Category.QUALITY, "src")

    store.mark_completed([make_result("a.py")])

    saved = backend.get(session.id)
    assert [f["relative_path"] for f in saved["pending_files"]] == ["b.py"]
    assert saved["completed_files"] == 1
    assert store.progress().percentage == 50

  def test_resume_reclaims_exactly_the_remaining_half(self, tmp_path, make_file, make_result) -> None:
    root = tmp_path / ".revuo-sessions"
    files = [make_file(f"f{i}.py", f"x = {i}\n") for i in range(4)]
    first = _store(JsonDirectoryStore(root))
    session = first.start(files, Category.SECURITY, "src")
    first.mark_completed([make_result("f0.py"), make_result("f1.py")])

    # a new process: fresh store objects over the same directory
    second = _store(JsonDirectoryStore(root), now=FIXED_NOW + timedelta(hours=1))
    resumed = second.start(
      files, Category.SECURITY, "src", SessionOptions(resume=True, session_id=session.id)
    )

    assert resumed.id == session.id
    assert sorted(f.relative_path for f in second.remaining_files()) == ["f2.py", "f3.py"]
    assert sorted(r.file_path for r in second.completed_results()) == ["f0.py", "f1.py"]

  def test_resume_without_id_uses_latest_exact_match(self, make_file, make_result) -> None:
    backend = MemoryStore()
    files = [make_file("a.py"), make_file("b.py")]
    older = _store(backend).start(files, Category.QUALITY, "src")
    newer_store = _store(backend, now=FIXED_NOW + timedelta(minutes=5))
    newer = newer_store.start(files, Category.QUALITY, "src")
    newer_store.mark_completed([make_result("a.py")])
    _store(backend, now=FIXED_NOW + timedelta(minutes=9)).start(files, Category.SECURITY, "src")

    resumed = _store(backend).start(files, Category.QUALITY, "src", SessionOptions(resume=True))

    assert resumed.id == newer.id != older.id
    assert resumed.completed_files == 1

  def test_resume_with_unknown_id_starts_fresh(self, make_file) -> None:
    store = _store(MemoryStore())
    session = store.start(
      [make_file("a.py")], Category.QUALITY, "src", SessionOptions(resume=True, session_id="missing")
    )
    assert session.completed_files == 0
    assert session.total_files == 1

  def test_resume_with_id_of_other_category_rejected(self, make_file) -> None:
    backend = MemoryStore()
    files = [make_file("a.py")]
    quality = _store(backend).start(files, Category.QUALITY, "src")

    with pytest.raises(SessionMismatchError) as exc_info:
      _store(backend).start(files, Category.SECURITY, "src", SessionOptions(resume=True, session_id=quality.id))

    assert any("--category quality" in step for step in exc_info.value.remediation)
    assert _store(backend).load(quality.id).category == Category.QUALITY

  def test_resume_with_id_of_other_target_rejected(self, make_file) -> None:
    backend = MemoryStore()
    session = _store(backend).start([make_file("a.py")], Category.QUALITY, "src")
    with pytest.raises(SessionMismatchError):
      _store(backend).start(
        [make_file("a.py")], Category.QUALITY, "lib", SessionOptions(resume=True, session_id=session.id)
      )

  def test_complete_deletes_record(self, make_file) -> None:
    backend = MemoryStore()
    store = _store(backend)
    session = store.start([make_file("a.py")], Category.QUALITY, "src")

    store.complete()

    assert backend.get(session.id) is None
    assert store.current is None

  def test_list_sessions_newest_first(self, make_file) -> None:
    backend = MemoryStore()
    files = [make_file("a.py")]
    _store(backend).start(files, Category.QUALITY, "one")
    _store(backend, now=FIXED_NOW + timedelta(minutes=1)).start(files, Category.QUALITY, "two")

    summaries = _store(backend).list_sessions()

    assert [s.target_path for s in summaries] == ["two", "one"]
    assert summaries[0].progress.total == 1

  def test_corrupt_session_ignored(self, tmp_path) -> None:
    root = tmp_path / "sessions"
    root.mkdir()
    (root / "broken.json").write_text("[]")
    store = _store(JsonDirectoryStore(root))

    assert store.load("broken") is None
    assert store.list_sessions() == []

  def test_mark_completed_requires_start(self, make_result) -> None:
    with pytest.raises(RuntimeError):
      _store(MemoryStore()).mark_completed([make_result()])

  def test_write_failure_propagates(self, make_file) -> None:
    class ReadOnlyStore(MemoryStore):
      def put(self, key, value):
        raise StorageError("read-only")

    with pytest.raises(StorageError):
      _store(ReadOnlyStore()).start([make_file("a.py")], Category.QUALITY, "src")
