"""Tests for key-value stores."""

import pytest
from revuo.errors import StorageError
from revuo.storage import JsonDirectoryStore, MemoryStore


class TestJsonDirectoryStore:
  def test_put_get_delete(self, tmp_path) -> None:
    store = JsonDirectoryStore(tmp_path / "data")

    store.put("record", {"a": 1, "nested": {"b": [1, 2]}})

    assert store.get("record") == {"a": 1, "nested": {"b": [1, 2]}}
    assert store.keys() == ["record"]
    assert store.size_on_disk("record") > 0
    assert store.delete("record") is True
    assert store.delete("record") is False
    assert store.get("record") is None

  def test_directory_created_lazily(self, tmp_path) -> None:
    store = JsonDirectoryStore(tmp_path / "data")
    assert store.keys() == []
    assert not (tmp_path / "data").exists()

  def test_corrupt_record_raises(self, tmp_path) -> None:
    (tmp_path / "bad.json").write_text("{oops")
    with pytest.raises(StorageError):
      JsonDirectoryStore(tmp_path).get("bad")

  def test_rejects_unsafe_keys(self, tmp_path) -> None:
    with pytest.raises(ValueError):
      JsonDirectoryStore(tmp_path).put("../escape", {})

  def test_no_temp_files_left(self, tmp_path) -> None:
    store = JsonDirectoryStore(tmp_path)
    store.put("k", {"v": 1})
    assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]


class TestMemoryStore:
  def test_values_are_copied(self) -> None:
    store = MemoryStore()
    value = {"items": [1]}
    store.put("k", value)
    value["items"].append(2)

    loaded = store.get("k")
    loaded["items"].append(3)

    assert store.get("k") == {"items": [1]}

  def test_delete_and_keys(self) -> None:
    store = MemoryStore()
    store.put("a", {})
    store.put("b", {})
    assert sorted(store.keys()) == ["a", "b"]
    assert store.delete("a") is True
    assert store.delete("a") is False
    assert store.size_on_disk("b") == 0
