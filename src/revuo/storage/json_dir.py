"""JsonDirectoryStore: one pretty-printed JSON file per key in a directory.

The directory is created lazily on first write so read-only commands never
leave empty folders behind in the project.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from revuo.errors import StorageError
from revuo.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.\-]+$")


class JsonDirectoryStore(KeyValueStore):
  """Stores each record as `<root>/<key>.json`."""

  def __init__(self, root: Path | str):
    self.root = Path(root)

  def _path(self, key: str) -> Path:
    if not _SAFE_KEY.match(key):
      raise ValueError(f"Invalid store key: {key!r}")
    return self.root / f"{key}.json"

  def get(self, key: str) -> dict[str, Any] | None:
    path = self._path(key)
    if not path.exists():
      return None
    try:
      with open(path, encoding="utf-8") as f:
        data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
      raise StorageError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
      raise StorageError(f"Cannot read {path}: expected a JSON object")
    return data

  def put(self, key: str, value: dict[str, Any]) -> None:
    path = self._path(key)
    try:
      self.root.mkdir(parents=True, exist_ok=True)
      tmp = path.with_suffix(".json.tmp")
      with open(tmp, "w", encoding="utf-8") as f:
        json.dump(value, f, indent=2, ensure_ascii=False)
      os.replace(tmp, path)
    except OSError as e:
      raise StorageError(f"Cannot write {path}: {e}") from e

  def delete(self, key: str) -> bool:
    path = self._path(key)
    try:
      path.unlink()
      return True
    except FileNotFoundError:
      return False
    except OSError as e:
      raise StorageError(f"Cannot delete {path}: {e}") from e

  def keys(self) -> list[str]:
    if not self.root.is_dir():
      return []
    return sorted(p.stem for p in self.root.glob("*.json"))

  def size_on_disk(self, key: str) -> int:
    try:
      return self._path(key).stat().st_size
    except OSError:
      return 0
