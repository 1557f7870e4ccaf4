"""In-process store backing the test suite; records vanish with the process."""

import copy
from typing import Any

from revuo.storage.base import KeyValueStore


class MemoryStore(KeyValueStore):
  """Keeps records in a dict for the life of the process."""

  def __init__(self) -> None:
    self._records: dict[str, dict[str, Any]] = {}

  def get(self, key: str) -> dict[str, Any] | None:
    record = self._records.get(key)
    return copy.deepcopy(record) if record is not None else None

  def put(self, key: str, value: dict[str, Any]) -> None:
    self._records[key] = copy.deepcopy(value)

  def delete(self, key: str) -> bool:
    return self._records.pop(key, None) is not None

  def keys(self) -> list[str]:
    return sorted(self._records)
