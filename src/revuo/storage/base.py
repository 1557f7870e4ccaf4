"""Key-value persistence interface.

The result cache and session store depend on KeyValueStore, not on a
concrete backend, so the storage medium can change without touching them.
Values are plain JSON-compatible dicts.
"""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStore(ABC):
  """Minimal record store keyed by string."""

  @abstractmethod
  def get(self, key: str) -> dict[str, Any] | None:
    """Return the record for key, or None if absent.

    Raises StorageError if the record exists but cannot be decoded.
    """

  @abstractmethod
  def put(self, key: str, value: dict[str, Any]) -> None:
    """Create or replace the record for key."""

  @abstractmethod
  def delete(self, key: str) -> bool:
    """Remove the record for key. Returns False if it did not exist."""

  @abstractmethod
  def keys(self) -> list[str]:
    """List stored keys."""

  def size_on_disk(self, key: str) -> int:
    """Approximate stored size of a record in bytes; 0 if unknown."""
    return 0
