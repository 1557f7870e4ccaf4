"""Pluggable persistence for cache and session records."""

from revuo.storage.base import KeyValueStore
from revuo.storage.json_dir import JsonDirectoryStore
from revuo.storage.memory import MemoryStore

__all__ = ["JsonDirectoryStore", "KeyValueStore", "MemoryStore"]
