"""Configuration file loading."""

import logging
from pathlib import Path
from typing import Any

import yaml

from revuo.config.settings import Settings
from revuo.models import Category

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = [".revuo.yaml", ".revuo.yml", "revuo.yaml", "revuo.yml"]


def find_config_file(config_path: Path | None = None, cwd: Path | None = None) -> Path | None:
  """Find config file path, or None if no config exists."""
  if config_path:
    if not config_path.exists():
      raise FileNotFoundError(f"Config file not found: {config_path}")
    return config_path

  base = cwd or Path.cwd()
  for filename in CONFIG_FILENAMES:
    path = base / filename
    if path.exists():
      return path

  return None


def load_config(config_path: Path | None = None, cwd: Path | None = None) -> Settings:
  """Load configuration from file or defaults."""
  path = find_config_file(config_path, cwd)
  if path:
    logger.debug("Loading config from %s", path)
    return _load_from_file(path)
  return Settings()


def _load_from_file(path: Path) -> Settings:
  """Load settings from a YAML file."""
  with open(path) as f:
    data = yaml.safe_load(f) or {}

  if not isinstance(data, dict):
    raise ValueError(f"Config file {path} must contain a mapping")
  return _parse_config(data)


def _parse_config(data: dict[str, Any]) -> Settings:
  """Parse config dict into Settings."""
  if "category" in data:
    data["category"] = _category(data["category"])

  models = data.get("models")
  if isinstance(models, dict) and "category_models" in models:
    models["category_models"] = {
      _category(name): key for name, key in (models["category_models"] or {}).items()
    }

  return Settings(**data)


def _category(value: str) -> Category:
  try:
    return Category(value)
  except ValueError:
    known = ", ".join(c.value for c in Category)
    raise ValueError(f"Unknown category '{value}'. Known categories: {known}") from None
