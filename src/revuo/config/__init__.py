"""Configuration management."""

from revuo.config.loader import find_config_file, load_config
from revuo.config.settings import DEFAULT_CATEGORY_MODELS, ModelConfig, Settings

__all__ = ["DEFAULT_CATEGORY_MODELS", "ModelConfig", "Settings", "find_config_file", "load_config"]
