"""Application settings."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from revuo.models import Category
from revuo.providers.catalog import MODELS

DEFAULT_CATEGORY_MODELS: dict[Category, str] = {
  Category.SECURITY: "claude-sonnet",
  Category.QUALITY: "gemini-flash",
  Category.PERFORMANCE: "gemini-flash",
  Category.TYPESCRIPT: "gemini-flash",
  Category.COMBINED: "claude-sonnet",
}


def _check_model_key(key: str) -> str:
  if key not in MODELS:
    raise ValueError(f"unknown model '{key}' (known: {', '.join(MODELS)})")
  return key


class ModelConfig(BaseModel):
  """Model selection and fallback behaviour."""

  primary_model: str = "claude-sonnet"
  fallback_models: list[str] = Field(
    default_factory=lambda: ["claude-haiku", "gemini-flash", "gemini-pro"]
  )
  category_models: dict[Category, str] = Field(
    default_factory=lambda: dict(DEFAULT_CATEGORY_MODELS)
  )
  comparison_mode: bool = False
  auto_fallback: bool = False
  timeout: float = Field(default=120.0, gt=0)
  rate_limit_waits: int = Field(default=3, ge=0)

  @field_validator("primary_model")
  @classmethod
  def _primary_known(cls, value: str) -> str:
    return _check_model_key(value)

  @field_validator("fallback_models")
  @classmethod
  def _fallbacks_known(cls, value: list[str]) -> list[str]:
    return [_check_model_key(key) for key in value]

  @field_validator("category_models")
  @classmethod
  def _category_models_known(cls, value: dict[Category, str]) -> dict[Category, str]:
    for key in value.values():
      _check_model_key(key)
    return {**DEFAULT_CATEGORY_MODELS, **value}


class Settings(BaseModel):
  """Application configuration."""

  model_config = ConfigDict(use_enum_values=False)

  category: Category = Category.QUALITY
  concurrency: int = Field(default=2, ge=1)
  max_file_size: int = Field(default=51200, gt=0)
  ignore_patterns: list[str] = Field(default_factory=list)
  cache_enabled: bool = True
  cache_dir: str = ".revuo-cache"
  session_dir: str = ".revuo-sessions"
  use_claude_cli: bool | None = None
  models: ModelConfig = Field(default_factory=ModelConfig)
