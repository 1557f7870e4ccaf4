"""Static catalog of known models, their limits and pricing."""

from dataclasses import dataclass

from revuo.errors import UnknownModelError


@dataclass(frozen=True)
class ModelSpec:
  """Limits and metadata for one model key."""

  key: str
  name: str
  provider: str
  model_id: str
  max_input_tokens: int
  max_output_tokens: int
  requests_per_minute: int
  tokens_per_minute: int
  requests_per_day: int | None = None
  tokens_per_day: int | None = None
  input_price: float = 0.0  # USD per million tokens
  output_price: float = 0.0
  cost_tier: str = "medium"
  speed_tier: str = "medium"
  strengths: tuple[str, ...] = ()
  cli_alias: str | None = None

  @property
  def is_free(self) -> bool:
    return self.input_price == 0 and self.output_price == 0


MODELS: dict[str, ModelSpec] = {
  spec.key: spec
  for spec in (
    ModelSpec(
      key="claude-sonnet",
      name="Claude Sonnet",
      provider="claude",
      model_id="claude-sonnet-4-20250514",
      max_input_tokens=200_000,
      max_output_tokens=8192,
      requests_per_minute=5,
      tokens_per_minute=40_000,
      requests_per_day=1000,
      tokens_per_day=500_000,
      input_price=3.0,
      output_price=15.0,
      cost_tier="medium",
      speed_tier="medium",
      strengths=("Security analysis", "Architecture review", "Documentation"),
      cli_alias="sonnet",
    ),
    ModelSpec(
      key="claude-haiku",
      name="Claude Haiku",
      provider="claude",
      model_id="claude-3-5-haiku-20241022",
      max_input_tokens=200_000,
      max_output_tokens=4096,
      requests_per_minute=5,
      tokens_per_minute=50_000,
      requests_per_day=1000,
      tokens_per_day=500_000,
      input_price=0.25,
      output_price=1.25,
      cost_tier="low",
      speed_tier="fast",
      strengths=("Quick feedback", "Code style", "Basic quality checks"),
      cli_alias="haiku",
    ),
    ModelSpec(
      key="gemini-pro",
      name="Gemini Pro",
      provider="gemini",
      model_id="gemini-1.5-pro",
      max_input_tokens=2_000_000,
      max_output_tokens=8192,
      requests_per_minute=2,
      tokens_per_minute=32_000,
      requests_per_day=50,
      cost_tier="free",
      speed_tier="medium",
      strengths=("Performance optimization", "Bug detection", "Detailed code review"),
    ),
    ModelSpec(
      key="gemini-flash",
      name="Gemini Flash",
      provider="gemini",
      model_id="gemini-1.5-flash",
      max_input_tokens=1_000_000,
      max_output_tokens=8192,
      requests_per_minute=15,
      tokens_per_minute=1_000_000,
      requests_per_day=1500,
      cost_tier="free",
      speed_tier="fast",
      strengths=("Fast reviews", "Code quality", "Pattern detection"),
    ),
    ModelSpec(
      key="gpt-4o",
      name="GPT-4o",
      provider="openai",
      model_id="gpt-4o",
      max_input_tokens=128_000,
      max_output_tokens=16_384,
      requests_per_minute=500,
      tokens_per_minute=30_000,
      input_price=2.5,
      output_price=10.0,
      cost_tier="medium",
      speed_tier="medium",
      strengths=("General review", "Refactoring advice"),
    ),
    ModelSpec(
      key="gpt-4o-mini",
      name="GPT-4o mini",
      provider="openai",
      model_id="gpt-4o-mini",
      max_input_tokens=128_000,
      max_output_tokens=16_384,
      requests_per_minute=500,
      tokens_per_minute=200_000,
      input_price=0.15,
      output_price=0.6,
      cost_tier="low",
      speed_tier="fast",
      strengths=("Quick feedback", "Code style"),
    ),
    ModelSpec(
      key="ollama-codellama",
      name="Code Llama (Ollama)",
      provider="ollama",
      model_id="codellama",
      max_input_tokens=16_000,
      max_output_tokens=4096,
      requests_per_minute=60,
      tokens_per_minute=1_000_000,
      cost_tier="free",
      speed_tier="slow",
      strengths=("Offline review",),
    ),
  )
}


def get_model(key: str) -> ModelSpec:
  """Look up a model spec by key."""
  try:
    return MODELS[key]
  except KeyError:
    known = ", ".join(MODELS)
    raise UnknownModelError(f"Unknown model '{key}'. Known models: {known}", model_key=key) from None


def models_for_provider(provider: str) -> list[str]:
  """Model keys served by a provider family, in catalog order."""
  return [key for key, spec in MODELS.items() if spec.provider == provider]
