"""Heuristic token estimation and model recommendation.

Token counts are approximated at four characters per token. This is a
proxy for sizing and routing decisions, not a tokenizer.
"""

import logging
import math
import re
from dataclasses import dataclass, field

from revuo.models import Category, Complexity
from revuo.providers.catalog import MODELS

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4
FORMATTING_OVERHEAD = 50
BASE_OUTPUT_TOKENS = 200
MAX_OUTPUT_TOKENS = 4000
COST_REFERENCE_MODEL = "claude-sonnet"

CATEGORY_MULTIPLIERS: dict[Category, float] = {
  Category.QUALITY: 1.5,
  Category.SECURITY: 2.0,
  Category.PERFORMANCE: 1.3,
  Category.TYPESCRIPT: 1.2,
  Category.COMBINED: 2.5,
}

_FUNCTION_PATTERN = re.compile(r"function|def |const.*=>|class ")
_IMPORT_PATTERN = re.compile(r"import|require")
_CONTROL_FLOW_PATTERN = re.compile(r"async|await|Promise|try|catch|except|if|for|while")
_CYCLOMATIC_PATTERN = re.compile(r"if|for|while|switch|case|catch|except|\?|&&|\|\|")


@dataclass(frozen=True)
class TokenEstimate:
  """Estimated size and routing hints for one request."""

  input_tokens: int
  output_tokens: int
  total_tokens: int
  complexity: Complexity
  recommended_model: str
  cost_estimate: float


@dataclass(frozen=True)
class FitResult:
  """Whether an estimate fits within a model's limits."""

  fits: bool
  issues: list[str] = field(default_factory=list)
  alternatives: list[str] = field(default_factory=list)


def _tokens(text: str) -> int:
  return math.ceil(len(text) / CHARS_PER_TOKEN)


def _count(pattern: re.Pattern[str], text: str) -> int:
  return len(pattern.findall(text))


class TokenEstimator:
  """Estimates token usage for review requests."""

  def estimate(
    self,
    content: str,
    system_prompt: str,
    file_name: str,
    category: Category,
  ) -> TokenEstimate:
    input_tokens = _tokens(content) + _tokens(system_prompt) + _tokens(file_name) + FORMATTING_OVERHEAD
    output_tokens = self.estimate_output_tokens(content, category)
    total = input_tokens + output_tokens
    complexity = self.assess_complexity(content, total)

    estimate = TokenEstimate(
      input_tokens=input_tokens,
      output_tokens=output_tokens,
      total_tokens=total,
      complexity=complexity,
      recommended_model=self.recommend_model(total, complexity, category),
      cost_estimate=self._price(input_tokens, output_tokens, COST_REFERENCE_MODEL),
    )
    logger.debug(
      "Estimated %s: %d input, %d output, %s complexity",
      file_name, input_tokens, output_tokens, complexity.value,
    )
    return estimate

  def estimate_output_tokens(self, content: str, category: Category) -> int:
    """Model the response length from the shape of the code."""
    lines = len(content.split("\n"))
    functions = _count(_FUNCTION_PATTERN, content)
    imports = _count(_IMPORT_PATTERN, content)
    control_flow = _count(_CONTROL_FLOW_PATTERN, content)

    score = lines * 2 + functions * 50 + imports * 10 + control_flow * 15
    multiplier = CATEGORY_MULTIPLIERS.get(category, 1.0)
    return math.ceil(min(BASE_OUTPUT_TOKENS + score * multiplier, MAX_OUTPUT_TOKENS))

  def assess_complexity(self, content: str, total_tokens: int) -> Complexity:
    lines = len(content.split("\n"))
    cyclomatic = _count(_CYCLOMATIC_PATTERN, content)

    if total_tokens > 3000 or lines > 200 or cyclomatic > 20:
      return Complexity.HIGH
    if total_tokens > 1000 or lines > 50 or cyclomatic > 5:
      return Complexity.MEDIUM
    return Complexity.LOW

  def recommend_model(self, total_tokens: int, complexity: Complexity, category: Category) -> str:
    if total_tokens < 1000 and complexity == Complexity.LOW:
      return "gemini-flash"
    if category == Category.SECURITY or complexity == Complexity.HIGH:
      return "claude-sonnet"
    if category == Category.TYPESCRIPT or (total_tokens < 2000 and complexity == Complexity.MEDIUM):
      return "gemini-flash"
    if total_tokens > 10_000:
      return "gemini-pro"
    return "gemini-flash"

  def fits_within_limits(self, estimate: TokenEstimate, model_key: str) -> FitResult:
    """Compare an estimate against a model's static token ceilings."""
    spec = MODELS.get(model_key)
    if spec is None:
      return FitResult(fits=False, issues=[f"Unknown model: {model_key}"])

    issues: list[str] = []
    if estimate.input_tokens > spec.max_input_tokens:
      issues.append(
        f"Input tokens ({estimate.input_tokens:,}) exceed limit ({spec.max_input_tokens:,})"
      )
    if estimate.output_tokens > spec.max_output_tokens:
      issues.append(
        f"Estimated output tokens ({estimate.output_tokens:,}) exceed limit ({spec.max_output_tokens:,})"
      )

    if not issues:
      return FitResult(fits=True)

    alternatives = [
      key for key, alt in MODELS.items()
      if estimate.input_tokens <= alt.max_input_tokens
      and estimate.output_tokens <= alt.max_output_tokens
    ]
    return FitResult(fits=False, issues=issues, alternatives=alternatives)

  def cost(self, estimate: TokenEstimate, model_key: str) -> float:
    """Estimated USD cost of the request on a given model."""
    return self._price(estimate.input_tokens, estimate.output_tokens, model_key)

  @staticmethod
  def _price(input_tokens: int, output_tokens: int, model_key: str) -> float:
    spec = MODELS.get(model_key)
    if spec is None:
      return 0.0
    return input_tokens / 1_000_000 * spec.input_price + output_tokens / 1_000_000 * spec.output_price
