"""Fallback routing across model clients.

The router turns a review category into an ordered chain of model keys and
walks it: candidates that cannot fit the request are skipped, local rate
gates are consulted before every call, and any failure advances to the next
candidate. Only an exhausted chain is an error for the caller.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable

from revuo.config.settings import ModelConfig
from revuo.errors import (
  AllModelsFailedError,
  Attempt,
  NoModelsAvailableError,
  RateLimitError,
  RequestTooLargeError,
  ReviewError,
)
from revuo.estimator import TokenEstimate, TokenEstimator
from revuo.issues import detect_issues
from revuo.models import AuthMethod, Category, ModelResponse, ReviewRequest, ReviewResult, TokenUsage, utcnow
from revuo.providers.base import ModelClient
from revuo.providers.catalog import ModelSpec, get_model
from revuo.providers.registry import ClientSet
from revuo.ratelimit import RateTracker

logger = logging.getLogger(__name__)

MAX_COMPARISON_MODELS = 3
PROVIDER_RETRY_SECONDS = 60.0
CONSENSUS_KEYWORDS = ("security", "performance", "bug", "error", "vulnerability", "issue", "problem")

Sleeper = Callable[[float], Awaitable[None]]


class FallbackRouter:
  """Chooses models for a request and drives execution with fallback."""

  def __init__(
    self,
    clients: ClientSet,
    tracker: RateTracker,
    config: ModelConfig | None = None,
    estimator: TokenEstimator | None = None,
    model: str | None = None,
    sleep: Sleeper = asyncio.sleep,
    clock: Callable[[], datetime] = utcnow,
  ):
    self._clients = clients
    self._tracker = tracker
    self._config = config or ModelConfig()
    self._estimator = estimator or TokenEstimator()
    self._model = get_model(model).key if model else None
    self._sleep = sleep
    self._clock = clock

  def candidates(self, category: Category) -> list[str]:
    """Ordered, deduplicated model keys whose provider is authenticated."""
    available = self._clients.available_models()
    if not available:
      raise NoModelsAvailableError("No model provider is authenticated")

    if self._model:
      wanted = [self._model]
      if self._config.auto_fallback:
        wanted.extend(self._config.fallback_models)
    elif self._config.auto_fallback:
      wanted = list(self._config.fallback_models)
    else:
      wanted = [
        self._config.category_models.get(category, self._config.primary_model),
        self._config.primary_model,
        *self._config.fallback_models,
        available[0],
      ]

    chain = [key for key in dict.fromkeys(wanted) if self._clients.is_available(key)]
    if not chain:
      raise NoModelsAvailableError(
        f"None of the requested models is authenticated: {', '.join(dict.fromkeys(wanted))}",
        [f"Authenticated models: {', '.join(available)}", "Pick one of them with --model"],
      )
    return chain

  def max_retries(self, category: Category) -> int:
    return len(self.candidates(category))

  async def review(self, request: ReviewRequest) -> ReviewResult:
    """Review with the first candidate that succeeds."""
    chain = self.candidates(request.category)
    single = len(chain) == 1
    estimate = self._estimate(request)
    attempts: list[Attempt] = []

    for key in chain:
      fit = self._estimator.fits_within_limits(estimate, key)
      if not fit.fits:
        error = RequestTooLargeError(f"{key}: {'; '.join(fit.issues)}", model_key=key)
        logger.warning("Skipping %s for %s: %s", key, request.relative_path, error.cause)
        attempts.append(Attempt(key, error, skipped=True))
        continue

      try:
        response = await self._attempt(get_model(key), request, estimate, single)
      except ReviewError as e:
        logger.warning("%s failed for %s: %s", key, request.relative_path, e.cause)
        attempts.append(Attempt(key, e))
        continue

      if attempts:
        logger.info("%s reviewed by fallback model %s", request.relative_path, key)
      return self._to_result(request, response)

    raise AllModelsFailedError(
      f"All {len(chain)} candidate models failed for {request.relative_path}", attempts
    )

  async def compare(self, request: ReviewRequest, models: list[str] | None = None) -> list[ReviewResult]:
    """Query up to three models concurrently and keep every success."""
    keys = models if models is not None else self.candidates(request.category)
    keys = [key for key in dict.fromkeys(keys) if self._clients.is_available(key)]
    keys = keys[:MAX_COMPARISON_MODELS]
    if not keys:
      raise NoModelsAvailableError("No authenticated model available for comparison")

    estimate = self._estimate(request)
    attempts: list[Attempt] = []

    async def run_one(key: str) -> ReviewResult | None:
      try:
        fit = self._estimator.fits_within_limits(estimate, key)
        if not fit.fits:
          raise RequestTooLargeError(f"{key}: {'; '.join(fit.issues)}", model_key=key)
        response = await self._attempt(get_model(key), request, estimate, single=False)
      except ReviewError as e:
        logger.warning("Comparison model %s failed for %s: %s", key, request.relative_path, e.cause)
        attempts.append(Attempt(key, e))
        return None
      return self._to_result(request, response)

    outcomes = await asyncio.gather(*(run_one(key) for key in keys))
    results = [r for r in outcomes if r is not None]
    if not results:
      raise AllModelsFailedError(
        f"All {len(keys)} comparison models failed for {request.relative_path}", attempts
      )
    return results

  def _estimate(self, request: ReviewRequest) -> TokenEstimate:
    return self._estimator.estimate(
      request.content, request.system_prompt, request.relative_path, request.category
    )

  async def _attempt(
    self,
    spec: ModelSpec,
    request: ReviewRequest,
    estimate: TokenEstimate,
    single: bool,
  ) -> ModelResponse:
    """Call one model; in single-model mode, sleep through rate limits."""
    client = self._clients.client_for(spec.key)
    waits_left = self._config.rate_limit_waits if single else 0

    while True:
      try:
        return await self._call(spec, client, request, estimate)
      except RateLimitError as e:
        wait = e.wait_seconds
        if wait is None and not e.local:
          wait = PROVIDER_RETRY_SECONDS
        if waits_left <= 0 or wait is None:
          raise
        waits_left -= 1
        logger.warning("%s: %s; waiting %.0fs before retrying", spec.key, e.cause, wait)
        await self._sleep(wait)

  async def _call(
    self,
    spec: ModelSpec,
    client: ModelClient,
    request: ReviewRequest,
    estimate: TokenEstimate,
  ) -> ModelResponse:
    decision = self._tracker.can_proceed(spec.key, estimate.total_tokens)
    if not decision.allowed:
      raise RateLimitError(
        f"{spec.key}: {decision.reason}",
        wait_seconds=decision.wait_seconds,
        local=True,
        model_key=spec.key,
      )

    try:
      response = await client.execute(spec, request, self._config.timeout)
    except ReviewError:
      self._tracker.record(spec.key, estimate.input_tokens)
      raise

    self._tracker.record(spec.key, response.tokens.total)
    return response

  def _to_result(self, request: ReviewRequest, response: ModelResponse) -> ReviewResult:
    return ReviewResult(
      file_path=request.relative_path,
      category=request.category,
      feedback=response.text,
      tokens=response.tokens,
      timestamp=self._clock(),
      has_issues=detect_issues(response.text),
      model=response.model_key,
      provider=response.provider,
      latency_ms=response.latency_ms,
      auth_method=response.auth_method,
    )


def merge_comparison(results: list[ReviewResult]) -> ReviewResult:
  """Combine results from several models into one comparison result."""
  if not results:
    raise ValueError("merge_comparison needs at least one result")
  if len(results) == 1:
    return results[0]

  first = results[0]
  lines = [first.feedback, "", "## Model comparison", ""]
  for r in results:
    lines.append(f"- **{r.model}** ({r.provider}): {r.latency_ms}ms, {r.tokens.total:,} tokens")

  threshold = len(results) / 2
  consensus = [
    word for word in CONSENSUS_KEYWORDS
    if sum(word in r.feedback.lower() for r in results) >= threshold
  ]
  if consensus:
    lines.extend(["", f"**Consensus:** {', '.join(consensus)}"])

  tokens = TokenUsage()
  for r in results:
    tokens = tokens + r.tokens

  return ReviewResult(
    file_path=first.file_path,
    category=first.category,
    feedback="\n".join(lines),
    tokens=tokens,
    timestamp=max(r.timestamp for r in results),
    has_issues=any(r.has_issues for r in results),
    model="+".join(r.model for r in results),
    provider="+".join(dict.fromkeys(r.provider for r in results)),
    latency_ms=round(sum(r.latency_ms for r in results) / len(results)),
    auth_method=AuthMethod.MULTI_MODEL,
  )
