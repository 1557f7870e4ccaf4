"""Per-model sliding-window request and token accounting.

The tracker never sleeps. It answers whether a call may proceed now and,
when it may not, how long the caller would have to wait; the caller decides
whether to wait or move on to another model. State is in memory only and
approximates the provider's own server-side counters.
"""

import logging
import math
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Callable

from revuo.providers.catalog import MODELS, ModelSpec

logger = logging.getLogger(__name__)

MINUTE = 60.0
DAY = 24 * 60 * 60.0


@dataclass
class RateWindow:
  """Request and token logs for one model, pruned to their windows."""

  minute_requests: deque[float] = field(default_factory=deque)
  minute_tokens: deque[tuple[float, int]] = field(default_factory=deque)
  day_requests: deque[float] = field(default_factory=deque)
  day_tokens: deque[tuple[float, int]] = field(default_factory=deque)
  total_requests: int = 0
  total_tokens: int = 0

  def prune(self, now: float) -> None:
    minute_cutoff = now - MINUTE
    day_cutoff = now - DAY
    while self.minute_requests and self.minute_requests[0] <= minute_cutoff:
      self.minute_requests.popleft()
    while self.minute_tokens and self.minute_tokens[0][0] <= minute_cutoff:
      self.minute_tokens.popleft()
    while self.day_requests and self.day_requests[0] <= day_cutoff:
      self.day_requests.popleft()
    while self.day_tokens and self.day_tokens[0][0] <= day_cutoff:
      self.day_tokens.popleft()

  def append(self, now: float, tokens: int) -> None:
    self.minute_requests.append(now)
    self.minute_tokens.append((now, tokens))
    self.day_requests.append(now)
    self.day_tokens.append((now, tokens))
    self.total_requests += 1
    self.total_tokens += tokens


@dataclass(frozen=True)
class RateDecision:
  """Answer to "can I call this model now"."""

  allowed: bool
  wait_seconds: float | None = None
  reason: str | None = None


@dataclass(frozen=True)
class UsageSnapshot:
  """Current window usage for one model."""

  model_key: str
  requests_this_minute: int
  tokens_this_minute: int
  requests_today: int
  tokens_today: int
  total_requests: int
  total_tokens: int
  limits: ModelSpec | None


def _seconds_until(timestamp: float, window: float, now: float) -> float:
  return max(1.0, float(math.ceil(timestamp + window - now)))


def _token_wait(log: deque[tuple[float, int]], used: int, needed: int, limit: int, window: float, now: float) -> float:
  """Seconds until enough logged tokens leave the window for `needed` to fit."""
  excess = used + needed - limit
  for timestamp, tokens in log:
    excess -= tokens
    if excess <= 0:
      return _seconds_until(timestamp, window, now)
  # Even an empty window cannot hold the request; wait for the whole window.
  return _seconds_until(log[-1][0], window, now) if log else window


class RateTracker:
  """Sliding-window rate accounting, one instance per run."""

  def __init__(
    self,
    limits: dict[str, ModelSpec] | None = None,
    clock: Callable[[], float] = time.time,
  ):
    self._limits = limits if limits is not None else MODELS
    self._clock = clock
    self._windows: dict[str, RateWindow] = defaultdict(RateWindow)

  def can_proceed(self, model_key: str, estimated_tokens: int = 0) -> RateDecision:
    spec = self._limits.get(model_key)
    if spec is None:
      return RateDecision(allowed=True)

    now = self._clock()
    window = self._windows[model_key]
    window.prune(now)

    if len(window.minute_requests) >= spec.requests_per_minute:
      return RateDecision(
        allowed=False,
        wait_seconds=_seconds_until(window.minute_requests[0], MINUTE, now),
        reason=f"Rate limit: {spec.requests_per_minute} requests per minute",
      )

    minute_tokens = sum(tokens for _, tokens in window.minute_tokens)
    if minute_tokens + estimated_tokens > spec.tokens_per_minute:
      return RateDecision(
        allowed=False,
        wait_seconds=_token_wait(
          window.minute_tokens, minute_tokens, estimated_tokens, spec.tokens_per_minute, MINUTE, now
        ),
        reason=f"Rate limit: {spec.tokens_per_minute:,} tokens per minute",
      )

    if spec.requests_per_day is not None and len(window.day_requests) >= spec.requests_per_day:
      return RateDecision(
        allowed=False,
        reason=f"Daily limit: {spec.requests_per_day} requests per day",
      )

    if spec.tokens_per_day is not None:
      day_tokens = sum(tokens for _, tokens in window.day_tokens)
      if day_tokens + estimated_tokens > spec.tokens_per_day:
        return RateDecision(
          allowed=False,
          reason=f"Daily limit: {spec.tokens_per_day:,} tokens per day",
        )

    return RateDecision(allowed=True)

  def record(self, model_key: str, tokens_used: int) -> None:
    """Log one request and its token usage."""
    now = self._clock()
    window = self._windows[model_key]
    window.prune(now)
    window.append(now, tokens_used)

  def snapshot(self, model_key: str) -> UsageSnapshot:
    now = self._clock()
    window = self._windows[model_key]
    window.prune(now)
    return UsageSnapshot(
      model_key=model_key,
      requests_this_minute=len(window.minute_requests),
      tokens_this_minute=sum(tokens for _, tokens in window.minute_tokens),
      requests_today=len(window.day_requests),
      tokens_today=sum(tokens for _, tokens in window.day_tokens),
      total_requests=window.total_requests,
      total_tokens=window.total_tokens,
      limits=self._limits.get(model_key),
    )

  def tracked_models(self) -> list[str]:
    return list(self._windows)
