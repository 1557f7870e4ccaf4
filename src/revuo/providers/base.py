"""Base model client.

Every provider family implements one raw call (`_call`). The shared
`execute` wrapper applies the per-call timeout, measures latency and fills
in estimated token counts when the provider does not report them, so the
router sees one uniform capability regardless of SDK or subprocess.
"""

import asyncio
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from revuo.errors import ProviderError, ProviderTimeoutError, ReviewError
from revuo.models import AuthMethod, ModelResponse, ReviewRequest, TokenUsage
from revuo.prompts import build_user_prompt
from revuo.providers.catalog import ModelSpec


@dataclass(frozen=True)
class CallOutput:
  """What a provider returned for one call."""

  text: str
  tokens: TokenUsage | None = None


def estimate_tokens(text: str) -> int:
  return math.ceil(len(text) / 4)


class ModelClient(ABC):
  """Executes single review calls against one provider family."""

  @property
  @abstractmethod
  def name(self) -> str:
    """Provider family name."""
    ...

  @property
  @abstractmethod
  def auth_method(self) -> AuthMethod:
    """How calls are authenticated."""
    ...

  @abstractmethod
  async def _call(self, spec: ModelSpec, request: ReviewRequest, timeout: float) -> CallOutput:
    """Make one raw call. Raise a ReviewError subclass on failure."""
    ...

  async def execute(self, spec: ModelSpec, request: ReviewRequest, timeout: float) -> ModelResponse:
    started = time.perf_counter()
    try:
      output = await asyncio.wait_for(self._call(spec, request, timeout), timeout)
    except asyncio.TimeoutError as e:
      raise ProviderTimeoutError(
        f"{spec.key}: no response within {timeout:g}s", model_key=spec.key
      ) from e
    except ReviewError:
      raise
    except Exception as e:
      raise ProviderError(f"{spec.key}: {type(e).__name__}: {e}", model_key=spec.key) from e
    latency_ms = int((time.perf_counter() - started) * 1000)

    tokens = output.tokens
    estimated = tokens is None
    if tokens is None:
      prompt = f"{request.system_prompt}\n\n{build_user_prompt(request)}"
      tokens = TokenUsage(estimate_tokens(prompt), estimate_tokens(output.text))

    return ModelResponse(
      text=output.text.strip(),
      model_key=spec.key,
      model_id=spec.model_id,
      provider=self.name,
      tokens=tokens,
      latency_ms=latency_ms,
      auth_method=self.auth_method,
      estimated_tokens=estimated,
    )
