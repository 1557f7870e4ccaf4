"""Ollama local LLM client."""

import httpx

from revuo.errors import ProviderError, ProviderNetworkError, ProviderTimeoutError, error_from_status
from revuo.models import AuthMethod, ReviewRequest, TokenUsage
from revuo.prompts import build_user_prompt
from revuo.providers.base import CallOutput, ModelClient
from revuo.providers.catalog import ModelSpec
from revuo.providers.detection import DEFAULT_OLLAMA_HOST, ProviderStatus
from revuo.providers.registry import register_client


class OllamaClient(ModelClient):
  """Calls a local Ollama server over HTTP."""

  def __init__(self, host: str = DEFAULT_OLLAMA_HOST, transport: httpx.AsyncBaseTransport | None = None):
    self._host = host.rstrip("/")
    self._transport = transport

  @property
  def name(self) -> str:
    return "ollama"

  @property
  def auth_method(self) -> AuthMethod:
    return AuthMethod.LOCAL

  async def _call(self, spec: ModelSpec, request: ReviewRequest, timeout: float) -> CallOutput:
    payload = {
      "model": spec.model_id,
      "system": request.system_prompt,
      "prompt": build_user_prompt(request),
      "stream": False,
    }
    try:
      async with httpx.AsyncClient(transport=self._transport, timeout=timeout) as client:
        response = await client.post(f"{self._host}/api/generate", json=payload)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
      raise error_from_status(e.response.status_code, e.response.text, spec.key) from e
    except httpx.TimeoutException as e:
      raise ProviderTimeoutError(f"{spec.key}: Ollama did not respond in time", model_key=spec.key) from e
    except httpx.RequestError as e:
      raise ProviderNetworkError(
        f"{spec.key}: cannot reach Ollama at {self._host} ({e})",
        ["Start the server with: ollama serve", f"Pull the model with: ollama pull {spec.model_id}"],
        spec.key,
      ) from e

    try:
      data = response.json()
    except ValueError as e:
      raise ProviderError(
        f"{spec.key}: Ollama at {self._host} did not return JSON", model_key=spec.key
      ) from e
    text = data.get("response", "")
    if not text:
      raise ProviderError(f"{spec.key}: Ollama returned an empty response", model_key=spec.key)

    tokens = None
    if "prompt_eval_count" in data and "eval_count" in data:
      tokens = TokenUsage(data["prompt_eval_count"], data["eval_count"])
    return CallOutput(text=text, tokens=tokens)


def _create_ollama(status: ProviderStatus) -> ModelClient:
  return OllamaClient(status.credential or DEFAULT_OLLAMA_HOST)


register_client("ollama", _create_ollama)
