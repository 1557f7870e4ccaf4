"""OpenAI client."""

from typing import Any

from revuo.errors import ProviderError, ProviderNetworkError, ProviderTimeoutError, error_from_status
from revuo.models import AuthMethod, ReviewRequest, TokenUsage
from revuo.prompts import build_user_prompt
from revuo.providers.base import CallOutput, ModelClient
from revuo.providers.catalog import ModelSpec
from revuo.providers.detection import ProviderStatus
from revuo.providers.registry import register_client


def _sdk() -> Any:
  try:
    import openai
  except ImportError as e:
    raise ProviderError(
      "openai not installed",
      ["Install with: pip install 'revuo[openai]'"],
    ) from e
  return openai


class OpenAIClient(ModelClient):
  """Calls OpenAI chat completion models."""

  def __init__(self, api_key: str | None, client: Any = None):
    self._api_key = api_key
    self._client = client

  @property
  def name(self) -> str:
    return "openai"

  @property
  def auth_method(self) -> AuthMethod:
    return AuthMethod.API_KEY

  def _get_client(self) -> Any:
    if self._client is None:
      self._client = _sdk().AsyncOpenAI(api_key=self._api_key)
    return self._client

  async def _call(self, spec: ModelSpec, request: ReviewRequest, timeout: float) -> CallOutput:
    openai = _sdk()
    client = self._get_client()

    try:
      response = await client.chat.completions.create(
        model=spec.model_id,
        messages=[
          {"role": "system", "content": request.system_prompt},
          {"role": "user", "content": build_user_prompt(request)},
        ],
        max_tokens=spec.max_output_tokens,
        timeout=timeout,
      )
    except openai.APIStatusError as e:
      raise error_from_status(e.status_code, str(e.message), spec.key) from e
    except openai.APITimeoutError as e:
      raise ProviderTimeoutError(f"{spec.key}: request timed out", model_key=spec.key) from e
    except openai.APIConnectionError as e:
      raise ProviderNetworkError(f"{spec.key}: cannot reach OpenAI API ({e})", model_key=spec.key) from e

    text = response.choices[0].message.content or ""
    if not text:
      raise ProviderError(f"{spec.key}: OpenAI returned an empty response", model_key=spec.key)
    usage = response.usage
    tokens = TokenUsage(usage.prompt_tokens, usage.completion_tokens) if usage else None
    return CallOutput(text=text, tokens=tokens)


def _create_openai(status: ProviderStatus) -> ModelClient:
  return OpenAIClient(status.credential)


register_client("openai", _create_openai)
