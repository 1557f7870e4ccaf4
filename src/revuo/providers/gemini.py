"""Google Gemini client."""

from typing import Any

from revuo.errors import ProviderError, ProviderNetworkError, error_from_status
from revuo.models import AuthMethod, ReviewRequest, TokenUsage
from revuo.prompts import build_user_prompt
from revuo.providers.base import CallOutput, ModelClient
from revuo.providers.catalog import ModelSpec
from revuo.providers.detection import ProviderStatus
from revuo.providers.registry import register_client


def _sdk() -> tuple[Any, Any]:
  try:
    import google.generativeai as genai
    from google.api_core import exceptions as google_exceptions
  except ImportError as e:
    raise ProviderError(
      "google-generativeai not installed",
      ["Install with: pip install 'revuo[gemini]'"],
    ) from e
  return genai, google_exceptions


class GeminiClient(ModelClient):
  """Calls Gemini models through google-generativeai."""

  def __init__(self, api_key: str | None):
    self._api_key = api_key
    self._models: dict[str, Any] = {}

  @property
  def name(self) -> str:
    return "gemini"

  @property
  def auth_method(self) -> AuthMethod:
    return AuthMethod.API_KEY

  def _get_model(self, spec: ModelSpec) -> Any:
    if spec.model_id not in self._models:
      genai, _ = _sdk()
      genai.configure(api_key=self._api_key)
      self._models[spec.model_id] = genai.GenerativeModel(spec.model_id)
    return self._models[spec.model_id]

  async def _call(self, spec: ModelSpec, request: ReviewRequest, timeout: float) -> CallOutput:
    _, google_exceptions = _sdk()
    model = self._get_model(spec)

    try:
      response = await model.generate_content_async(
        f"{request.system_prompt}\n\n{build_user_prompt(request)}",
        generation_config={"max_output_tokens": spec.max_output_tokens},
        request_options={"timeout": timeout},
      )
    except google_exceptions.GoogleAPICallError as e:
      raise error_from_status(e.code or 500, str(e.message), spec.key) from e
    except google_exceptions.RetryError as e:
      raise ProviderNetworkError(f"{spec.key}: cannot reach Gemini API ({e})", model_key=spec.key) from e

    try:
      text = response.text
    except ValueError as e:
      # Raised when the candidate was blocked and has no text parts.
      raise ProviderError(f"{spec.key}: Gemini returned no text ({e})", model_key=spec.key) from e
    if not text:
      raise ProviderError(f"{spec.key}: Gemini returned an empty response", model_key=spec.key)

    usage = getattr(response, "usage_metadata", None)
    tokens = None
    if usage is not None:
      tokens = TokenUsage(usage.prompt_token_count, usage.candidates_token_count)
    return CallOutput(text=text, tokens=tokens)


def _create_gemini(status: ProviderStatus) -> ModelClient:
  return GeminiClient(status.credential)


register_client("gemini", _create_gemini)
