"""Anthropic Claude API client."""

from typing import Any

from revuo.errors import ProviderError, ProviderNetworkError, ProviderTimeoutError, error_from_status
from revuo.models import AuthMethod, ReviewRequest, TokenUsage
from revuo.prompts import build_user_prompt
from revuo.providers.base import CallOutput, ModelClient
from revuo.providers.catalog import ModelSpec
from revuo.providers.detection import ProviderStatus
from revuo.providers.registry import register_client

MAX_TOKENS = 4096


def _sdk() -> Any:
  try:
    import anthropic
  except ImportError as e:
    raise ProviderError(
      "anthropic not installed",
      ["Install with: pip install 'revuo[anthropic]'"],
    ) from e
  return anthropic


class ClaudeApiClient(ModelClient):
  """Calls Claude through the Anthropic Messages API."""

  def __init__(
    self,
    api_key: str | None = None,
    oauth_token: str | None = None,
    client: Any = None,
  ):
    self._api_key = api_key
    self._oauth_token = oauth_token
    self._client = client

  @property
  def name(self) -> str:
    return "claude"

  @property
  def auth_method(self) -> AuthMethod:
    if self._oauth_token and not self._api_key:
      return AuthMethod.OAUTH_TOKEN
    return AuthMethod.API_KEY

  def _get_client(self) -> Any:
    if self._client is None:
      anthropic = _sdk()
      if self._api_key:
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
      else:
        self._client = anthropic.AsyncAnthropic(auth_token=self._oauth_token)
    return self._client

  async def _call(self, spec: ModelSpec, request: ReviewRequest, timeout: float) -> CallOutput:
    anthropic = _sdk()
    client = self._get_client()

    try:
      response = await client.messages.create(
        model=spec.model_id,
        max_tokens=min(MAX_TOKENS, spec.max_output_tokens),
        system=request.system_prompt,
        messages=[{"role": "user", "content": build_user_prompt(request)}],
        timeout=timeout,
      )
    except anthropic.APIStatusError as e:
      raise error_from_status(e.status_code, str(e.message), spec.key) from e
    except anthropic.APITimeoutError as e:
      raise ProviderTimeoutError(f"{spec.key}: request timed out", model_key=spec.key) from e
    except anthropic.APIConnectionError as e:
      raise ProviderNetworkError(f"{spec.key}: cannot reach Anthropic API ({e})", model_key=spec.key) from e

    text = "\n".join(
      block.text for block in response.content if getattr(block, "type", None) == "text"
    )
    usage = getattr(response, "usage", None)
    tokens = TokenUsage(usage.input_tokens, usage.output_tokens) if usage else None
    return CallOutput(text=text, tokens=tokens)


def _create_claude(status: ProviderStatus) -> ModelClient:
  if status.auth_method == AuthMethod.CLAUDE_CLI:
    from revuo.providers.claude_cli import ClaudeCliClient
    return ClaudeCliClient(executable=status.credential or "claude")
  if status.auth_method == AuthMethod.OAUTH_TOKEN:
    return ClaudeApiClient(oauth_token=status.credential)
  return ClaudeApiClient(api_key=status.credential)


register_client("claude", _create_claude)
