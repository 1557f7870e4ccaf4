"""Claude through the local `claude` command line tool.

The prompt is written to the tool's stdin and the review is read from
stdout. The tool reports no token usage, so responses carry estimated
counts.
"""

import asyncio
import logging

from revuo.errors import (
  ProviderAuthError,
  ProviderError,
  RateLimitError,
  RequestTooLargeError,
  ReviewError,
)
from revuo.models import AuthMethod, ReviewRequest
from revuo.prompts import build_user_prompt
from revuo.providers.base import CallOutput, ModelClient
from revuo.providers.catalog import ModelSpec

logger = logging.getLogger(__name__)

_AUTH_MARKERS = ("authentication", "setup-token", "not logged in", "invalid api key")
_RATE_MARKERS = ("rate limit", "usage limit", "too many requests")
_SIZE_MARKERS = ("max_tokens", "prompt is too long", "context length")


def classify_failure(output: str, model_key: str) -> ReviewError:
  """Map a failed CLI invocation's output onto the error taxonomy."""
  lowered = output.lower()
  detail = output.strip()[:200] or "no output"
  if any(m in lowered for m in _AUTH_MARKERS):
    return ProviderAuthError(
      f"{model_key}: claude CLI is not authenticated ({detail})",
      ["Run: claude setup-token", "Or set ANTHROPIC_API_KEY"],
      model_key,
    )
  if any(m in lowered for m in _RATE_MARKERS):
    return RateLimitError(f"{model_key}: claude CLI rate limited ({detail})", model_key=model_key)
  if any(m in lowered for m in _SIZE_MARKERS):
    return RequestTooLargeError(f"{model_key}: request too large ({detail})", model_key=model_key)
  return ProviderError(f"{model_key}: claude CLI failed ({detail})", model_key=model_key)


class ClaudeCliClient(ModelClient):
  """Runs `claude --print` as a subprocess per review."""

  def __init__(self, executable: str = "claude"):
    self._executable = executable

  @property
  def name(self) -> str:
    return "claude"

  @property
  def auth_method(self) -> AuthMethod:
    return AuthMethod.CLAUDE_CLI

  async def _call(self, spec: ModelSpec, request: ReviewRequest, timeout: float) -> CallOutput:
    prompt = f"{request.system_prompt}\n\n{build_user_prompt(request)}"
    model = spec.cli_alias or spec.model_id

    try:
      proc = await asyncio.create_subprocess_exec(
        self._executable, "--print", "--model", model,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
      )
    except FileNotFoundError as e:
      raise ProviderAuthError(
        f"{spec.key}: claude CLI not found ({self._executable})",
        ["Install the Claude CLI", "Or set ANTHROPIC_API_KEY"],
        spec.key,
      ) from e

    try:
      stdout, stderr = await proc.communicate(prompt.encode())
    finally:
      if proc.returncode is None:
        logger.debug("Killing claude CLI process %s", proc.pid)
        proc.kill()
        await proc.wait()

    out = stdout.decode(errors="replace")
    err = stderr.decode(errors="replace")
    if proc.returncode != 0:
      raise classify_failure(f"{err}\n{out}", spec.key)
    if not out.strip():
      raise ProviderError(f"{spec.key}: claude CLI returned an empty response", model_key=spec.key)
    return CallOutput(text=out)
