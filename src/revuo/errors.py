"""Error taxonomy for review orchestration.

Every error carries a human readable cause and at least one remediation
step so the CLI never has to fall back to a bare traceback.
"""

from dataclasses import dataclass


class ReviewError(Exception):
  """Base class for all review errors."""

  default_remediation: tuple[str, ...] = ("Re-run with --debug for details",)

  def __init__(
    self,
    cause: str,
    remediation: list[str] | None = None,
    model_key: str | None = None,
  ):
    super().__init__(cause)
    self.cause = cause
    self.remediation = list(remediation or self.default_remediation)
    self.model_key = model_key


class ProviderAuthError(ReviewError):
  """Missing or invalid credential, or insufficient account balance."""

  default_remediation = (
    "Check the provider credential is set and valid",
    "Run `revuo status` to see which providers are authenticated",
  )


class RateLimitError(ReviewError):
  """A local rate gate or the provider refused the call."""

  default_remediation = (
    "Wait a few minutes and try again",
    "Lower --concurrency to send fewer requests at once",
  )

  def __init__(
    self,
    cause: str,
    wait_seconds: float | None = None,
    local: bool = False,
    remediation: list[str] | None = None,
    model_key: str | None = None,
  ):
    super().__init__(cause, remediation, model_key)
    self.wait_seconds = wait_seconds
    self.local = local


class ProviderNetworkError(ReviewError):
  """Connection refused, DNS failure and similar transport problems."""

  default_remediation = (
    "Check your internet connection and proxy settings",
    "Try again in a few minutes",
  )


class ProviderTimeoutError(ProviderNetworkError):
  """The call did not complete within the configured timeout."""

  default_remediation = (
    "Review smaller files or raise the timeout in the config file",
    "Try again later",
  )


class RequestTooLargeError(ReviewError):
  """The request exceeds the model's token limits."""

  default_remediation = (
    "Split the file into smaller pieces",
    "Use a more focused category instead of 'combined'",
    "Add the file to ignore_patterns",
  )


class ProviderError(ReviewError):
  """Any other provider-side failure."""

  default_remediation = (
    "Check the provider's status page",
    "Try again later or pick another model with --model",
  )


class UnknownModelError(ReviewError):
  """A model key that is not in the catalog."""

  default_remediation = ("Run `revuo status` to list known model keys",)


class FileReviewError(ReviewError):
  """A file could not be read or vanished before review."""

  default_remediation = ("Check the file exists and is readable",)


class StorageError(ReviewError):
  """Persisted state could not be read or written."""

  default_remediation = ("Delete the corrupt file; it will be rebuilt",)


class SessionMismatchError(ReviewError):
  """A resumed session belongs to a different category or target."""

  default_remediation = ("Run `revuo sessions` to list saved sessions",)


class NoModelsAvailableError(ReviewError):
  """No provider is authenticated at all."""

  default_remediation = (
    "Install and log in to the Claude CLI: claude setup-token",
    "Or set ANTHROPIC_API_KEY, GEMINI_API_KEY or OPENAI_API_KEY",
    "Or start a local Ollama server",
  )


@dataclass(frozen=True)
class Attempt:
  """One candidate tried by the fallback router."""

  model_key: str
  error: ReviewError
  skipped: bool = False


class AllModelsFailedError(ReviewError):
  """Every candidate in the fallback chain failed."""

  default_remediation = (
    "Run `revuo status` to check provider availability and rate limits",
    "Lower --concurrency or wait for rate limits to reset",
    "Resume the run later with --resume",
  )

  def __init__(self, cause: str, attempts: list[Attempt], remediation: list[str] | None = None):
    super().__init__(cause, remediation)
    self.attempts = attempts


_TOO_LARGE_MARKERS = ("max_tokens", "too long", "too large", "context length", "maximum context")
_BALANCE_MARKERS = ("credit balance", "insufficient_quota", "billing")


def error_from_status(status: int, message: str, model_key: str | None = None) -> ReviewError:
  """Map a provider HTTP status and message onto the error taxonomy."""
  lowered = message.lower()
  label = model_key or "provider"

  if status == 402 or any(m in lowered for m in _BALANCE_MARKERS):
    return ProviderAuthError(
      f"{label}: insufficient account balance ({message})",
      ["Add credits to the provider account", "Use a different key or model"],
      model_key,
    )
  if status in (401, 403):
    return ProviderAuthError(f"{label}: authentication rejected ({message})", model_key=model_key)
  if status == 429:
    return RateLimitError(f"{label}: provider rate limit exceeded ({message})", model_key=model_key)
  if status == 413 or any(m in lowered for m in _TOO_LARGE_MARKERS):
    return RequestTooLargeError(f"{label}: request too large ({message})", model_key=model_key)
  if status in (408, 504):
    return ProviderTimeoutError(f"{label}: request timed out ({message})", model_key=model_key)
  return ProviderError(f"{label}: HTTP {status} ({message})", model_key=model_key)


def format_error(error: ReviewError) -> str:
  """Format an error with its cause and remediation steps."""
  lines = [error.cause]
  if isinstance(error, AllModelsFailedError) and error.attempts:
    lines.extend(["", "Attempts:"])
    for attempt in error.attempts:
      status = "skipped" if attempt.skipped else "failed"
      lines.append(f"  [{status}] {attempt.model_key}: {attempt.error.cause}")
  if error.remediation:
    lines.extend(["", "Try:"])
    lines.extend(f"  - {step}" for step in error.remediation)
  return "\n".join(lines)
