"""Tests for the error taxonomy."""

import pytest
from revuo.errors import (
  AllModelsFailedError,
  Attempt,
  ProviderAuthError,
  ProviderError,
  ProviderNetworkError,
  ProviderTimeoutError,
  RateLimitError,
  RequestTooLargeError,
  ReviewError,
  error_from_status,
  format_error,
)


class TestErrorFromStatus:
  @pytest.mark.parametrize(
    ("status", "message", "expected"),
    [
      (401, "invalid x-api-key", ProviderAuthError),
      (403, "forbidden", ProviderAuthError),
      (400, "Your credit balance is too low", ProviderAuthError),
      (402, "payment required", ProviderAuthError),
      (429, "rate_limit_error", RateLimitError),
      (413, "request too large", RequestTooLargeError),
      (400, "prompt is too long: max_tokens exceeded", RequestTooLargeError),
      (504, "gateway timeout", ProviderTimeoutError),
      (500, "internal error", ProviderError),
    ],
  )
  def test_maps_status(self, status: int, message: str, expected: type) -> None:
    error = error_from_status(status, message, "claude-sonnet")
    assert type(error) is expected
    assert error.model_key == "claude-sonnet"
    assert error.remediation

  def test_timeout_is_network_error(self) -> None:
    assert isinstance(error_from_status(408, "timeout"), ProviderNetworkError)


class TestReviewError:
  def test_default_remediation(self) -> None:
    error = ProviderNetworkError("connection refused")
    assert error.cause == "connection refused"
    assert str(error) == "connection refused"
    assert error.remediation == list(ProviderNetworkError.default_remediation)

  def test_custom_remediation(self) -> None:
    assert ReviewError("x", ["do this"]).remediation == ["do this"]

  def test_rate_limit_fields(self) -> None:
    error = RateLimitError("slow down", wait_seconds=12, local=True)
    assert error.wait_seconds == 12
    assert error.local is True


class TestFormatError:
  def test_includes_cause_and_steps(self) -> None:
    text = format_error(ProviderAuthError("claude-sonnet: authentication rejected"))
    assert text.startswith("claude-sonnet: authentication rejected")
    assert "Try:" in text
    assert "  - " in text

  def test_lists_attempts(self) -> None:
    error = AllModelsFailedError(
      "All 2 candidate models failed for a.py",
      [
        Attempt("ollama-codellama", RequestTooLargeError("too big"), skipped=True),
        Attempt("claude-haiku", ProviderError("HTTP 500")),
      ],
    )
    text = format_error(error)
    assert "[skipped] ollama-codellama: too big" in text
    assert "[failed] claude-haiku: HTTP 500" in text
