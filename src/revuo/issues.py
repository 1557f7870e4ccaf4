"""Keyword heuristic for flagging feedback that reports issues.

This is a blunt instrument, not a classifier: any feedback mentioning one of
the words below counts as having issues, so verbose but clean reviews
("you could keep this as is") are reported as positives.
"""

ISSUE_INDICATORS: tuple[str, ...] = (
  "issue",
  "problem",
  "error",
  "warning",
  "concern",
  "should",
  "could",
  "recommend",
  "suggest",
  "improve",
  "missing",
  "unnecessary",
  "inefficient",
  "unclear",
  "🚨",
  "⚠",
  "❌",
  "🔴",
)


def detect_issues(feedback: str) -> bool:
  """Return True if the feedback mentions any issue indicator."""
  lowered = feedback.lower()
  return any(indicator in lowered for indicator in ISSUE_INDICATORS)
