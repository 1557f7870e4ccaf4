"""Tests for the issue keyword heuristic."""

from revuo.issues import detect_issues


class TestDetectIssues:
  def test_flags_issue_vocabulary(self) -> None:
    assert detect_issues("There is a potential SQL injection problem on line 4.")

  def test_case_insensitive(self) -> None:
    assert detect_issues("WARNING: unchecked input")

  def test_flags_symbols(self) -> None:
    assert detect_issues("🚨 hardcoded secret")

  def test_clean_feedback(self) -> None:
    assert not detect_issues("Looks good. Nothing to change.")

  def test_known_false_positive(self) -> None:
    # verbose but clean feedback still trips the heuristic
    assert detect_issues("You could keep this exactly as it is.")
