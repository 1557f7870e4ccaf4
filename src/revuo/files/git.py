"""Thin git helpers."""

import subprocess
from dataclasses import dataclass
from pathlib import Path


class GitError(Exception):
  """Git command failed."""


def _sanitize_error(stderr: str) -> str:
  """Remove potentially sensitive path information from error messages."""
  lines = stderr.strip().split("\n")
  sanitized = []
  for line in lines:
    if "fatal:" in line or "error:" in line:
      sanitized.append(line.split("/")[-1] if "/" in line else line)
    else:
      sanitized.append(line)
  return "\n".join(sanitized)


def run_git(*args: str, cwd: Path | None = None) -> str:
  """Run a git command and return stdout."""
  try:
    result = subprocess.run(
      ["git", *args],
      capture_output=True,
      text=True,
      check=True,
      cwd=cwd,
    )
    return result.stdout
  except FileNotFoundError as e:
    raise GitError("git executable not found") from e
  except subprocess.CalledProcessError as e:
    sanitized = _sanitize_error(e.stderr or "")
    raise GitError(f"git {' '.join(args)} failed: {sanitized}") from e


@dataclass(frozen=True)
class GitInfo:
  commit: str | None = None
  branch: str | None = None


def git_info(cwd: Path | None = None) -> GitInfo:
  """Current commit and branch, or empty values outside a repository."""
  try:
    commit = run_git("rev-parse", "HEAD", cwd=cwd).strip() or None
    branch = run_git("branch", "--show-current", cwd=cwd).strip() or None
  except GitError:
    return GitInfo()
  return GitInfo(commit=commit, branch=branch)
