"""File discovery and git helpers."""

from revuo.files.git import GitError, GitInfo, git_info, run_git
from revuo.files.scanner import FileError, ScanResult, discover_files

__all__ = [
  "FileError",
  "GitError",
  "GitInfo",
  "ScanResult",
  "discover_files",
  "git_info",
  "run_git",
]
