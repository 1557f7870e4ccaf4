"""Core domain models for review orchestration."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Category(Enum):
  """Review focus."""

  QUALITY = "quality"
  SECURITY = "security"
  PERFORMANCE = "performance"
  TYPESCRIPT = "typescript"
  COMBINED = "combined"


class Complexity(Enum):
  """Estimated complexity of a review request."""

  LOW = "low"
  MEDIUM = "medium"
  HIGH = "high"


class AuthMethod(Enum):
  """How a provider call was authenticated."""

  CLAUDE_CLI = "claude-cli"
  API_KEY = "api-key"
  OAUTH_TOKEN = "oauth-token"
  LOCAL = "local"
  MULTI_MODEL = "multi-model"


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FileInfo:
  """A discovered source file."""

  path: str
  relative_path: str
  size: int
  extension: str
  content: str

  def to_dict(self) -> dict[str, Any]:
    return asdict(self)

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> "FileInfo":
    return cls(
      path=data["path"],
      relative_path=data["relative_path"],
      size=int(data.get("size", 0)),
      extension=data.get("extension", ""),
      content=data.get("content", ""),
    )


@dataclass(frozen=True)
class ReviewRequest:
  """A single file submitted for review under one category."""

  path: str
  relative_path: str
  content: str
  size: int
  category: Category
  system_prompt: str
  extension: str = ""

  @classmethod
  def for_file(cls, file: FileInfo, category: Category, system_prompt: str) -> "ReviewRequest":
    return cls(
      path=file.path,
      relative_path=file.relative_path,
      content=file.content,
      size=file.size,
      category=category,
      system_prompt=system_prompt,
      extension=file.extension,
    )


@dataclass(frozen=True)
class TokenUsage:
  """Token counts for one call."""

  input: int = 0
  output: int = 0

  @property
  def total(self) -> int:
    return self.input + self.output

  def __add__(self, other: "TokenUsage") -> "TokenUsage":
    return TokenUsage(self.input + other.input, self.output + other.output)


@dataclass(frozen=True)
class ModelResponse:
  """Raw outcome of one model client call."""

  text: str
  model_key: str
  model_id: str
  provider: str
  tokens: TokenUsage
  latency_ms: int
  auth_method: AuthMethod
  estimated_tokens: bool = False


@dataclass(frozen=True)
class ReviewResult:
  """Feedback for one file under one category."""

  file_path: str
  category: Category
  feedback: str
  tokens: TokenUsage
  timestamp: datetime
  has_issues: bool
  model: str
  provider: str
  latency_ms: int
  auth_method: AuthMethod

  def to_dict(self) -> dict[str, Any]:
    return {
      "file_path": self.file_path,
      "category": self.category.value,
      "feedback": self.feedback,
      "tokens": {"input": self.tokens.input, "output": self.tokens.output},
      "timestamp": self.timestamp.isoformat(),
      "has_issues": self.has_issues,
      "model": self.model,
      "provider": self.provider,
      "latency_ms": self.latency_ms,
      "auth_method": self.auth_method.value,
    }

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> "ReviewResult":
    tokens = data.get("tokens") or {}
    return cls(
      file_path=data["file_path"],
      category=Category(data["category"]),
      feedback=data.get("feedback", ""),
      tokens=TokenUsage(int(tokens.get("input", 0)), int(tokens.get("output", 0))),
      timestamp=datetime.fromisoformat(data["timestamp"]),
      has_issues=bool(data.get("has_issues", False)),
      model=data.get("model", "unknown"),
      provider=data.get("provider", "unknown"),
      latency_ms=int(data.get("latency_ms", 0)),
      auth_method=AuthMethod(data.get("auth_method", AuthMethod.API_KEY.value)),
    )


@dataclass(frozen=True)
class CacheEntry:
  """A cached review result and the file state it was computed from."""

  file_hash: str
  file_path: str
  category: Category
  result: ReviewResult
  cached_at: datetime
  file_size: int
  modified_ns: int

  def to_dict(self) -> dict[str, Any]:
    return {
      "file_hash": self.file_hash,
      "file_path": self.file_path,
      "category": self.category.value,
      "result": self.result.to_dict(),
      "cached_at": self.cached_at.isoformat(),
      "file_size": self.file_size,
      "modified_ns": self.modified_ns,
    }

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> "CacheEntry":
    return cls(
      file_hash=data["file_hash"],
      file_path=data["file_path"],
      category=Category(data["category"]),
      result=ReviewResult.from_dict(data["result"]),
      cached_at=datetime.fromisoformat(data["cached_at"]),
      file_size=int(data.get("file_size", 0)),
      modified_ns=int(data["modified_ns"]),
    )


@dataclass(frozen=True)
class CacheStats:
  """Outcome of partitioning a file list against the cache."""

  total_files: int
  cached_files: int
  new_files: int
  changed_files: int
  time_saved_seconds: int

  @property
  def hit_rate(self) -> float:
    if not self.total_files:
      return 0.0
    return self.cached_files / self.total_files * 100

  @property
  def time_saved(self) -> str:
    seconds = self.time_saved_seconds
    if seconds < 60:
      return f"{seconds}s"
    if seconds < 3600:
      return f"{round(seconds / 60)}m"
    hours, rest = divmod(seconds, 3600)
    return f"{hours}h {round(rest / 60)}m"


@dataclass
class ReviewSession:
  """Persisted progress of one batch run."""

  id: str
  started_at: datetime
  last_updated: datetime
  category: Category
  total_files: int
  target_path: str
  pending_files: list[FileInfo] = field(default_factory=list)
  completed_results: list[ReviewResult] = field(default_factory=list)
  git_commit: str | None = None
  git_branch: str | None = None
  options: dict[str, Any] = field(default_factory=dict)

  @property
  def completed_files(self) -> int:
    return len(self.completed_results)

  def to_dict(self) -> dict[str, Any]:
    return {
      "id": self.id,
      "started_at": self.started_at.isoformat(),
      "last_updated": self.last_updated.isoformat(),
      "category": self.category.value,
      "total_files": self.total_files,
      "completed_files": self.completed_files,
      "target_path": self.target_path,
      "git_commit": self.git_commit,
      "git_branch": self.git_branch,
      "pending_files": [f.to_dict() for f in self.pending_files],
      "completed_results": [r.to_dict() for r in self.completed_results],
      "options": dict(self.options),
    }

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> "ReviewSession":
    return cls(
      id=data["id"],
      started_at=datetime.fromisoformat(data["started_at"]),
      last_updated=datetime.fromisoformat(data["last_updated"]),
      category=Category(data["category"]),
      total_files=int(data["total_files"]),
      target_path=data["target_path"],
      pending_files=[FileInfo.from_dict(f) for f in data.get("pending_files", [])],
      completed_results=[ReviewResult.from_dict(r) for r in data.get("completed_results", [])],
      git_commit=data.get("git_commit"),
      git_branch=data.get("git_branch"),
      options=dict(data.get("options") or {}),
    )
