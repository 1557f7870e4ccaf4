"""File discovery for review runs."""

import fnmatch
import glob as globmod
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from revuo.models import FileInfo

logger = logging.getLogger(__name__)


class FileError(Exception):
  """File discovery failed."""


@dataclass(frozen=True)
class ScanResult:
  """Files found for review and the ones left out."""

  files: list[FileInfo]
  skipped: list[str] = field(default_factory=list)

  @property
  def total_size(self) -> int:
    return sum(f.size for f in self.files)

  @property
  def estimated_tokens(self) -> int:
    return -(-self.total_size // 4)


def discover_files(
  patterns: list[str],
  cwd: Path | None = None,
  max_file_size: int = 51200,
  ignore_patterns: list[str] | None = None,
) -> ScanResult:
  """Expand patterns into readable files, filtered by size and ignore rules."""
  base_path = cwd or Path.cwd()
  expanded = _expand_directories(patterns, base_path)
  resolved = _resolve_patterns(expanded, base_path)

  files: list[FileInfo] = []
  skipped: list[str] = []
  for path in resolved:
    rel_path = _relative(path, base_path)
    if ignore_patterns and _is_excluded(rel_path, ignore_patterns):
      skipped.append(rel_path)
      continue
    info = _read_file(path, rel_path, max_file_size)
    if info is None:
      skipped.append(rel_path)
    else:
      files.append(info)

  if not files and not skipped:
    raise FileError(_no_files_error(patterns, base_path))

  return ScanResult(files=files, skipped=skipped)


def _relative(path: Path, base_path: Path) -> str:
  try:
    return path.resolve().relative_to(base_path.resolve()).as_posix()
  except ValueError:
    return str(path)


def _is_excluded(rel_path: str, patterns: list[str]) -> bool:
  """Match fnmatch globs on the full path, the basename, or a directory prefix."""
  for pattern in patterns:
    if fnmatch.fnmatch(rel_path, pattern):
      return True
    if fnmatch.fnmatch(rel_path.rsplit("/", 1)[-1], pattern):
      return True
    prefix = pattern.rstrip("/*") + "/"
    if prefix != "/" and (rel_path.startswith(prefix) or ("/" + prefix) in rel_path):
      return True
  return False


def _read_file(path: Path, rel_path: str, max_file_size: int) -> FileInfo | None:
  try:
    size = path.stat().st_size
    if size > max_file_size:
      logger.info("Skipping %s (%d bytes exceeds %d)", rel_path, size, max_file_size)
      return None
    content = path.read_text(encoding="utf-8")
  except (OSError, UnicodeDecodeError) as e:
    logger.warning("Cannot read %s: %s", rel_path, e)
    return None

  return FileInfo(
    path=str(path.resolve()),
    relative_path=rel_path,
    size=size,
    extension=path.suffix,
    content=content,
  )


# Directories never reviewed, whether or not a .gitignore covers them
_ALWAYS_EXCLUDED = frozenset({
  ".git", ".next", ".revuo-cache", ".revuo-sessions", ".venv", "__pycache__",
  "build", "dist", "node_modules", "target", "vendor", "venv",
})

# Project marker -> source extensions reviewed when a directory is given
_PROJECT_MARKERS: dict[str, tuple[str, ...]] = {
  "pyproject.toml": ("py",),
  "setup.py": ("py",),
  "requirements.txt": ("py",),
  "package.json": ("js", "jsx", "mjs", "cjs", "ts", "tsx"),
  "tsconfig.json": ("ts", "tsx", "mts", "cts"),
  "go.mod": ("go",),
  "Cargo.toml": ("rs",),
  "pom.xml": ("java",),
  "build.gradle": ("java", "kt"),
  "build.gradle.kts": ("java", "kt", "kts"),
  "Gemfile": ("rb",),
  "composer.json": ("php",),
  "*.csproj": ("cs",),
  "CMakeLists.txt": ("c", "cc", "cpp", "cxx", "h", "hpp"),
  "Package.swift": ("swift",),
  "build.sbt": ("scala",),
}

_ALL_EXTENSIONS = sorted({ext for exts in _PROJECT_MARKERS.values() for ext in exts})


def _expand_directories(patterns: list[str], base_path: Path) -> list[str]:
  """Turn each directory argument into recursive globs over its source extensions."""
  result: list[str] = []
  for pattern in patterns:
    p = Path(pattern)
    full_path = p if p.is_absolute() else base_path / p
    if not full_path.is_dir():
      result.append(pattern)
      continue
    extensions = _project_extensions(full_path) or _ALL_EXTENSIONS
    result.extend(str(full_path / "**" / f"*.{ext}") for ext in extensions)
  return result


def _project_extensions(directory: Path) -> list[str]:
  found: list[str] = []
  for marker, extensions in _PROJECT_MARKERS.items():
    if any(directory.glob(marker)):
      found.extend(extensions)
  return list(dict.fromkeys(found))


def _no_files_error(patterns: list[str], base_path: Path) -> str:
  return (
    f"No files matched: {', '.join(patterns)} (in {base_path})\n"
    "Use glob patterns like: revuo review 'src/**/*.py'"
  )


def _resolve_patterns(patterns: list[str], base_path: Path) -> list[Path]:
  """Expand glob patterns into unique files that are not ignored."""
  seen: dict[Path, None] = {}
  for pattern in patterns:
    p = Path(pattern)
    full = p if p.is_absolute() else base_path / p
    if any(c in pattern for c in "*?["):
      matches = sorted(Path(m) for m in globmod.glob(str(full), recursive=True))
    else:
      matches = [full]
    seen.update((m, None) for m in matches if m.is_file())

  paths = list(seen)
  ignored = _gitignored(paths)
  return [
    path for path in paths
    if path not in ignored and not _ALWAYS_EXCLUDED.intersection(path.parts)
  ]


def _gitignored(paths: list[Path]) -> set[Path]:
  """Paths that `git check-ignore` reports for their enclosing repositories."""
  roots: dict[Path, Path | None] = {}
  by_root: dict[Path, list[Path]] = {}
  for path in paths:
    directory = path.resolve().parent
    if directory not in roots:
      roots[directory] = next((d for d in (directory, *directory.parents) if (d / ".git").exists()), None)
    root = roots[directory]
    if root is not None:
      by_root.setdefault(root, []).append(path)

  ignored: set[Path] = set()
  for root, repo_paths in by_root.items():
    relative = {path.resolve().relative_to(root).as_posix(): path for path in repo_paths}
    try:
      proc = subprocess.run(
        ["git", "check-ignore", "--stdin", "-z"],
        cwd=root,
        input="\0".join(relative),
        capture_output=True,
        text=True,
      )
    except FileNotFoundError:
      logger.debug("git not installed; skipping .gitignore rules")
      return set()
    ignored.update(relative[rel] for rel in proc.stdout.split("\0") if rel in relative)
  return ignored
