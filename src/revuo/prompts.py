"""Per-category prompt templates."""

from dataclasses import dataclass

from revuo.models import Category, ReviewRequest


@dataclass(frozen=True)
class PromptTemplate:
  """A named review focus and its system prompt."""

  category: Category
  name: str
  description: str
  focus_areas: tuple[str, ...]
  system_prompt: str


_RESPONSE_RULES = """Rules:
- Only flag issues you are confident about. Avoid false positives.
- Reference line numbers or identifiers for every finding.
- Give a concrete fix for each finding.
- If the code looks correct, say so in one sentence."""


def _system_prompt(role: str, focus_areas: tuple[str, ...]) -> str:
  focus = "\n".join(f"- {area}" for area in focus_areas)
  return f"""{role}

Focus on:
{focus}

{_RESPONSE_RULES}"""


def _template(category: Category, description: str, role: str, focus_areas: tuple[str, ...]) -> PromptTemplate:
  return PromptTemplate(
    category=category,
    name=category.value,
    description=description,
    focus_areas=focus_areas,
    system_prompt=_system_prompt(role, focus_areas),
  )


TEMPLATES: dict[Category, PromptTemplate] = {
  Category.QUALITY: _template(
    Category.QUALITY,
    "Code quality, readability and maintainability",
    "You are an experienced code reviewer focused on code quality.",
    (
      "Naming and readability",
      "Function size and single responsibility",
      "Duplicated logic",
      "Error handling",
      "Dead or commented-out code",
    ),
  ),
  Category.SECURITY: _template(
    Category.SECURITY,
    "Security vulnerabilities, data validation and authentication issues",
    "You are a security-focused code reviewer. Find vulnerabilities and provide actionable fixes.",
    (
      "Injection (SQL, command, path traversal)",
      "Authentication and authorization",
      "XSS and unsafe output",
      "Secrets and data exposure",
      "Cryptography misuse",
      "Error messages leaking internals",
    ),
  ),
  Category.PERFORMANCE: _template(
    Category.PERFORMANCE,
    "Performance bottlenecks and resource usage",
    "You are a performance-focused code reviewer.",
    (
      "Algorithmic complexity",
      "Unnecessary allocations and copies",
      "Blocking I/O in hot paths",
      "Caching opportunities",
      "Memory leaks",
    ),
  ),
  Category.TYPESCRIPT: _template(
    Category.TYPESCRIPT,
    "Type safety and TypeScript best practices",
    "You are a TypeScript expert reviewing for type safety.",
    (
      "Use of any and unsafe casts",
      "Missing or weak type definitions",
      "Null and undefined handling",
      "Generic usage",
    ),
  ),
  Category.COMBINED: _template(
    Category.COMBINED,
    "Comprehensive review covering quality, security and performance",
    "You are a senior engineer performing a comprehensive code review.",
    (
      "Security vulnerabilities",
      "Bugs and logic errors",
      "Performance problems",
      "Code quality and maintainability",
    ),
  ),
}


def get_template(category: Category) -> PromptTemplate:
  return TEMPLATES[category]


def build_user_prompt(request: ReviewRequest) -> str:
  """Build the per-file message sent alongside the system prompt."""
  lang = request.extension.lstrip(".")
  return f"""Please review the following file:

**File:** `{request.relative_path}`
**Size:** {request.size} bytes

```{lang}
{request.content}
```

Provide a code review focusing on the areas in your instructions."""
