"""Provider credential detection."""

import os
import shutil
from dataclasses import dataclass, field
from typing import Callable, Mapping

import httpx

from revuo.models import AuthMethod

DEFAULT_OLLAMA_HOST = "http://localhost:11434"
OLLAMA_PROBE_TIMEOUT = 2.0


@dataclass(frozen=True)
class ProviderStatus:
  """Availability status for a provider family."""

  name: str
  available: bool
  reason: str
  auth_method: AuthMethod | None = None
  credential: str | None = field(default=None, repr=False)


def probe_ollama(host: str) -> bool:
  try:
    response = httpx.get(f"{host}/api/tags", timeout=OLLAMA_PROBE_TIMEOUT)
    return response.status_code == 200
  except httpx.RequestError:
    return False


class CredentialResolver:
  """Resolves which provider families are authenticated and how."""

  DETECTION_ORDER = ("claude", "gemini", "openai", "ollama")
  ENV_VARS = {
    "claude": ("ANTHROPIC_API_KEY", "CLAUDE_CODE_OAUTH_TOKEN"),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
  }

  def __init__(
    self,
    env: Mapping[str, str] | None = None,
    use_claude_cli: bool | None = None,
    which: Callable[[str], str | None] = shutil.which,
    ollama_probe: Callable[[str], bool] = probe_ollama,
  ):
    self._env = env if env is not None else os.environ
    self._use_claude_cli = use_claude_cli
    self._which = which
    self._ollama_probe = ollama_probe

  def resolve(self, name: str) -> ProviderStatus:
    if name == "claude":
      return self._resolve_claude()
    if name == "ollama":
      return self._resolve_ollama()
    for var in self.ENV_VARS.get(name, ()):
      value = self._env.get(var)
      if value:
        return ProviderStatus(name, True, f"{var} set", AuthMethod.API_KEY, value)
    return ProviderStatus(name, False, f"{' or '.join(self.ENV_VARS.get(name, ()))} not set")

  def get_status(self) -> list[ProviderStatus]:
    """Get status for all provider families in detection order."""
    return [self.resolve(name) for name in self.DETECTION_ORDER]

  def format_error(self, failed: str | None = None) -> str:
    """Format a message listing provider status."""
    lines = []
    if failed:
      lines.extend([f"Provider '{failed}' is not available.", ""])
    lines.append("Provider status:")
    for s in self.get_status():
      lines.append(f"  {'[ok]' if s.available else '[--]'} {s.name}: {s.reason}")
    if failed in self.ENV_VARS:
      lines.extend(["", f"Set {' or '.join(self.ENV_VARS[failed])} to use {failed}."])
    return "\n".join(lines)

  def _resolve_claude(self) -> ProviderStatus:
    if self._use_claude_cli is not False:
      executable = self._which("claude")
      if executable:
        return ProviderStatus("claude", True, "claude CLI found", AuthMethod.CLAUDE_CLI, executable)
      if self._use_claude_cli:
        return ProviderStatus("claude", False, "claude CLI not found on PATH")

    token = self._env.get("CLAUDE_CODE_OAUTH_TOKEN")
    if token:
      return ProviderStatus("claude", True, "CLAUDE_CODE_OAUTH_TOKEN set", AuthMethod.OAUTH_TOKEN, token)
    key = self._env.get("ANTHROPIC_API_KEY")
    if key:
      return ProviderStatus("claude", True, "ANTHROPIC_API_KEY set", AuthMethod.API_KEY, key)
    return ProviderStatus("claude", False, "no claude CLI, ANTHROPIC_API_KEY or CLAUDE_CODE_OAUTH_TOKEN")

  def _resolve_ollama(self) -> ProviderStatus:
    host = self._env.get("OLLAMA_HOST") or DEFAULT_OLLAMA_HOST
    if self._ollama_probe(host):
      return ProviderStatus("ollama", True, f"reachable at {host}", AuthMethod.LOCAL, host)
    return ProviderStatus("ollama", False, f"not reachable at {host}")
