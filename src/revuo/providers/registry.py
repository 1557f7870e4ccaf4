"""Client registration and the per-run set of authenticated clients."""

import logging
from typing import Callable, Iterable

from revuo.errors import ProviderAuthError
from revuo.providers.base import ModelClient
from revuo.providers.catalog import MODELS, get_model
from revuo.providers.detection import ProviderStatus

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ProviderStatus], ModelClient]

_factories: dict[str, ClientFactory] = {}


def register_client(name: str, factory: ClientFactory) -> None:
  """Register a client factory for a provider family."""
  _factories[name] = factory


class ClientSet:
  """Authenticated clients for one run, keyed by provider family."""

  def __init__(self, clients: dict[str, ModelClient]):
    self._clients = dict(clients)

  @classmethod
  def from_statuses(cls, statuses: Iterable[ProviderStatus]) -> "ClientSet":
    ProviderRegistry.load_all()
    clients = {}
    for status in statuses:
      if not status.available:
        continue
      factory = _factories.get(status.name)
      if factory is None:
        logger.debug("No client registered for %s", status.name)
        continue
      clients[status.name] = factory(status)
    return cls(clients)

  @property
  def families(self) -> list[str]:
    return list(self._clients)

  def available_models(self) -> list[str]:
    """Model keys whose provider is authenticated, in catalog order."""
    return [key for key, spec in MODELS.items() if spec.provider in self._clients]

  def is_available(self, model_key: str) -> bool:
    spec = MODELS.get(model_key)
    return spec is not None and spec.provider in self._clients

  def client_for(self, model_key: str) -> ModelClient:
    spec = get_model(model_key)
    client = self._clients.get(spec.provider)
    if client is None:
      raise ProviderAuthError(f"{model_key}: provider '{spec.provider}' is not authenticated", model_key=model_key)
    return client


class ProviderRegistry:
  """Registry for lazy client loading."""

  @staticmethod
  def load_all() -> None:
    """Load all client modules to trigger registration."""
    from revuo.providers import anthropic, gemini, ollama, openai  # noqa: F401
