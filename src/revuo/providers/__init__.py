"""Model clients, credential detection and the model catalog."""

from revuo.providers.base import CallOutput, ModelClient
from revuo.providers.catalog import MODELS, ModelSpec, get_model, models_for_provider
from revuo.providers.detection import CredentialResolver, ProviderStatus
from revuo.providers.registry import ClientSet, ProviderRegistry, register_client

__all__ = [
  "CallOutput",
  "ClientSet",
  "CredentialResolver",
  "MODELS",
  "ModelClient",
  "ModelSpec",
  "ProviderRegistry",
  "ProviderStatus",
  "get_model",
  "models_for_provider",
  "register_client",
]
