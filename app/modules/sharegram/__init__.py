"""Sharegram external integrations: model, store contract and health client."""

from modules.sharegram.health import SharegramHealthClient
from modules.sharegram.models import REQUIRED_CONFIG_KEYS, SharegramIntegration
from modules.sharegram.store import InMemoryIntegrationStore, IntegrationStore

__all__ = [
    "SharegramIntegration",
    "REQUIRED_CONFIG_KEYS",
    "IntegrationStore",
    "InMemoryIntegrationStore",
    "SharegramHealthClient",
]
