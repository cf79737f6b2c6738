"""Integration store contract and in-memory implementation."""

import threading
from dataclasses import replace
from typing import Dict, List, Optional, Protocol, Union

from infrastructure.logging import get_module_logger
from modules.sharegram.models import SharegramIntegration

logger = get_module_logger()

IntegrationId = Union[int, str]


class IntegrationStore(Protocol):
    """Operations the integration health sweep needs. Sync or async."""

    def list_active(self) -> List[SharegramIntegration]: ...

    def validate_configuration(self, integration: SharegramIntegration) -> bool: ...

    def update_sync_status(
        self,
        integration_id: IntegrationId,
        status: Optional[str] = None,
        error: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Optional[SharegramIntegration]:
        """Record ``error`` (None clears it); ``status``/``is_active`` only when given."""
        ...


class InMemoryIntegrationStore:
    """Thread-safe in-memory integration store for development and tests."""

    def __init__(self) -> None:
        self._integrations: Dict[IntegrationId, SharegramIntegration] = {}
        self._lock = threading.Lock()

    def add(self, integration: SharegramIntegration) -> SharegramIntegration:
        with self._lock:
            self._integrations[integration.id] = integration
        return integration

    def get(self, integration_id: IntegrationId) -> Optional[SharegramIntegration]:
        with self._lock:
            integration = self._integrations.get(integration_id)
            return replace(integration) if integration else None

    def list_active(self) -> List[SharegramIntegration]:
        with self._lock:
            return [replace(i) for i in self._integrations.values() if i.is_active]

    def validate_configuration(self, integration: SharegramIntegration) -> bool:
        return integration.is_config_valid()

    def update_sync_status(
        self,
        integration_id: IntegrationId,
        status: Optional[str] = None,
        error: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Optional[SharegramIntegration]:
        with self._lock:
            integration = self._integrations.get(integration_id)
            if integration is None:
                logger.warning("integration_not_found", integration_id=integration_id)
                return None
            integration.last_error = error
            if status is not None:
                integration.last_sync_status = status
            if is_active is not None:
                integration.is_active = is_active
            return replace(integration)
