"""Sweep health-checking active external integrations."""

from functools import partial
from typing import Any, Callable, Dict

from infrastructure.logging import get_module_logger
from infrastructure.resilience.invoke import invoke
from infrastructure.resilience.service import ResilienceService
from infrastructure.scheduling.sweep import Sweep
from modules.sharegram.models import SharegramIntegration
from modules.sharegram.store import IntegrationStore

logger = get_module_logger()

INVALID_CONFIGURATION_ERROR = "Invalid configuration detected during recovery"
RECOVERING_STATUS = "recovering"

HealthCheck = Callable[[SharegramIntegration], Any]


class IntegrationHealthSweep(Sweep):
    """Check every active integration; recover the unhealthy ones.

    Recovery deactivates integrations with an invalid configuration and
    flags the others as recovering with their error cleared.
    """

    name = "integration_health"

    def __init__(
        self,
        service: ResilienceService,
        store: IntegrationStore,
        health_check: HealthCheck,
        max_retries: int = 3,
        initial_delay_seconds: float = 2.0,
    ) -> None:
        super().__init__()
        self._service = service
        self._store = store
        self._health_check = health_check
        self._max_retries = max_retries
        self._initial_delay_seconds = initial_delay_seconds

    async def _sweep(self) -> Dict[str, Any]:
        integrations = await invoke(self._store.list_active)
        stats = {
            "checked": len(integrations),
            "healthy": 0,
            "recovering": 0,
            "deactivated": 0,
            "recovery_failed": 0,
        }

        for integration in integrations:
            result = await self._service.execute_with_retry(
                f"integration_health_{integration.id}",
                partial(self._health_check, integration),
                context={"integration_id": integration.id},
                max_retries=self._max_retries,
                initial_delay_seconds=self._initial_delay_seconds,
            )
            if result.is_success and not result.is_fallback:
                stats["healthy"] += 1
                continue

            logger.warning(
                "integration_unhealthy",
                integration_id=integration.id,
                integration_type=integration.integration_type,
                reason=result.message,
            )
            try:
                outcome = await self.recover_integration(integration)
            except Exception as e:
                logger.error(
                    "integration_recovery_failed",
                    integration_id=integration.id,
                    error=str(e),
                )
                stats["recovery_failed"] += 1
                continue
            stats[outcome] += 1

        return stats

    async def recover_integration(self, integration: SharegramIntegration) -> str:
        """Apply the recovery path; returns 'deactivated' or 'recovering'."""
        is_valid = await invoke(self._store.validate_configuration, integration)

        if not is_valid:
            await invoke(
                self._store.update_sync_status,
                integration.id,
                error=INVALID_CONFIGURATION_ERROR,
                is_active=False,
            )
            logger.warning(
                "integration_deactivated",
                integration_id=integration.id,
                integration_type=integration.integration_type,
                reason=INVALID_CONFIGURATION_ERROR,
            )
            return "deactivated"

        await invoke(
            self._store.update_sync_status,
            integration.id,
            status=RECOVERING_STATUS,
            error=None,
        )
        logger.info(
            "integration_recovery_attempted",
            audit=True,
            integration_id=integration.id,
            integration_type=integration.integration_type,
        )
        return RECOVERING_STATUS
