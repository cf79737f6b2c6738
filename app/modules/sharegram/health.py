"""HTTP health checks for Sharegram integrations.

Integrations exposing an HTTP endpoint (``api`` and ``webhook`` types) are
probed with ``GET {endpoint}/health``. The result is an OperationResult so
the retry executor can classify failures:

- 2xx: success
- 429 and 5xx: transient (retried)
- other 4xx: permanent
"""

from typing import Any, Dict, Optional

import requests

from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult, OperationStatus
from modules.sharegram.models import SharegramIntegration

logger = get_module_logger()

HEALTH_PATH = "/health"


class SharegramHealthClient:
    """Health probe for integration endpoints.

    Attributes:
        timeout: Request timeout in seconds
    """

    def __init__(
        self, timeout: float = 10.0, session: Optional[requests.Session] = None
    ) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": "SafeVideo-Recovery-HealthCheck/1.0",
                "Accept": "application/json",
            }
        )

    def health_url(self, integration: SharegramIntegration) -> Optional[str]:
        config = integration.configuration or {}
        base = config.get("endpoint") or config.get("url")
        if not base:
            return None
        return base.rstrip("/") + HEALTH_PATH

    def check(self, integration: SharegramIntegration) -> OperationResult:
        """Probe one integration.

        Integrations without an HTTP endpoint (firebase, batch) are reported
        healthy when their configuration is complete.
        """
        url = self.health_url(integration)
        log = logger.bind(integration_id=integration.id, url=url)

        if url is None:
            if integration.is_config_valid():
                return OperationResult.success(
                    data={"integration_id": integration.id, "checked": "configuration"},
                    message="No health endpoint, configuration complete",
                )
            return OperationResult.permanent_error(
                "Integration has no health endpoint and an incomplete configuration",
                error_code="INVALID_CONFIGURATION",
            )

        headers: Dict[str, str] = {}
        api_key = (integration.configuration or {}).get("api_key")
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        try:
            response = self._session.get(url, headers=headers, timeout=self.timeout)
        except requests.Timeout:
            log.warning("integration_health_timeout", timeout=self.timeout)
            return OperationResult.transient_error(
                message=f"Health check timeout after {self.timeout}s",
                error_code="TIMEOUT",
            )
        except requests.ConnectionError as e:
            log.warning("integration_health_connection_error", error=str(e))
            return OperationResult.transient_error(
                message=f"Connection error: {e}",
                error_code="CONNECTION_ERROR",
            )

        log = log.bind(status_code=response.status_code)
        status_code = response.status_code

        if 200 <= status_code < 300:
            log.debug("integration_health_ok")
            return OperationResult.success(
                data={"integration_id": integration.id, "status_code": status_code},
                message="Integration healthy",
            )

        message = f"Health check returned HTTP {status_code}"
        if status_code == 429:
            log.warning("integration_health_rate_limited")
            return OperationResult.transient_error(
                message=message,
                error_code="RATE_LIMITED",
                retry_after=_retry_after(response.headers.get("Retry-After")),
            )
        if status_code >= 500:
            log.warning("integration_health_server_error")
            return OperationResult.transient_error(
                message=message, error_code=f"HTTP_{status_code}"
            )
        if status_code in (401, 403):
            log.warning("integration_health_unauthorized")
            return OperationResult.error(
                status=OperationStatus.UNAUTHORIZED,
                message=message,
                error_code=f"HTTP_{status_code}",
            )

        log.warning("integration_health_client_error")
        return OperationResult.permanent_error(
            message=message, error_code=f"HTTP_{status_code}"
        )

    def close(self) -> None:
        self._session.close()


def _retry_after(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 60
