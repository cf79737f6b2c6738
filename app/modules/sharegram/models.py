"""Sharegram external integration model."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

# Configuration keys each integration type needs to be usable
REQUIRED_CONFIG_KEYS: Dict[str, Tuple[str, ...]] = {
    "firebase": ("project_id", "private_key"),
    "webhook": ("url", "events"),
    "api": ("api_key", "endpoint"),
    "batch": ("schedule", "job_type"),
}


@dataclass
class SharegramIntegration:
    """An external integration configured for Sharegram.

    Attributes:
        id: Store identifier.
        integration_type: One of firebase, webhook, api, batch.
        configuration: Type-specific settings (credentials included).
        is_active: Inactive integrations are not health-checked.
        last_error: Last recorded error, if any.
        last_sync_status: Free-form sync state (e.g. 'success', 'recovering').
    """

    id: Union[int, str]
    integration_type: str
    configuration: Dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    last_error: Optional[str] = None
    last_sync_status: Optional[str] = None

    def is_config_valid(self) -> bool:
        """True if every key required by the integration type has a value."""
        required = REQUIRED_CONFIG_KEYS.get(self.integration_type)
        if required is None:
            return False
        config = self.configuration or {}
        return all(config.get(key) for key in required)
