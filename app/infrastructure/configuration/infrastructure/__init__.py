"""Infrastructure settings __init__ - exports all infrastructure settings."""

from infrastructure.configuration.infrastructure.recovery import RecoverySettings
from infrastructure.configuration.infrastructure.sweeps import SweepSettings

__all__ = [
    "RecoverySettings",
    "SweepSettings",
]
