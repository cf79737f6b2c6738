"""Exponential backoff with full jitter."""

import random
from typing import Callable

from infrastructure.resilience.policy import OperationPolicy


def calculate_backoff(
    attempt: int,
    policy: OperationPolicy,
    random_source: Callable[[], float] = random.random,
) -> float:
    """Compute the delay in seconds before the attempt after ``attempt``.

    ``exp = min(initial * multiplier ** (attempt - 1), max)``; with jitter the
    result is uniform in ``[0, exp]``, otherwise exactly ``exp``.

    Args:
        attempt: 1-based number of the attempt that just failed
        policy: Policy supplying the backoff shape
        random_source: Callable returning a float in [0, 1)

    Returns:
        Non-negative delay in seconds
    """
    if attempt < 1:
        raise ValueError("attempt must be at least 1")

    try:
        exponential = policy.initial_delay_seconds * (
            policy.backoff_multiplier ** (attempt - 1)
        )
    except OverflowError:
        exponential = policy.max_delay_seconds
    capped = min(exponential, policy.max_delay_seconds)

    if policy.jitter_enabled:
        return random_source() * capped
    return capped
