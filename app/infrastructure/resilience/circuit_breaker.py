"""Circuit breaker registry for resilient execution.

One breaker per operation name prevents hammering a failing dependency:
1. CLOSED state: Normal operation, attempts pass through
2. OPEN state: No attempt is made, the caller falls back immediately
3. HALF_OPEN state: A single probe attempt tests recovery

State transitions:
- CLOSED -> OPEN: After failure_threshold consecutive failures
- OPEN -> HALF_OPEN: Lazily, on the first is_open() query after the open
  duration has elapsed; that query (and only that one) returns False
- HALF_OPEN -> CLOSED: After a successful attempt
- HALF_OPEN -> OPEN: If the probe fails

Each breaker has its own lock. The registry lock is held only while creating
a breaker, so unrelated operation names never serialize on each other.
"""

import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from infrastructure.logging import get_module_logger

logger = get_module_logger()

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject attempts immediately
    HALF_OPEN = "half_open"  # Testing recovery


class CircuitBreaker:
    """Circuit breaker state for a single operation name.

    Args:
        name: Operation name the breaker guards
        failure_threshold: Consecutive failures before opening
        open_seconds: Seconds to stay open before allowing a probe
        clock: Callable returning the current UTC datetime
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        open_seconds: float = 300.0,
        clock: Clock = _utcnow,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.open_seconds = open_seconds
        self._clock = clock

        # State management
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._last_failure_at: Optional[datetime] = None
        self._opened_at: Optional[datetime] = None
        self._half_opened_at: Optional[datetime] = None

        # Thread safety
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        """Get current circuit state without triggering transitions."""
        with self._lock:
            return self._state

    @property
    def consecutive_failures(self) -> int:
        with self._lock:
            return self._consecutive_failures

    def is_open(self) -> bool:
        """Return True if attempts must be rejected.

        When the open duration has elapsed the breaker flips to HALF_OPEN and
        this call returns False, letting exactly one probe through. Further
        queries return True until the probe reports back. A probe that never
        reports back is replaced after another open duration.
        """
        with self._lock:
            now = self._clock()

            if self._state == CircuitState.OPEN:
                if self._elapsed(self._opened_at, now) > self.open_seconds:
                    self._transition_to_half_open(now)
                    return False
                return True

            if self._state == CircuitState.HALF_OPEN:
                if self._elapsed(self._half_opened_at, now) > self.open_seconds:
                    logger.warning("circuit_breaker_probe_lease_expired", name=self.name)
                    self._half_opened_at = now
                    return False
                return True

            return False

    def record_failure(self, error: Optional[str] = None) -> CircuitState:
        """Record a failed attempt and return the resulting state."""
        with self._lock:
            now = self._clock()
            self._consecutive_failures += 1
            self._last_failure_at = now

            if self._state == CircuitState.HALF_OPEN:
                logger.warning(
                    "circuit_breaker_recovery_failed",
                    name=self.name,
                    error=error,
                )
                self._transition_to_open(now)
            elif self._state == CircuitState.CLOSED:
                if self._consecutive_failures >= self.failure_threshold:
                    logger.error(
                        "circuit_breaker_threshold_exceeded",
                        name=self.name,
                        failure_count=self._consecutive_failures,
                        threshold=self.failure_threshold,
                        error=error,
                    )
                    self._transition_to_open(now)
                else:
                    logger.warning(
                        "circuit_breaker_failure",
                        name=self.name,
                        failure_count=self._consecutive_failures,
                        threshold=self.failure_threshold,
                        error=error,
                    )
            return self._state

    def record_success(self) -> None:
        """Record a successful attempt: reset the counter and close."""
        with self._lock:
            if self._state != CircuitState.CLOSED:
                self._transition_to_closed()
            elif self._consecutive_failures > 0:
                logger.debug(
                    "circuit_breaker_failure_count_reset",
                    name=self.name,
                    previous_failures=self._consecutive_failures,
                )
            self._consecutive_failures = 0

    @staticmethod
    def _elapsed(since: Optional[datetime], now: datetime) -> float:
        if since is None:
            return float("inf")
        return (now - since).total_seconds()

    def _transition_to_closed(self):
        """Transition to CLOSED state."""
        logger.info("circuit_breaker_closed", name=self.name)
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = None
        self._half_opened_at = None

    def _transition_to_open(self, now: datetime):
        """Transition to OPEN state."""
        logger.error(
            "circuit_breaker_opened",
            name=self.name,
            open_seconds=self.open_seconds,
        )
        self._state = CircuitState.OPEN
        self._opened_at = now
        self._half_opened_at = None

    def _transition_to_half_open(self, now: datetime):
        """Transition to HALF_OPEN state."""
        logger.info("circuit_breaker_half_open", name=self.name)
        self._state = CircuitState.HALF_OPEN
        self._half_opened_at = now

    def get_stats(self) -> dict:
        """Get circuit breaker statistics."""
        with self._lock:
            return {
                "name": self.name,
                "state": self._state.value,
                "consecutive_failures": self._consecutive_failures,
                "failure_threshold": self.failure_threshold,
                "open_seconds": self.open_seconds,
                "last_failure_at": (
                    self._last_failure_at.isoformat() if self._last_failure_at else None
                ),
                "opened_at": self._opened_at.isoformat() if self._opened_at else None,
            }

    def reset(self):
        """Manually reset circuit breaker (for testing/admin operations)."""
        with self._lock:
            logger.info("circuit_breaker_manual_reset", name=self.name)
            self._transition_to_closed()
            self._last_failure_at = None


class CircuitBreakerRegistry:
    """Breakers keyed by operation name, created lazily on first reference.

    The threshold and open duration of a breaker are fixed by the first
    reference to its name; later references with a different policy reuse
    the existing breaker.
    """

    def __init__(
        self,
        default_threshold: int = 5,
        default_open_seconds: float = 300.0,
        clock: Clock = _utcnow,
    ):
        self._default_threshold = default_threshold
        self._default_open_seconds = default_open_seconds
        self._clock = clock
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get(
        self,
        name: str,
        failure_threshold: Optional[int] = None,
        open_seconds: Optional[float] = None,
    ) -> CircuitBreaker:
        """Return the breaker for ``name``, creating it if needed."""
        breaker = self._breakers.get(name)
        if breaker is not None:
            return breaker
        with self._lock:
            breaker = self._breakers.get(name)
            if breaker is None:
                breaker = CircuitBreaker(
                    name,
                    failure_threshold=failure_threshold or self._default_threshold,
                    open_seconds=(
                        open_seconds
                        if open_seconds is not None
                        else self._default_open_seconds
                    ),
                    clock=self._clock,
                )
                self._breakers[name] = breaker
                logger.debug(
                    "circuit_breaker_registered",
                    name=name,
                    failure_threshold=breaker.failure_threshold,
                    open_seconds=breaker.open_seconds,
                )
            return breaker

    def is_open(self, name: str) -> bool:
        return self.get(name).is_open()

    def record_failure(self, name: str, error: Optional[str] = None) -> CircuitState:
        return self.get(name).record_failure(error)

    def record_success(self, name: str) -> None:
        self.get(name).record_success()

    def get_stats(self, name: str) -> Optional[dict]:
        """Get statistics for one breaker, or None if never referenced."""
        breaker = self._breakers.get(name)
        return breaker.get_stats() if breaker else None

    def get_all_stats(self) -> Dict[str, dict]:
        """Get statistics for all circuit breakers."""
        with self._lock:
            breakers = list(self._breakers.values())
        return {breaker.name: breaker.get_stats() for breaker in breakers}

    def get_open_breakers(self) -> List[str]:
        """Get names of breakers that are currently OPEN or HALF_OPEN."""
        with self._lock:
            breakers = list(self._breakers.values())
        return [
            breaker.name
            for breaker in breakers
            if breaker.state != CircuitState.CLOSED
        ]

    def reset(self, name: str) -> bool:
        """Reset one breaker. Returns False if the name is unknown."""
        breaker = self._breakers.get(name)
        if breaker is None:
            return False
        breaker.reset()
        return True

    def __contains__(self, name: str) -> bool:
        return name in self._breakers

    def __len__(self) -> int:
        return len(self._breakers)
