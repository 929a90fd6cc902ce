"""Circuit breakers guarding the store and the language model."""

import enum
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(enum.Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """Raised when a call is attempted on an open circuit."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name
        super().__init__(f"Circuit breaker is open for {service_name}")


class CircuitBreaker:
    """Counts consecutive failures of one dependency.

    Opens after ``failure_threshold`` failures in a row, refuses calls until
    ``recovery_timeout`` seconds have passed, then lets one call through
    (half-open). A success closes it again.
    """

    def __init__(
        self,
        service_name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
    ) -> None:
        self.service_name = service_name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout

        self._failures = 0
        self._opened_at = 0.0
        self._state = CircuitState.CLOSED
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        """Current state; an open circuit past its timeout reports half-open."""
        with self._lock:
            if (
                self._state == CircuitState.OPEN
                and time.monotonic() - self._opened_at >= self.recovery_timeout
            ):
                self._state = CircuitState.HALF_OPEN
                logger.warning("Circuit breaker HALF_OPEN for %s", self.service_name)
            return self._state

    def check(self) -> None:
        """Raise CircuitBreakerOpen if calls are currently refused."""
        if self.state == CircuitState.OPEN:
            raise CircuitBreakerOpen(self.service_name)

    def record_success(self) -> None:
        with self._lock:
            if self._state != CircuitState.CLOSED:
                logger.warning("Circuit breaker CLOSED for %s", self.service_name)
            self._failures = 0
            self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            self._opened_at = time.monotonic()
            if self._failures >= self.failure_threshold or self._state == CircuitState.HALF_OPEN:
                if self._state != CircuitState.OPEN:
                    logger.warning(
                        "Circuit breaker OPEN for %s after %d consecutive failures",
                        self.service_name,
                        self._failures,
                    )
                self._state = CircuitState.OPEN

    async def call_async(
        self, func: Callable[..., Awaitable[T]], *args: object, **kwargs: object
    ) -> T:
        """Await ``func`` through the breaker, recording the outcome.

        Raises:
            CircuitBreakerOpen: If the circuit is open.
        """
        self.check()
        try:
            result = await func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result


_breakers: dict[str, CircuitBreaker] = {}
_registry_lock = threading.Lock()


def get_circuit_breaker(service_name: str) -> CircuitBreaker:
    """Get or create the process-wide breaker for a dependency."""
    with _registry_lock:
        breaker = _breakers.get(service_name)
        if breaker is None:
            breaker = CircuitBreaker(service_name)
            _breakers[service_name] = breaker
        return breaker


def get_all_circuit_breakers() -> dict[str, CircuitBreaker]:
    """Snapshot of every registered breaker, keyed by service name."""
    with _registry_lock:
        return dict(_breakers)
