"""
Circuit Breaker pattern implementation for resilience.
Stops calling the payment processor after repeated failures so a Stripe
outage surfaces as a fast 503 instead of piling up slow requests.
"""
import logging
import time
from enum import Enum
from threading import Lock
from typing import Awaitable, Callable, Optional, TypeVar

from lms.core.exceptions import CircuitBreakerOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Blocking calls
    HALF_OPEN = "half_open"  # Testing recovery


class CircuitBreaker:
    """
    Thread-safe circuit breaker for awaitable calls.

    Usage:
        breaker = CircuitBreaker("stripe", failure_threshold=5)
        session = await breaker.call(lambda: gateway.create_checkout_session(...))

    Exceptions listed in ``ignored_exceptions`` propagate without counting
    as failures (e.g. a card decline is not an outage).
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout_sec: float = 30,
        ignored_exceptions: tuple = (),
    ) -> None:
        self._name = name
        self._failure_threshold = failure_threshold
        self._recovery_timeout_sec = recovery_timeout_sec
        self._ignored_exceptions = ignored_exceptions

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None
        self._lock = Lock()

    @property
    def state(self) -> CircuitState:
        """Current circuit state."""
        return self._state

    @property
    def name(self) -> str:
        """Circuit breaker name."""
        return self._name

    @property
    def failure_count(self) -> int:
        """Consecutive failures since the last success."""
        return self._failure_count

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Await ``func()`` through the circuit breaker.

        Raises:
            CircuitBreakerOpenError: If the circuit is open
        """
        with self._lock:
            if self._state == CircuitState.OPEN:
                if self._should_attempt_reset():
                    self._state = CircuitState.HALF_OPEN
                    logger.info(f"Circuit breaker '{self._name}' entering HALF_OPEN")
                else:
                    raise CircuitBreakerOpenError(self._name)

        try:
            result = await func()
        except self._ignored_exceptions:
            self._on_success()
            raise
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def _on_success(self) -> None:
        """Handle successful call."""
        with self._lock:
            self._failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.CLOSED
                logger.info(f"Circuit breaker '{self._name}' recovered to CLOSED")

    def _on_failure(self) -> None:
        """Handle failed call."""
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = time.time()

            if (
                self._state == CircuitState.HALF_OPEN
                or self._failure_count >= self._failure_threshold
            ):
                self._state = CircuitState.OPEN
                logger.error(
                    f"Circuit breaker '{self._name}' OPENED after "
                    f"{self._failure_count} failures"
                )

    def _should_attempt_reset(self) -> bool:
        """Check if enough time has passed to attempt recovery."""
        if self._last_failure_time is None:
            return True
        elapsed = time.time() - self._last_failure_time
        return elapsed >= self._recovery_timeout_sec

    def reset(self) -> None:
        """Manually reset the circuit breaker."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._last_failure_time = None
            logger.info(f"Circuit breaker '{self._name}' manually reset")
