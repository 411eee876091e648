"""
Circuit Breaker for the RxNorm enrichment client.

After repeated failures the breaker opens and requests are skipped,
which the enrichment service reports as "not found" instead of waiting
on a dead service for every candidate drug.
"""

import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"          # Normal operation
    OPEN = "open"              # Failing, reject requests
    HALF_OPEN = "half_open"    # Testing if recovered


@dataclass
class CircuitBreaker:
    """
    Circuit breaker shared by the worker threads that call RxNorm.

    States:
    - CLOSED: all requests allowed
    - OPEN: failure_threshold consecutive failures seen, reject until recovery_timeout passes
    - HALF_OPEN: probing; success_threshold successes close it, one failure reopens it

    Usage:
        breaker = CircuitBreaker(name="RxNorm")

        if not breaker.allow_request():
            return None

        try:
            result = call_api()
            breaker.record_success()
        except requests.RequestException:
            breaker.record_failure()
    """

    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 60.0
    success_threshold: int = 2
    clock: Callable[[], float] = time.monotonic

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _success_count: int = field(default=0, init=False)
    _opened_at: Optional[float] = field(default=None, init=False)
    _lock: Lock = field(default_factory=Lock, init=False, repr=False)

    def allow_request(self) -> bool:
        """
        Check if request should be allowed.

        Returns:
            True if request should proceed, False if circuit is open
        """
        with self._lock:
            if self._state == CircuitState.OPEN:
                if self._opened_at is not None and self.clock() - self._opened_at >= self.recovery_timeout:
                    logger.info(f"Circuit '{self.name}': OPEN -> HALF_OPEN (attempting recovery)")
                    self._state = CircuitState.HALF_OPEN
                    self._success_count = 0
                    return True
                return False
            return True

    def record_success(self):
        """Record a successful request."""
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    logger.info(f"Circuit '{self.name}': HALF_OPEN -> CLOSED (recovered)")
                    self._state = CircuitState.CLOSED
                    self._failure_count = 0
            else:
                self._failure_count = 0

    def record_failure(self):
        """Record a failed request."""
        with self._lock:
            self._failure_count += 1

            if self._state == CircuitState.HALF_OPEN:
                logger.warning(f"Circuit '{self.name}': HALF_OPEN -> OPEN (failure during recovery)")
                self._open()
            elif self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
                logger.warning(
                    f"Circuit '{self.name}': CLOSED -> OPEN (threshold {self.failure_threshold} reached)"
                )
                self._open()

    def _open(self):
        self._state = CircuitState.OPEN
        self._opened_at = self.clock()

    @property
    def state(self) -> CircuitState:
        return self._state

    def reset(self):
        """Manually reset circuit to CLOSED state."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._success_count = 0
            self._opened_at = None
        logger.info(f"Circuit '{self.name}': Manually reset to CLOSED")

    def __repr__(self) -> str:
        return (f"CircuitBreaker(name='{self.name}', state={self._state.value}, "
                f"failures={self._failure_count}, successes={self._success_count})")
