"""
Circuit breaker for the remote pricing and cost explorer calls.
Fails fast while a remote keeps erroring instead of paging into it again.
"""
from enum import Enum
import logging
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


FAILURE_THRESHOLD = 3  # Trip after N consecutive failed calls
OPEN_STATE_DURATION = 60  # Seconds to stay OPEN before letting a trial call through


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Calls pass through
    OPEN = "open"  # Failing fast
    HALF_OPEN = "half_open"  # One trial call allowed


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    State machine:
    - CLOSED -> OPEN: after `failure_threshold` consecutive failures
    - OPEN -> HALF_OPEN: once `open_duration` seconds have passed
    - HALF_OPEN -> CLOSED: the trial call succeeds
    - HALF_OPEN -> OPEN: the trial call fails

    Engine calls may run in parallel threads, so state changes are locked.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = FAILURE_THRESHOLD,
        open_duration: float = OPEN_STATE_DURATION,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name: Remote being protected (e.g. "aws_pricing", "cost_explorer")
            failure_threshold: Consecutive failures before opening
            open_duration: Seconds to remain OPEN before HALF_OPEN
            clock: Monotonic time source, injectable for tests
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.open_duration = open_duration
        self._clock = clock
        self._lock = threading.Lock()

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at: Optional[float] = None
        self._trial_in_flight = False

    def allow_request(self) -> bool:
        """Return True if a remote call may proceed."""
        with self._lock:
            if self.state == CircuitState.CLOSED:
                return True

            if self.state == CircuitState.OPEN:
                if self._clock() - (self.opened_at or 0.0) < self.open_duration:
                    return False
                logger.warning(f"Circuit breaker for {self.name}: OPEN -> HALF_OPEN (trial call)")
                self.state = CircuitState.HALF_OPEN
                self._trial_in_flight = False

            # HALF_OPEN: a single trial call at a time
            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
            return True

    def record_success(self) -> None:
        """Record a successful remote call."""
        with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                logger.warning(f"Circuit breaker for {self.name}: HALF_OPEN -> CLOSED (recovered)")
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.opened_at = None
            self._trial_in_flight = False

    def record_failure(self) -> None:
        """Record a failed remote call."""
        with self._lock:
            self.failure_count += 1
            if self.state == CircuitState.HALF_OPEN:
                logger.warning(f"Circuit breaker for {self.name}: HALF_OPEN -> OPEN (still failing)")
                self._open()
            elif self.state == CircuitState.CLOSED and self.failure_count >= self.failure_threshold:
                logger.warning(
                    f"Circuit breaker for {self.name}: "
                    f"CLOSED -> OPEN ({self.failure_count} consecutive failures)"
                )
                self._open()

    def release_trial(self) -> None:
        """
        Give back the trial slot without judging the remote.

        Called when a call ends by cancellation or an unexpected error, so the
        next caller can make the trial call instead of the breaker staying
        HALF_OPEN forever.
        """
        with self._lock:
            self._trial_in_flight = False

    def _open(self) -> None:
        self.state = CircuitState.OPEN
        self.opened_at = self._clock()
        self._trial_in_flight = False

    def current_state(self) -> CircuitState:
        """Get current circuit state."""
        return self.state


# One breaker per remote, shared by every client for that remote
_circuit_breakers: Dict[str, CircuitBreaker] = {}
_registry_lock = threading.Lock()


def get_circuit_breaker(name: str) -> CircuitBreaker:
    """Get or create the circuit breaker for a remote."""
    with _registry_lock:
        if name not in _circuit_breakers:
            _circuit_breakers[name] = CircuitBreaker(name)
        return _circuit_breakers[name]


def reset_circuit_breakers() -> None:
    """Forget all breaker state."""
    with _registry_lock:
        _circuit_breakers.clear()
