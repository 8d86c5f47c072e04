"""
Resilience wrappers for search and bulk operations.

Two standalone pieces, composed per operation class by ResiliencePolicy:

1. CircuitBreaker: closed -> open -> half-open state machine driven by the
   failure rate over a sliding window of recent calls.
2. ConcurrencyLimiter: bounded concurrency, rejects (does not queue) once
   max_concurrent calls are in flight.

Policies are looked up by name ("movies.search", "music.bulk_delete", ...)
and created on first use from settings:

    policy = get_policy("movies.search", max_concurrent=settings.SEARCH_MAX_CONCURRENT)
    rows = await policy.call(lambda: repo.search(session, term, page, size), fallback=list)

Any failure, open circuit or limiter rejection degrades to the fallback value.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Deque, Dict, Optional, TypeVar

from media_catalog.core.config import settings
from media_catalog.core.exceptions import CircuitOpenError, RateLimitExceeded
from media_catalog.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Failure-rate circuit breaker.

    - CLOSED: calls pass; outcomes are recorded in a window of `window_size`.
      Once at least `minimum_calls` outcomes exist and the failure rate reaches
      `failure_rate_threshold` percent, the breaker opens.
    - OPEN: calls are refused until `reset_timeout` seconds have passed.
    - HALF_OPEN: up to `half_open_calls` trial calls are let through. A success
      closes the breaker, a failure opens it again.
      A trial that is cancelled records no outcome and frees its slot.
    """

    def __init__(
        self,
        name: str,
        failure_rate_threshold: float = 50.0,
        minimum_calls: int = 5,
        window_size: int = 20,
        reset_timeout: float = 30.0,
        half_open_calls: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.failure_rate_threshold = failure_rate_threshold
        self.minimum_calls = minimum_calls
        self.reset_timeout = reset_timeout
        self.half_open_calls = half_open_calls
        self._clock = clock
        self._outcomes: Deque[bool] = deque(maxlen=window_size)
        self._state = CircuitState.CLOSED
        self._opened_at: Optional[float] = None
        self._half_open_in_flight = 0

    @property
    def state(self) -> CircuitState:
        if (
            self._state is CircuitState.OPEN
            and self._opened_at is not None
            and self._clock() - self._opened_at >= self.reset_timeout
        ):
            self._transition(CircuitState.HALF_OPEN)
        return self._state

    @property
    def failure_rate(self) -> float:
        """Failure rate in percent over the current window."""
        if not self._outcomes:
            return 0.0
        failures = sum(1 for ok in self._outcomes if not ok)
        return failures * 100.0 / len(self._outcomes)

    def can_attempt(self) -> bool:
        state = self.state
        if state is CircuitState.CLOSED:
            return True
        if state is CircuitState.OPEN:
            return False
        if self._half_open_in_flight < self.half_open_calls:
            self._half_open_in_flight += 1
            return True
        return False

    def release_trial(self) -> None:
        """Give back a half-open slot whose call ended without an outcome (cancelled)."""
        if self._state is CircuitState.HALF_OPEN and self._half_open_in_flight > 0:
            self._half_open_in_flight -= 1

    def record_success(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            self._transition(CircuitState.CLOSED)
            return
        self._outcomes.append(True)

    def record_failure(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            self._transition(CircuitState.OPEN)
            return
        self._outcomes.append(False)
        if (
            len(self._outcomes) >= self.minimum_calls
            and self.failure_rate >= self.failure_rate_threshold
        ):
            self._transition(CircuitState.OPEN)

    def force_open(self) -> None:
        self._transition(CircuitState.OPEN)

    def reset(self) -> None:
        self._transition(CircuitState.CLOSED)

    def _transition(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        self._half_open_in_flight = 0
        if new_state is CircuitState.OPEN:
            self._opened_at = self._clock()
        elif new_state is CircuitState.CLOSED:
            self._opened_at = None
            self._outcomes.clear()

        if old_state is not new_state:
            logger.warning(
                "circuit_breaker_state_changed",
                breaker=self.name,
                from_state=old_state.value,
                to_state=new_state.value,
                failure_rate=self.failure_rate,
            )


@dataclass
class ConcurrencyLimiter:
    """
    Bounded-concurrency limiter.

    Usage:
        async with limiter:
            await do_work()

    Raises RateLimitExceeded on enter when `max_concurrent` calls are already
    in flight. The check and increment run without an await in between, so
    they are atomic on the event loop.
    """

    name: str
    max_concurrent: int
    _in_flight: int = field(default=0, init=False)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def __aenter__(self) -> "ConcurrencyLimiter":
        if self._in_flight >= self.max_concurrent:
            raise RateLimitExceeded(self.name, self.max_concurrent)
        self._in_flight += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        self._in_flight -= 1
        return False


class ResiliencePolicy:
    """Limiter + circuit breaker with an empty-result fallback."""

    def __init__(self, name: str, breaker: CircuitBreaker, limiter: ConcurrencyLimiter):
        self.name = name
        self.breaker = breaker
        self.limiter = limiter

    async def call(self, fn: Callable[[], Awaitable[T]], fallback: Callable[[], T]) -> T:
        try:
            async with self.limiter:
                if not self.breaker.can_attempt():
                    raise CircuitOpenError(self.name)
                try:
                    result = await fn()
                except Exception as e:
                    self.breaker.record_failure()
                    logger.error(
                        "resilience_fallback",
                        policy=self.name,
                        reason="call_failed",
                        error=str(e),
                        exc_info=True,
                    )
                    return fallback()
                except BaseException:
                    self.breaker.release_trial()
                    raise
                self.breaker.record_success()
                return result
        except (CircuitOpenError, RateLimitExceeded) as e:
            logger.warning("resilience_fallback", policy=self.name, reason=str(e))
            return fallback()


# ================================
# Policy Registry
# ================================

_policies: Dict[str, ResiliencePolicy] = {}


def get_policy(name: str, max_concurrent: Optional[int] = None) -> ResiliencePolicy:
    """
    Get or create the named resilience policy.

    Thresholds come from settings; `max_concurrent` is decided by the caller
    per operation class (search vs. bulk).
    """
    policy = _policies.get(name)
    if policy is None:
        breaker = CircuitBreaker(
            name,
            failure_rate_threshold=settings.CIRCUIT_FAILURE_RATE_THRESHOLD,
            minimum_calls=settings.CIRCUIT_MINIMUM_CALLS,
            window_size=settings.CIRCUIT_WINDOW_SIZE,
            reset_timeout=settings.CIRCUIT_RESET_TIMEOUT_SECONDS,
            half_open_calls=settings.CIRCUIT_HALF_OPEN_CALLS,
        )
        limiter = ConcurrencyLimiter(
            name,
            max_concurrent=max_concurrent or settings.SEARCH_MAX_CONCURRENT,
        )
        policy = ResiliencePolicy(name, breaker, limiter)
        _policies[name] = policy
    return policy


def reset_policies() -> None:
    """Drop every registered policy (tests and admin tooling)."""
    _policies.clear()
