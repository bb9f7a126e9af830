import functools
import threading
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from application_sdk.observability.logger_adaptor import get_logger

from latest_tag.config import (
    CIRCUIT_BREAKER_FAILURE_THRESHOLD,
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
)

logger = get_logger(__name__)

T = TypeVar('T')


class CircuitOpenError(RuntimeError):
    """Raised instead of calling GitHub while a breaker is open."""


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    def __init__(self, failure_threshold=3, recovery_timeout=30, name="default", clock: Callable[[], float] = time.monotonic):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.name = name
        self.clock = clock
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = CircuitState.CLOSED
        self._lock = threading.Lock()

    def __call__(self, func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            self._before_call()
            try:
                result = await func(*args, **kwargs)
            except Exception:
                self._on_failure()
                raise
            self._on_success()
            return result
        return wrapper

    def _before_call(self) -> None:
        # Snapshot state under lock, then release before awaiting
        with self._lock:
            if self.state != CircuitState.OPEN:
                return
            if not self._should_attempt_reset():
                raise CircuitOpenError(f"Circuit breaker {self.name} is OPEN - service unavailable")
            self.state = CircuitState.HALF_OPEN
            logger.info(f"Circuit breaker {self.name} transitioning to HALF_OPEN")

    def _should_attempt_reset(self) -> bool:
        if self.last_failure_time is None:
            return True
        return self.clock() - self.last_failure_time >= self.recovery_timeout

    def _on_success(self) -> None:
        with self._lock:
            self.failure_count = 0
            if self.state == CircuitState.HALF_OPEN:
                self.state = CircuitState.CLOSED
                logger.info(f"Circuit breaker {self.name} reset to CLOSED")

    def _on_failure(self) -> None:
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = self.clock()
            if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
                self.state = CircuitState.OPEN
                logger.warning(f"Circuit breaker {self.name} opened after {self.failure_count} failures")

    def reset(self) -> None:
        with self._lock:
            self.failure_count = 0
            self.last_failure_time = None
            self.state = CircuitState.CLOSED


# Global instances, one per upstream so a broken page fetch doesn't block the API
graphql_breaker = CircuitBreaker(
    failure_threshold=CIRCUIT_BREAKER_FAILURE_THRESHOLD,
    recovery_timeout=CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
    name="github_graphql",
)
release_page_breaker = CircuitBreaker(
    failure_threshold=CIRCUIT_BREAKER_FAILURE_THRESHOLD,
    recovery_timeout=CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
    name="github_release_page",
)
