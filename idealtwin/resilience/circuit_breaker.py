"""Circuit breaker implementation for external services

Implements the Circuit Breaker pattern so that an unreachable remote store
or suggestion API fails fast instead of stalling every user action.

State Machine:
    CLOSED (normal) → OPEN (failing fast) → HALF_OPEN (testing) → CLOSED/OPEN
"""

import pybreaker
import logging
from typing import Callable, Any, TypeVar
from functools import wraps

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CircuitBreakerListener(pybreaker.CircuitBreakerListener):
    """Listener to log circuit breaker state changes"""

    def state_change(self, cb: pybreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        """Called when circuit breaker changes state"""
        logger.warning(
            f"[CIRCUIT_BREAKER] {cb.name}: {old_state.name} → {new_state.name}"
        )

    def failure(self, cb: pybreaker.CircuitBreaker, exc: BaseException) -> None:
        """Called when circuit breaker records a failure"""
        logger.error(
            f"[CIRCUIT_BREAKER] {cb.name} recorded failure: {type(exc).__name__}: {exc}"
        )

    def success(self, cb: pybreaker.CircuitBreaker) -> None:
        """Called when circuit breaker records a success"""
        logger.debug(f"[CIRCUIT_BREAKER] {cb.name} recorded success")


# One breaker per external service
# Configuration: 5 failures triggers OPEN, 60s timeout before HALF_OPEN

SUGGESTION_BREAKER = pybreaker.CircuitBreaker(
    fail_max=5,
    reset_timeout=60,
    name="suggestion_api",
    listeners=[CircuitBreakerListener()]
)

PERSISTENCE_BREAKER = pybreaker.CircuitBreaker(
    fail_max=5,
    reset_timeout=60,
    name="persistence_api",
    listeners=[CircuitBreakerListener()]
)


def with_circuit_breaker(breaker: pybreaker.CircuitBreaker) -> Callable:
    """
    Decorator to wrap async functions with circuit breaker protection.

    When the circuit is OPEN, calls fail immediately with CircuitBreakerError
    instead of reaching the external service.

    Args:
        breaker: The circuit breaker instance to use

    Returns:
        Decorator function

    Example:
        @with_circuit_breaker(SUGGESTION_BREAKER)
        async def call_suggestion_api():
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await breaker.call_async(func, *args, **kwargs)
            except pybreaker.CircuitBreakerError:
                logger.warning(
                    f"[CIRCUIT_BREAKER] {breaker.name} is OPEN - failing fast"
                )
                raise
        return wrapper
    return decorator
