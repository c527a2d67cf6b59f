"""Resilience patterns for external service calls

Circuit breakers and fallback strategies protecting the app from an
unreachable remote store or suggestion API.
"""

from idealtwin.resilience.circuit_breaker import (
    SUGGESTION_BREAKER,
    PERSISTENCE_BREAKER,
    with_circuit_breaker,
)
from idealtwin.resilience.fallback import execute_with_fallbacks, FallbackStrategy

__all__ = [
    # Circuit Breakers
    "SUGGESTION_BREAKER",
    "PERSISTENCE_BREAKER",
    "with_circuit_breaker",
    # Fallback
    "execute_with_fallbacks",
    "FallbackStrategy",
]
