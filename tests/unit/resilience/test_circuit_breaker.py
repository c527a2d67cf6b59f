"""Unit tests for circuit breaker functionality"""
import pytest
import pybreaker
from idealtwin.resilience.circuit_breaker import (
    SUGGESTION_BREAKER,
    PERSISTENCE_BREAKER,
    with_circuit_breaker,
    CircuitBreakerListener,
)


@pytest.mark.asyncio
async def test_circuit_breaker_closes_on_success():
    """Test that circuit breaker remains CLOSED when calls succeed"""

    @with_circuit_breaker(SUGGESTION_BREAKER)
    async def successful_function():
        return "success"

    for _ in range(10):
        result = await successful_function()
        assert result == "success"

    assert SUGGESTION_BREAKER.current_state == pybreaker.STATE_CLOSED


@pytest.mark.asyncio
async def test_circuit_breaker_opens_after_failures():
    """Test that circuit breaker opens after threshold failures"""

    @with_circuit_breaker(PERSISTENCE_BREAKER)
    async def failing_function():
        raise ConnectionError("Simulated failure")

    # The first four failures propagate unchanged
    for _ in range(4):
        with pytest.raises(ConnectionError, match="Simulated failure"):
            await failing_function()

    # The fifth trips the breaker
    with pytest.raises(pybreaker.CircuitBreakerError):
        await failing_function()

    assert PERSISTENCE_BREAKER.current_state == pybreaker.STATE_OPEN


@pytest.mark.asyncio
async def test_open_circuit_fails_fast():
    """Test that an OPEN circuit never calls the wrapped function"""
    calls = []

    @with_circuit_breaker(SUGGESTION_BREAKER)
    async def tracked_function():
        calls.append(1)
        return "ok"

    SUGGESTION_BREAKER.open()

    with pytest.raises(pybreaker.CircuitBreakerError):
        await tracked_function()
    assert calls == []


@pytest.mark.asyncio
async def test_breakers_are_independent():
    """Test that one open breaker does not affect the other"""

    @with_circuit_breaker(SUGGESTION_BREAKER)
    async def suggestion_call():
        return "suggestion"

    PERSISTENCE_BREAKER.open()

    assert await suggestion_call() == "suggestion"


def test_listener_registered():
    """Test both breakers log state changes"""
    for breaker in (SUGGESTION_BREAKER, PERSISTENCE_BREAKER):
        assert any(isinstance(l, CircuitBreakerListener) for l in breaker.listeners)
