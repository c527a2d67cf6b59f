"""Fallback strategies for service failures

Tries multiple strategies in priority order until one succeeds. Used to
load the session from the remote store first and the local cache second.
"""

import logging
from typing import Any, Callable, List, TypeVar
from dataclasses import dataclass

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class FallbackStrategy:
    """
    Defines a fallback strategy with priority ordering.

    Attributes:
        name: Human-readable name for logging
        handler: Async callable that implements the strategy
        priority: Priority level (lower = higher priority, 1 = primary)
    """
    name: str
    handler: Callable[..., T]
    priority: int


class AllStrategiesFailedError(Exception):
    """Raised when no strategy produced a result"""


async def execute_with_fallbacks(
    strategies: List[FallbackStrategy],
    *args: Any,
    **kwargs: Any
) -> T:
    """
    Execute strategies in priority order until one succeeds.

    Args:
        strategies: List of FallbackStrategy to try
        *args, **kwargs: Arguments to pass to each strategy handler

    Returns:
        Result from first successful strategy

    Raises:
        Last exception if all strategies fail

    Example:
        strategies = [
            FallbackStrategy("remote", load_remote, priority=1),
            FallbackStrategy("local_cache", load_cached, priority=2),
        ]
        result = await execute_with_fallbacks(strategies, username="jana")
    """
    sorted_strategies = sorted(strategies, key=lambda s: s.priority)

    last_exception = None

    for strategy in sorted_strategies:
        try:
            logger.info(f"[FALLBACK] Trying strategy: {strategy.name}")
            result = await strategy.handler(*args, **kwargs)
            logger.info(f"[FALLBACK] Strategy '{strategy.name}' succeeded")
            return result

        except Exception as e:
            logger.warning(
                f"[FALLBACK] Strategy '{strategy.name}' failed: "
                f"{type(e).__name__}: {e}"
            )
            last_exception = e
            continue

    logger.error(
        f"[FALLBACK] All {len(sorted_strategies)} fallback strategies exhausted"
    )

    if last_exception:
        raise last_exception
    raise AllStrategiesFailedError("All fallback strategies failed")
