"""
Service layer for IdealTwin

Persistence (local cache + remote profile store), AI suggestions,
debounced sync and the session controller that ties them to the
gamification engine.
"""

from idealtwin.services.container import ServiceContainer, get_container, init_container

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
]
