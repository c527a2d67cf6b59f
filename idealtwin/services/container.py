"""
Service Container - Dependency Injection Container

Wires the local cache, remote store, persistence, suggestion and session
services. Services are lazy-loaded on first access.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional
import logging

from idealtwin.config import (
    DATA_PATH,
    PERSISTENCE_API_KEY,
    PERSISTENCE_API_URL,
    SAVE_DEBOUNCE_SECONDS,
)

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Infrastructure settings are injected; services are built on first use.
    An empty remote_url keeps the app local-only.
    """

    # Infrastructure settings (injected)
    data_path: Path = DATA_PATH
    remote_url: str = PERSISTENCE_API_URL
    remote_api_key: str = PERSISTENCE_API_KEY
    is_online: Callable[[], bool] = lambda: True
    save_delay: float = SAVE_DEBOUNCE_SECONDS

    # Services (lazy-loaded via properties)
    _local_cache: Optional[object] = field(default=None, init=False, repr=False)
    _remote_store: Optional[object] = field(default=None, init=False, repr=False)
    _persistence: Optional[object] = field(default=None, init=False, repr=False)
    _suggestions: Optional[object] = field(default=None, init=False, repr=False)
    _session: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def local_cache(self):
        """Get LocalCache instance (lazy-loaded)"""
        if self._local_cache is None:
            from idealtwin.services.local_cache import LocalCache
            self._local_cache = LocalCache(self.data_path)
            logger.debug("LocalCache instantiated")
        return self._local_cache

    @property
    def remote_store(self):
        """Get RemoteProfileStore instance, or None when not configured"""
        if self._remote_store is None and self.remote_url:
            from idealtwin.services.remote_store import RemoteProfileStore
            self._remote_store = RemoteProfileStore(self.remote_url, api_key=self.remote_api_key)
            logger.debug("RemoteProfileStore instantiated")
        return self._remote_store

    @property
    def persistence(self):
        """Get PersistenceService instance (lazy-loaded)"""
        if self._persistence is None:
            from idealtwin.services.persistence import PersistenceService
            self._persistence = PersistenceService(
                self.local_cache,
                remote=self.remote_store,
                is_online=self.is_online,
            )
            logger.debug("PersistenceService instantiated")
        return self._persistence

    @property
    def suggestions(self):
        """Get SuggestionService instance (lazy-loaded)"""
        if self._suggestions is None:
            from idealtwin.services.suggestion_service import SuggestionService
            self._suggestions = SuggestionService()
            logger.debug("SuggestionService instantiated")
        return self._suggestions

    @property
    def session(self):
        """Get TwinSession instance (lazy-loaded)"""
        if self._session is None:
            from idealtwin.services.session import TwinSession
            self._session = TwinSession(self.persistence, self.suggestions, save_delay=self.save_delay)
            logger.debug("TwinSession instantiated")
        return self._session


# Global container instance (initialized in main.py)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() in main.py before using services."
        )
    return _container


def init_container(**settings) -> ServiceContainer:
    """
    Initialize the global service container.

    Should be called once in main.py; keyword arguments override the
    configured ServiceContainer settings.
    """
    global _container

    _container = ServiceContainer(**settings)

    logger.info("Service container initialized")
    return _container
