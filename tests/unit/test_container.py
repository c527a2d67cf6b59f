"""Unit tests for the service container (idealtwin/services/container.py)"""
import pytest

from idealtwin.services import container as container_module
from idealtwin.services.container import ServiceContainer, get_container, init_container
from idealtwin.services.local_cache import LocalCache
from idealtwin.services.remote_store import RemoteProfileStore
from idealtwin.services.session import TwinSession


def test_services_lazy_and_cached(tmp_path):
    """Test services are built once on first access"""
    container = ServiceContainer(data_path=tmp_path, remote_url="")

    assert container._session is None
    session = container.session
    assert isinstance(session, TwinSession)
    assert container.session is session
    assert isinstance(container.local_cache, LocalCache)


def test_local_only_without_remote_url(tmp_path):
    container = ServiceContainer(data_path=tmp_path, remote_url="")
    assert container.remote_store is None
    assert container.persistence.remote is None


def test_remote_store_configured(tmp_path):
    container = ServiceContainer(data_path=tmp_path, remote_url="https://store.test", remote_api_key="k")
    assert isinstance(container.remote_store, RemoteProfileStore)
    assert container.persistence.remote is container.remote_store


def test_get_container_requires_init(monkeypatch):
    monkeypatch.setattr(container_module, "_container", None)
    with pytest.raises(RuntimeError):
        get_container()


def test_init_container(monkeypatch, tmp_path):
    monkeypatch.setattr(container_module, "_container", None)
    created = init_container(data_path=tmp_path, remote_url="")
    assert get_container() is created
