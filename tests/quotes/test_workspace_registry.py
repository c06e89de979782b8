"""
Tests pour le registre des sessions en mémoire (création, accès, expiration).
"""
import pytest

from cotizador.quotes.application.workspace import WorkspaceRegistry
from cotizador.quotes.domain.exceptions import QuoteSessionNotFoundException


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return WorkspaceRegistry(idle_timeout=60, clock=clock)


def test_create_get_remove(registry):
    workspace = registry.create()
    assert registry.get(workspace.id) is workspace
    assert registry.remove(workspace.id) is True
    assert registry.remove(workspace.id) is False
    with pytest.raises(QuoteSessionNotFoundException):
        registry.get(workspace.id)


def test_idle_session_expires(registry, clock):
    idle = registry.create()
    active = registry.create()

    clock.now += 45
    registry.get(active.id)
    clock.now += 30

    assert registry.purge_expired() == [idle.id]
    assert len(registry) == 1
    with pytest.raises(QuoteSessionNotFoundException):
        registry.get(idle.id)
    assert registry.get(active.id) is active


def test_expiry_runs_on_create(registry, clock):
    old = registry.create()
    clock.now += 61
    registry.create()
    assert len(registry) == 1
    with pytest.raises(QuoteSessionNotFoundException):
        registry.get(old.id)


def test_finalizing_session_is_kept(registry, clock):
    workspace = registry.create()
    workspace.session.is_finalizing = True
    clock.now += 600
    assert registry.purge_expired() == []
    assert registry.get(workspace.id) is workspace
