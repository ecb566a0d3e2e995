"""
Pytest configuration and shared fixtures for the asset registry tests.
"""

import sys
from pathlib import Path
from typing import Optional

import pytest

# Make the project root importable when the package is not installed.
sys.path.insert(0, str(Path(__file__).parent.parent))

from asset_registry_api.app.core import db  # noqa: E402
from asset_registry_api.app.core.config import settings  # noqa: E402
from asset_registry_api.app.core.security import InvocationContext, StaticIdentity  # noqa: E402
from asset_registry_api.app.core.world_state import InMemoryWorldState, StateIterator  # noqa: E402
from asset_registry_api.app.services.asset_service import AssetService  # noqa: E402

ADMIN_ID = "x509::CN=admin::CN=ca.org1"
AUDITOR_ID = "x509::CN=auditor::CN=ca.org1"
ALICE_ID = "x509::CN=alice::CN=ca.org1"
BOB_ID = "x509::CN=bob::CN=ca.org1"


def make_identity(client_id: Optional[str], role: Optional[str] = None) -> StaticIdentity:
    attributes = {} if role is None else {settings.role_attribute: role}
    return StaticIdentity(client_id=client_id, attributes=attributes)


class RecordingWorldState(InMemoryWorldState):
    """In-memory state that remembers scan iterators and counts writes."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.iterators: list[StateIterator] = []
        self.writes = 0

    def put_state(self, key, value):
        self.writes += 1
        super().put_state(key, value)

    def put_if_absent(self, key, value):
        self.writes += 1
        return super().put_if_absent(key, value)

    def del_state(self, key):
        self.writes += 1
        super().del_state(key)

    def get_state_by_range(self, start_key="", end_key=""):
        iterator = super().get_state_by_range(start_key, end_key)
        self.iterators.append(iterator)
        return iterator


@pytest.fixture
def state():
    return RecordingWorldState()


@pytest.fixture
def registry(state):
    """Factory: ``registry(client_id, role)`` returns a service bound to ``state``."""

    def _registry(client_id: Optional[str], role: Optional[str] = None) -> AssetService:
        return AssetService(InvocationContext(identity=make_identity(client_id, role), state=state))

    return _registry


@pytest.fixture
def admin(registry):
    return registry(ADMIN_ID, "admin")


@pytest.fixture
def auditor(registry):
    return registry(AUDITOR_ID, "auditor")


@pytest.fixture
def sqlite_settings(tmp_path, monkeypatch):
    """Point the SQLite backend at a fresh database and migrate it."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "world_state.db"))
    monkeypatch.setattr(settings, "state_backend", "sqlite")
    db.init_db()
    return settings
