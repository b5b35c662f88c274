"""
Pytest fixtures for the back-office tests.

Provides memory storage, an in-memory backend and workspaces logged in as each
seeded role.
"""

import pytest

from context.loader import Workspace
from services.api import InMemoryBackend
from services.storage import MemoryStorage


USERS = [
    {"id": 1, "email": "admin@center.com", "password": "admin123", "role": "admin", "name": "Admin User"},
    {"id": 2, "email": "manager@center.com", "password": "manager123", "role": "manager", "name": "Sales Manager"},
    {"id": 3, "email": "sales@center.com", "password": "sales123", "role": "user", "name": "Sales Staff"},
    {"id": 4, "email": "staff@center.com", "password": "staff123", "role": "general_staff", "name": "Front Desk"},
    {"id": 5, "email": "ghost@center.com", "password": "ghost123", "role": "auditor", "name": "Unknown Role"},
]


@pytest.fixture
def users():
    return [dict(u) for u in USERS]


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def make_workspace(backend, storage, users):
    """Build a workspace over the shared backend, optionally logged in."""

    def _make(email=None):
        ws = Workspace(backend=backend, storage=storage, users=users)
        if email:
            password = next(u["password"] for u in users if u["email"] == email)
            assert ws.session.login(email, password)["success"]
        return ws

    return _make


@pytest.fixture
def admin_ws(make_workspace):
    return make_workspace("admin@center.com")


@pytest.fixture
def manager_ws(make_workspace):
    return make_workspace("manager@center.com")


@pytest.fixture
def user_ws(make_workspace):
    return make_workspace("sales@center.com")
