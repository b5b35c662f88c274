"""
src/context/loader.py
"""


import json
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from config import API_URL, AUDIT_LOG_LIMIT, STATE_PATH, WORKSPACE_PATH
from context.session import SessionStore
from services.api import InMemoryBackend, RestBackend
from services.audit import AuditLog
from services.storage import FileStorage
from tools.clients import ClientCollection
from tools.permissions import PermissionResolver
from tools.products import ProductCollection
from tools.reports import ReportCollection
from tools.sales import InvoiceCollection, OrderCollection


COLLECTIONS = ("orders", "invoices", "products", "clients", "reports")


class Workspace:
    """
    Everything an action needs, passed explicitly: session, permissions, audit
    trail and the persistence backend. Collections hang off the workspace and
    receive it on construction.
    """

    def __init__(self, *, backend, storage, users=None, roles=None, audit_limit: int = AUDIT_LOG_LIMIT):

        self.backend = backend
        self.storage = storage
        self.session = SessionStore(storage, users)
        self.permissions = PermissionResolver(self.session, roles)
        self.audit = AuditLog(storage, limit=audit_limit)

        self.orders = OrderCollection(self)
        self.invoices = InvoiceCollection(self)
        self.products = ProductCollection(self)
        self.clients = ClientCollection(self)
        self.reports = ReportCollection(self)

        self.session.check_auth()

    def log(self, action: str, details: str, *, category: Optional[str] = None, target_id: Any = None):
        """Append an audit entry attributed to the session user (best-effort)."""

        return self.audit.add(
            action=action,
            details=details,
            category=category,
            identity=self.session.current_user,
            target_id=target_id,
        )


def load_workspace(
        path: Path = WORKSPACE_PATH,
        *,
        api_url: Optional[str] = API_URL,
        storage=None,
) -> Workspace:

    if not path.exists():
        raise FileNotFoundError(f"Workspace file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data: Dict[str, Any] = json.load(f)

    # Sanity checks
    if "users" not in data:
        raise ValueError("workspace.json missing 'users'")

    if api_url:
        logger.info("Using data service at {}", api_url)
        backend = RestBackend(api_url)
    else:
        logger.info("No data service configured; using seeded in-memory records")
        backend = InMemoryBackend({name: data.get(name, []) for name in COLLECTIONS})

    return Workspace(
        backend=backend,
        storage=storage if storage is not None else FileStorage(STATE_PATH),
        users=data["users"],
    )
