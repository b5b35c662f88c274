"""
src/context/session.py — the current authenticated identity.

Authentication is a mock: users come from the seeded directory in
data/workspace.json and the token is an opaque, non-cryptographic marker.
Both the token and the JSON identity are persisted; a session is restored on
start-up only when both keys are present.
"""


import base64
import json
import time
from typing import Any, Dict, List, Optional

import pydantic
from loguru import logger

from config import Role, TOKEN_KEY, USER_KEY
from context.models import Identity


class SessionStore:

    def __init__(self, storage, users: Optional[List[Dict[str, Any]]] = None):

        self.storage = storage
        self.users = list(users or [])
        self.user: Optional[Identity] = None
        self.token: Optional[str] = None

    # --- Queries ---------------------------------------------------------------
    @property
    def is_authenticated(self) -> bool:

        return self.user is not None

    @property
    def role(self) -> Optional[str]:

        return self.user.role if self.user else None

    @property
    def is_admin(self) -> bool:

        return self.role == Role.ADMIN.value

    @property
    def is_user(self) -> bool:

        return self.role == Role.USER.value

    @property
    def current_user(self) -> Optional[Identity]:

        return self.user

    # --- Lifecycle -------------------------------------------------------------
    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Check credentials against the user directory and open a session.

        Returns:
            {"success": True, "user": {...}} or {"success": False, "error": "..."}
        """

        match = next(
            (u for u in self.users if u.get("email") == email and u.get("password") == password),
            None,
        )

        if match is None:
            logger.info("Login rejected for {}", email)
            return {"success": False, "error": "Invalid credentials"}

        identity = Identity(
            id=match["id"],
            role=match.get("role"),
            name=match.get("name") or "Unknown User",
            email=match.get("email"),
            position=match.get("position"),
        )
        token = base64.b64encode(f"{identity.email}:{identity.role}:{int(time.time() * 1000)}".encode()).decode()

        self.user = identity
        self.token = token
        self.storage.set(TOKEN_KEY, token)
        self.storage.set(USER_KEY, identity.model_dump_json())
        logger.info("User {} logged in as {}", identity.email, identity.role)

        return {"success": True, "user": identity.model_dump()}

    def logout(self) -> None:

        if self.user is not None:
            logger.info("User {} logged out", self.user.email)

        self.user = None
        self.token = None
        self.storage.remove(TOKEN_KEY)
        self.storage.remove(USER_KEY)

    def check_auth(self) -> bool:
        """Restore a persisted session. Both keys must be present."""

        token = self.storage.get(TOKEN_KEY)
        stored_user = self.storage.get(USER_KEY)

        if not (token and stored_user):
            return False

        try:
            self.user = Identity.model_validate(json.loads(stored_user))
        except (ValueError, pydantic.ValidationError):
            logger.exception("Stored user is unreadable; clearing session")
            self.logout()
            return False

        self.token = token

        return True
