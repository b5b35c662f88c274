"""
src/services/audit.py — append-only, capacity-bounded audit trail.

Entries are kept most-recent first and persisted as one JSON list under a single
storage key. Writing the trail is best-effort: a failure is logged and swallowed
so it can never fail the business action that triggered it.
"""


import json
from datetime import datetime, timezone
from typing import List, Optional, Union
from uuid import uuid4

import pydantic
from loguru import logger

from config import AUDIT_LOG_KEY, AUDIT_LOG_LIMIT
from context.models import AuditEntry, Identity, utc_now_iso


def _parse_ts(value: Union[str, datetime]) -> datetime:

    ts = value if isinstance(value, datetime) else datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


class AuditLog:

    def __init__(self, storage, *, limit: int = AUDIT_LOG_LIMIT, key: str = AUDIT_LOG_KEY):

        if limit <= 0:
            raise ValueError("Audit log limit must be positive.")

        self.storage = storage
        self.limit = limit
        self.key = key
        self._entries: List[AuditEntry] = self._load()

    def _load(self) -> List[AuditEntry]:

        raw = self.storage.get(self.key)
        if not raw:
            return []

        try:
            return [AuditEntry.model_validate(e) for e in json.loads(raw)]
        except (ValueError, TypeError, pydantic.ValidationError):
            logger.exception("Stored audit log under '{}' is unreadable; starting empty", self.key)
            return []

    def _save(self, entries: List[AuditEntry]) -> None:

        payload = [e.model_dump(by_alias=True, mode="json") for e in entries]
        self.storage.set(self.key, json.dumps(payload, ensure_ascii=False))

    def add(
            self,
            *,
            action: str,
            details: str = "",
            category: Optional[str] = None,
            identity: Optional[Identity] = None,
            target_id: Optional[Union[int, str]] = None,
    ) -> Optional[AuditEntry]:
        """
        Record one user action at the head of the trail.

        The acting user comes from the session identity; without one the entry
        is attributed to "system". Entries beyond the limit are evicted oldest
        first.

        Returns:
            The stored entry, or None when the write failed.
        """

        try:
            entry = AuditEntry(
                id=str(uuid4()),
                timestamp=utc_now_iso(),
                user_id=identity.id if identity else None,
                username=identity.name if identity else "system",
                role=identity.role if identity else None,
                action=action,
                category=category,
                details=details,
                target_id=target_id,
            )
            entries = [entry] + self._entries[:self.limit - 1]
            self._save(entries)
            self._entries = entries
        except Exception:
            logger.exception("Failed to write audit entry {}", action)
            return None

        logger.debug("Audit {} ({})", action, details)

        return entry

    def entries(
            self,
            *,
            start: Optional[Union[str, datetime]] = None,
            end: Optional[Union[str, datetime]] = None,
            category: Optional[str] = None,
    ) -> List[AuditEntry]:
        """
        Return stored entries (most recent first), re-read from storage.

        Unlike the list views, each time bound applies on its own.
        """

        self._entries = self._load()
        out = list(self._entries)

        if start:
            lo = _parse_ts(start)
            out = [e for e in out if _parse_ts(e.timestamp) >= lo]
        if end:
            hi = _parse_ts(end)
            out = [e for e in out if _parse_ts(e.timestamp) <= hi]
        if category:
            out = [e for e in out if e.category == category]

        return out

    def clear(self) -> None:

        self._save([])
        self._entries = []
        logger.info("Audit log cleared")

    def __len__(self) -> int:

        return len(self._entries)
