"""
src/context/models.py

Pydantic models for session identity, audit entries and list pages.
"""


from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


def utc_now_iso() -> str:
    """ISO-8601 timestamp in UTC, the format every record and log entry uses."""

    return datetime.now(timezone.utc).isoformat()


class Identity(BaseModel):

    id: Union[int, str]
    role: Optional[str] = None
    name: str = "Unknown User"
    email: Optional[str] = None
    position: Optional[str] = None


class AuditEntry(BaseModel):
    """One row of the audit trail. Serialised with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    timestamp: str
    user_id: Optional[Union[int, str]] = Field(default=None, alias="userId")
    username: str = "system"
    role: Optional[str] = None
    action: str
    category: Optional[str] = None
    details: str = ""
    target_id: Optional[Union[int, str]] = Field(default=None, alias="targetId")


class Page(BaseModel):

    rows: List[Dict[str, Any]]
    total_count: int
    total_pages: int
    page: int
    page_size: int
