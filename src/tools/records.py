"""
src/tools/records.py — the shared lifecycle of every record collection.

A collection owns an in-memory list of records of one type and is the only
thing that mutates it. Each action:

1) checks the session's permission (PermissionError if missing),
2) validates and normalises the input (amount/price -> float, quantity -> int,
   on every create AND update),
3) calls the persistence backend and waits for it,
4) only then touches the in-memory list,
5) appends an audit entry (best-effort, never fails the action).

Failures set `error` on the collection and are re-raised for the caller to
display. Nothing is retried.

Lifecycle per record: Draft --create--> Active --update--> Active
                                         Active --delete--> Deleted
Subclasses add guards (check_editable / check_deletable) for extra states such
as a paid invoice.
"""


from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple, Union

from loguru import logger

from config import DEFAULT_PAGE_SIZE, Modal, Permission, SortDirection
from context.models import Page, utc_now_iso
from context.selectors import get_record_by_id
from exceptions import ValidationError
from tools import listing

if TYPE_CHECKING:
    from context.loader import Workspace


Record = Dict[str, Any]

# Never taken from caller input on update
_PROTECTED_FIELDS = ("id", "createdAt")


# --- Coercion helpers ----------------------------------------------------------
def to_float(value: Any) -> float:
    """Parse a money-like value; missing or invalid input becomes 0.0."""

    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0

    return number if number == number else 0.0   # NaN

def to_int(value: Any) -> int:
    """Parse a count; "12.7" -> 12, missing or invalid input becomes 0."""

    if isinstance(value, bool):
        return int(value)

    try:
        return int(value)
    except (TypeError, ValueError):
        pass

    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0

def to_iso_date(value: Any) -> str:
    """Normalise a date/datetime/ISO string; raise ValidationError if it is not one."""

    if isinstance(value, (date, datetime)):
        return value.isoformat()

    if isinstance(value, str) and value.strip():
        s = value.strip()
        try:
            return (date.fromisoformat(s) if len(s) == 10 else datetime.fromisoformat(s.replace("Z", "+00:00"))).isoformat()
        except ValueError:
            pass

    raise ValidationError("Invalid date format")


# --- View state ----------------------------------------------------------------
class ModalState:
    """At most one dialog is open per collection, optionally holding a record."""

    def __init__(self):

        self.active: Optional[Modal] = None
        self.record: Optional[Record] = None

    def open(self, modal: Modal, record: Optional[Record] = None) -> None:

        self.active = Modal(modal)
        self.record = record

    def close(self, modal: Optional[Modal] = None) -> None:
        """Close `modal` if it is the open one; with no argument close whatever is open."""

        if modal is None or self.active == Modal(modal):
            self.active = None
            self.record = None

    def is_open(self, modal: Modal) -> bool:

        return self.active == Modal(modal)


@dataclass
class ListState:

    search: str = ""
    field_filters: Dict[str, str] = field(default_factory=dict)
    exact_filters: Dict[str, str] = field(default_factory=dict)
    start: Optional[str] = None
    end: Optional[str] = None
    sort_column: Optional[str] = None
    sort_direction: SortDirection = SortDirection.ASC
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def reset_filters(self) -> None:

        self.search = ""
        self.field_filters = {}
        self.exact_filters = {}
        self.start = None
        self.end = None
        self.page = 1


# --- Collection ----------------------------------------------------------------
class RecordCollection:

    collection: str = ""
    record_type: str = ""                   # audit action suffix, e.g. "ORDER"
    category: str = ""                      # audit category, e.g. "sale"
    required_fields: Tuple[str, ...] = ()
    float_fields: Tuple[str, ...] = ("amount",)
    int_fields: Tuple[str, ...] = ("quantity",)
    search_fields: Tuple[str, ...] = ()
    exact_filter_fields: Tuple[str, ...] = ("status",)
    date_field: str = "createdAt"
    default_sort: Tuple[Optional[str], SortDirection] = (None, SortDirection.ASC)
    default_page_size: int = DEFAULT_PAGE_SIZE
    read_permission: Permission = Permission.READ
    create_modal: Optional[Modal] = None
    edit_modal: Optional[Modal] = None
    insert_at_front: bool = False

    def __init__(self, ws: Workspace):

        self.ws = ws
        self.records: List[Record] = []
        self.error: Optional[str] = None
        self.is_loading = False
        self.modal = ModalState()
        self.view = ListState(
            sort_column=self.default_sort[0],
            sort_direction=self.default_sort[1],
            page_size=self.default_page_size,
        )

    @property
    def noun(self) -> str:

        return self.record_type.lower()

    # --- Hooks -----------------------------------------------------------------
    def normalize(self, data: Record) -> Record:
        """Coerce numeric fields. Runs on fetched, created and updated records."""

        rec = dict(data)

        for name in self.float_fields:
            rec[name] = to_float(rec.get(name))
        for name in self.int_fields:
            rec[name] = to_int(rec.get(name))

        return rec

    def validate(self, rec: Record) -> None:

        for name in self.required_fields:
            value = rec.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"{name} is required")

    def describe(self, rec: Record) -> str:

        return str(rec.get("customerName") or rec.get("name") or rec.get("id") or "unknown")

    def prepare_create(self, data: Record) -> Record:

        rec = self.normalize({k: v for k, v in data.items() if k not in _PROTECTED_FIELDS})
        self.validate(rec)
        rec["updatedAt"] = utc_now_iso()

        return rec

    def prepare_update(self, current: Record, changes: Record) -> Record:
        """Merge `changes` over the stored record, then normalise the result."""

        merged = {**current, **{k: v for k, v in changes.items() if k not in _PROTECTED_FIELDS}}
        merged = self.normalize(merged)
        self.validate(merged)
        merged["updatedAt"] = utc_now_iso()

        return {k: v for k, v in merged.items() if k not in _PROTECTED_FIELDS}

    def before_create(self, rec: Record) -> None:
        """Guard run after validation and before the backend call."""

    def check_editable(self, current: Record) -> None:
        """Raise ConflictError when `current` may no longer change."""

    def check_deletable(self, current: Record) -> None:
        """Raise ConflictError when `current` may not be deleted."""

    # --- Plumbing --------------------------------------------------------------
    @contextmanager
    def _action(self, label: str) -> Iterator[None]:

        self.is_loading = True
        self.error = None
        try:
            yield
        except Exception as e:
            self.error = str(e) or e.__class__.__name__
            logger.warning("{} failed: {}", label, self.error)
            raise
        finally:
            self.is_loading = False

    def _stored(self, record_id: Any) -> Record:
        """Current persisted state of a record (NotFoundError if absent)."""

        return self.normalize(self.ws.backend.get(self.collection, record_id))

    def _replace(self, rec: Record) -> None:

        for i, r in enumerate(self.records):
            if str(r.get("id")) == str(rec["id"]):
                self.records[i] = rec
                return

        self._insert(rec)

    def _insert(self, rec: Record) -> None:

        if self.insert_at_front:
            self.records.insert(0, rec)
        else:
            self.records.append(rec)

    def _log(self, verb: str, rec: Record) -> None:

        self.ws.log(
            f"{verb}_{self.record_type}",
            f"{verb.capitalize()}d {self.noun} for {self.describe(rec)}",
            category=self.category,
            target_id=rec.get("id"),
        )

    # --- Public API ------------------------------------------------------------
    def fetch(self) -> List[Record]:
        """Load every record from the backend, newest first."""

        with self._action(f"fetch {self.collection}"):
            self.ws.permissions.require(self.read_permission)
            rows = [self.normalize(r) for r in self.ws.backend.list(self.collection)]
            rows.sort(key=lambda r: str(r.get("createdAt") or ""), reverse=True)
            self.records = rows

        return self.records

    def get(self, record_id: Any) -> Optional[Record]:

        return get_record_by_id(self.records, record_id)

    def create(self, data: Record) -> Record:

        with self._action(f"create {self.noun}"):
            self.ws.permissions.require(Permission.WRITE)
            rec = self.prepare_create(data)
            self.before_create(rec)
            created = self.normalize(self.ws.backend.create(self.collection, rec))
            self._insert(created)
            logger.info("Created {} {}", self.noun, created.get("id"))
            self._log("CREATE", created)
            if self.create_modal:
                self.modal.close(self.create_modal)

        return created

    def update(self, record_id: Any, changes: Record) -> Record:

        with self._action(f"update {self.noun} {record_id}"):
            self.ws.permissions.require(Permission.WRITE)
            current = self._stored(record_id)
            self.check_editable(current)
            payload = self.prepare_update(current, changes)
            updated = self.normalize(self.ws.backend.update(self.collection, record_id, payload))
            self._replace(updated)
            logger.info("Updated {} {}", self.noun, record_id)
            self._log("UPDATE", updated)
            if self.edit_modal:
                self.modal.close(self.edit_modal)

        return updated

    def delete(self, record_id: Any) -> bool:

        with self._action(f"delete {self.noun} {record_id}"):
            self.ws.permissions.require(Permission.DELETE)
            current = self._stored(record_id)
            self.check_deletable(current)
            self.ws.backend.delete(self.collection, record_id)
            self.records = [r for r in self.records if str(r.get("id")) != str(record_id)]
            logger.info("Deleted {} {}", self.noun, record_id)
            self._log("DELETE", current)
            self.modal.close()

        return True

    # --- List view -------------------------------------------------------------
    def _filters(self) -> Dict[str, Any]:

        return {
            "search": self.view.search,
            "search_fields": self.search_fields,
            "field_filters": self.view.field_filters,
            "exact_filters": self.view.exact_filters,
            "date_field": self.date_field,
            "start": self.view.start,
            "end": self.view.end,
        }

    def filtered(self) -> List[Record]:

        rows = listing.filter_records(self.records, **self._filters())

        return listing.sort_records(rows, self.view.sort_column, self.view.sort_direction)

    def page(self) -> Page:

        return listing.run(
            self.records,
            page=self.view.page,
            page_size=self.view.page_size,
            sort_column=self.view.sort_column,
            sort_direction=self.view.sort_direction,
            **self._filters(),
        )

    @property
    def total_pages(self) -> int:

        return listing.total_pages(len(self.filtered()), self.view.page_size)

    def page_numbers(self) -> List[Union[int, str]]:

        return listing.page_numbers(self.total_pages, self.view.page)

    def set_search_query(self, query: str) -> None:

        self.view.search = query or ""
        self.view.page = 1

    def set_filter(self, name: str, value: str) -> None:
        """Dropdown fields match exactly, every other field by substring."""

        target = self.view.exact_filters if name in self.exact_filter_fields else self.view.field_filters
        target[name] = value or ""
        self.view.page = 1

    def set_date_filter(self, start: Optional[str], end: Optional[str]) -> None:

        self.view.start = start or None
        self.view.end = end or None
        self.view.page = 1

    def reset_filters(self) -> None:

        self.view.reset_filters()

    def handle_sort(self, column: str) -> None:
        """Same column flips direction; a new column starts ascending."""

        if self.view.sort_column == column:
            self.view.sort_direction = (
                SortDirection.DESC if self.view.sort_direction == SortDirection.ASC else SortDirection.ASC
            )
        else:
            self.view.sort_column = column
            self.view.sort_direction = SortDirection.ASC

    def change_page(self, page: int) -> bool:
        """Move to `page` if it exists; out-of-range requests are ignored."""

        if 1 <= page <= self.total_pages:
            self.view.page = page
            return True

        return False

    def next_page(self) -> bool:

        return self.change_page(self.view.page + 1)

    def previous_page(self) -> bool:

        return self.change_page(self.view.page - 1)

    def open_modal(self, modal: Modal, record: Optional[Record] = None) -> None:

        self.modal.open(modal, record)

    def close_modal(self, modal: Optional[Modal] = None) -> None:

        self.modal.close(modal)
