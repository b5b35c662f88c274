"""
src/tools/listing.py — the filter -> sort -> paginate pipeline behind every list view.

Provides:
- filter_records(...): keep records matching every non-empty predicate
- sort_records(records, column, direction): stable, locale-aware for text
- paginate(records, page, page_size): 1-based slice
- total_pages(count, page_size): ceil(count / page_size); 0 for an empty result
- run(records, ...): all three steps, returned as a Page
- page_numbers(total, current): compact page-control list with "..." gaps

Conventions:
* Text predicates are case-insensitive substring matches.
* A date range applies only when BOTH bounds are given. A bound written as a
  bare date ("2024-03-31") compares at day granularity, so the whole end day is
  included.
* The pipeline never clamps the page. Callers reject pages outside
  [1, total_pages] before asking for a slice.
"""


import locale
import math
from datetime import date, datetime, timezone
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from config import SortDirection
from context.models import Page
from exceptions import ValidationError


Record = Dict[str, Any]
DateLike = Union[str, date, datetime, None]


# --- Private helpers -----------------------------------------------------------
def _text(value: Any) -> str:

    return "" if value is None else str(value).lower()

def _parse_date(value: DateLike) -> Optional[Union[date, datetime]]:
    """
    Internal: turn an ISO string/date/datetime into a comparable value.

    Aware datetimes are normalised to naive UTC. Bare dates stay dates.
    Returns None for missing or unparseable input.
    """

    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value
    else:
        s = str(value).strip()
        try:
            if len(s) == 10:
                return date.fromisoformat(s)
            parsed = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)

    return parsed

def _in_range(value: DateLike, start: Union[date, datetime], end: Union[date, datetime]) -> bool:

    d = _parse_date(value)

    if d is None:
        return False

    def side(bound):
        # Bare-date bounds compare by day
        if isinstance(bound, datetime):
            return (d if isinstance(d, datetime) else datetime.combine(d, datetime.min.time())), bound
        return (d.date() if isinstance(d, datetime) else d), bound

    lo_val, lo = side(start)
    hi_val, hi = side(end)

    return lo <= lo_val and hi_val <= hi

def _compare(a: Any, b: Any) -> int:
    """
    Internal: three-way compare of two cell values.

    Text vs text uses the active locale's collation (case-folded first, raw as a
    tie-break). Anything else is compared numerically; values that cannot be
    read as numbers compare equal so they keep their input order. Missing or
    empty values rank below everything else.
    """

    a_missing, b_missing = a is None or a == "", b is None or b == ""
    if a_missing or b_missing:
        return b_missing - a_missing

    if isinstance(a, str) and isinstance(b, str):
        return locale.strcoll(a.casefold(), b.casefold()) or locale.strcoll(a, b)

    try:
        diff = float(a) - float(b)
    except (TypeError, ValueError):
        return 0

    if math.isnan(diff):
        return 0

    return (diff > 0) - (diff < 0)


# --- Public API ----------------------------------------------------------------
def filter_records(
        records: Iterable[Record],
        *,
        search: str = "",
        search_fields: Sequence[str] = (),
        field_filters: Optional[Mapping[str, str]] = None,
        exact_filters: Optional[Mapping[str, str]] = None,
        date_field: Optional[str] = None,
        start: DateLike = None,
        end: DateLike = None,
) -> List[Record]:
    """
    Keep a record iff every non-empty predicate matches.

    Args:
        search: free-text query matched against ANY of `search_fields`.
        field_filters: {field: text}; each must be a substring of its field.
        exact_filters: {field: value}; case-insensitive equality.
        date_field, start, end: inclusive date range, ignored unless both
            bounds are present.

    Returns:
        A new list; input order is preserved.
    """

    out = list(records)

    query = _text(search).strip()
    if query and search_fields:
        out = [r for r in out if any(query in _text(r.get(f)) for f in search_fields)]

    for field, needle in (field_filters or {}).items():
        needle = _text(needle)
        if needle:
            out = [r for r in out if needle in _text(r.get(field))]

    for field, wanted in (exact_filters or {}).items():
        wanted = _text(wanted)
        if wanted:
            out = [r for r in out if _text(r.get(field)) == wanted]

    lo, hi = _parse_date(start), _parse_date(end)
    if date_field and lo is not None and hi is not None:
        out = [r for r in out if _in_range(r.get(date_field), lo, hi)]

    return out

def sort_records(
        records: Iterable[Record],
        column: Optional[str],
        direction: Union[SortDirection, str] = SortDirection.ASC,
) -> List[Record]:
    """Stable sort by `column`; equal keys keep their input order."""

    items = list(records)

    if not column:
        return items

    sign = -1 if SortDirection(direction) is SortDirection.DESC else 1

    return sorted(items, key=cmp_to_key(lambda a, b: sign * _compare(a.get(column), b.get(column))))

def total_pages(count: int, page_size: int) -> int:

    if page_size <= 0:
        raise ValidationError("Page size must be a positive integer.")

    return math.ceil(count / page_size)

def paginate(records: Sequence[Record], page: int, page_size: int) -> List[Record]:

    if page_size <= 0:
        raise ValidationError("Page size must be a positive integer.")
    if page < 1:
        raise ValidationError("Page numbers start at 1.")

    start = (page - 1) * page_size

    return list(records[start:start + page_size])

def run(
        records: Iterable[Record],
        *,
        page: int = 1,
        page_size: int,
        sort_column: Optional[str] = None,
        sort_direction: Union[SortDirection, str] = SortDirection.ASC,
        **filters: Any,
) -> Page:
    """
    Full list-view transform: filter, then sort, then slice one page.

    `filters` are passed through to filter_records.
    """

    if page_size <= 0:
        raise ValidationError("Page size must be a positive integer.")

    filtered = sort_records(filter_records(records, **filters), sort_column, sort_direction)

    return Page(
        rows=paginate(filtered, page, page_size),
        total_count=len(filtered),
        total_pages=total_pages(len(filtered), page_size),
        page=page,
        page_size=page_size,
    )

def page_numbers(total: int, current: int) -> List[Union[int, str]]:
    """
    Page buttons to render: first, last, current +/- 1, with "..." marking a gap.

    >>> page_numbers(10, 5)
    [1, '...', 4, 5, 6, '...', 10]
    """

    pages: List[Union[int, str]] = []

    for i in range(1, total + 1):
        if i == 1 or i == total or current - 1 <= i <= current + 1:
            pages.append(i)
        elif i == current - 2 or i == current + 2:
            pages.append("...")

    return pages
