"""
List pipeline tests.

Verifies:
- Filtering: empty query, any-field search, exact filters, inclusive date range
- Sorting: stable, numeric vs text, direction
- Pagination: page counts, last partial page, invalid sizes
"""

import pytest

from config import SortDirection
from exceptions import ValidationError
from tools import listing


ROWS = [
    {"id": 1, "customerName": "Acme Ltd", "status": "pending", "amount": 30.0, "createdAt": "2024-03-01T09:00:00+00:00"},
    {"id": 2, "customerName": "Northwind", "status": "Completed", "amount": 10.0, "createdAt": "2024-03-15T23:30:00+00:00"},
    {"id": 3, "customerName": "acme corp", "status": "completed", "amount": 10.0, "createdAt": "2024-03-31T18:00:00+00:00"},
    {"id": 4, "customerName": "Globex", "status": "pending", "amount": 25.5, "createdAt": "2024-04-02T08:00:00+00:00"},
]


def ids(rows):
    return [r["id"] for r in rows]


# =============================================================================
# FILTER
# =============================================================================


class TestFilter:

    def test_empty_query_keeps_everything_in_order(self):
        assert ids(listing.filter_records(ROWS, search="", search_fields=("customerName",))) == [1, 2, 3, 4]

    def test_search_is_case_insensitive_substring(self):
        out = listing.filter_records(ROWS, search="ACME", search_fields=("customerName",))
        assert ids(out) == [1, 3]

    def test_search_matches_any_field(self):
        out = listing.filter_records(ROWS, search="complete", search_fields=("customerName", "status"))
        assert ids(out) == [2, 3]

    def test_exact_filter(self):
        out = listing.filter_records(ROWS, exact_filters={"status": "completed"})
        assert ids(out) == [2, 3]
        assert ids(listing.filter_records(ROWS, exact_filters={"status": "complete"})) == []

    def test_date_range_is_inclusive_of_end_day(self):
        out = listing.filter_records(ROWS, date_field="createdAt", start="2024-03-01", end="2024-03-31")
        assert ids(out) == [1, 2, 3]

    @pytest.mark.parametrize("start,end", [("2024-03-10", None), (None, "2024-03-10"), ("", "")])
    def test_date_range_needs_both_bounds(self, start, end):
        out = listing.filter_records(ROWS, date_field="createdAt", start=start, end=end)
        assert ids(out) == [1, 2, 3, 4]

    def test_records_without_date_are_excluded_from_a_range(self):
        rows = ROWS + [{"id": 5, "customerName": "No Date"}]
        out = listing.filter_records(rows, date_field="createdAt", start="2024-01-01", end="2024-12-31")
        assert 5 not in ids(out)


# =============================================================================
# SORT
# =============================================================================


class TestSort:

    def test_no_column_keeps_order(self):
        assert ids(listing.sort_records(ROWS, None)) == [1, 2, 3, 4]

    def test_numeric_ascending_is_stable(self):
        assert ids(listing.sort_records(ROWS, "amount")) == [2, 3, 4, 1]

    def test_numeric_descending_is_stable(self):
        assert ids(listing.sort_records(ROWS, "amount", SortDirection.DESC)) == [1, 4, 2, 3]

    def test_text_ignores_case(self):
        out = listing.sort_records(ROWS, "customerName", "asc")
        assert ids(out) == [3, 1, 4, 2]

    def test_does_not_mutate_input(self):
        rows = list(ROWS)
        listing.sort_records(rows, "amount", "desc")
        assert ids(rows) == [1, 2, 3, 4]

    def test_missing_values_rank_lowest(self):
        rows = [{"id": 1, "n": "b"}, {"id": 2}, {"id": 3, "n": "a"}, {"id": 4, "n": "c"}, {"id": 5, "n": ""}]
        assert ids(listing.sort_records(rows, "n", "asc")) == [2, 5, 3, 1, 4]
        assert ids(listing.sort_records(rows, "n", "desc")) == [4, 1, 3, 2, 5]

    def test_missing_numbers_rank_lowest(self):
        rows = [{"id": 1, "price": 5}, {"id": 2, "price": None}, {"id": 3, "price": 1}]
        assert ids(listing.sort_records(rows, "price")) == [2, 3, 1]

    def test_equal_text_keys_keep_input_order(self):
        rows = [
            {"id": 1, "status": "pending"},
            {"id": 2, "status": "completed"},
            {"id": 3, "status": "pending"},
            {"id": 4, "status": "completed"},
        ]
        assert ids(listing.sort_records(rows, "status")) == [2, 4, 1, 3]
        assert ids(listing.sort_records(rows, "status", "desc")) == [1, 3, 2, 4]


# =============================================================================
# PAGINATE
# =============================================================================


class TestPaginate:

    def test_twelve_rows_in_pages_of_five(self):
        rows = [{"id": i} for i in range(12)]
        page = listing.run(rows, page=3, page_size=5)
        assert page.total_pages == 3
        assert page.total_count == 12
        assert ids(page.rows) == [10, 11]

    def test_empty_result_has_zero_pages(self):
        page = listing.run([], page=1, page_size=10)
        assert page.total_pages == 0
        assert page.rows == []

    def test_run_filters_then_sorts_then_slices(self):
        page = listing.run(
            ROWS,
            page=1,
            page_size=1,
            sort_column="amount",
            sort_direction="desc",
            exact_filters={"status": "completed"},
        )
        assert page.total_count == 2
        assert ids(page.rows) == [2]

    @pytest.mark.parametrize("size", [0, -5])
    def test_invalid_page_size(self, size):
        with pytest.raises(ValidationError):
            listing.run(ROWS, page=1, page_size=size)
        with pytest.raises(ValidationError):
            listing.total_pages(4, size)

    def test_page_numbers_start_at_one(self):
        with pytest.raises(ValidationError):
            listing.paginate(ROWS, 0, 2)

    def test_page_numbers_with_gaps(self):
        assert listing.page_numbers(10, 5) == [1, "...", 4, 5, 6, "...", 10]
        assert listing.page_numbers(3, 1) == [1, 2, 3]
        assert listing.page_numbers(0, 1) == []
