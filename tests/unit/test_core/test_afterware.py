"""Unit tests for page result shaping."""
from __future__ import annotations

import pytest

from relay_pager.core.pagination.afterware import to_afterware
from relay_pager.core.pagination.schemas import PageResult


def cursor_of(record: dict) -> str:
    return f"c:{record['_id']}"


def rows(*ids: int) -> list[dict]:
    return [{"_id": i} for i in ids]


def probe(found: bool) -> PageResult:
    return PageResult(data=rows(99) if found else [])


class TestForwardPages:
    """Pages requested with first (or neither)."""

    def test_sentinel_trimmed(self):
        """A full over-fetch drops the extra row and reports a next page."""
        page = to_afterware(None, 4, cursor_of)(rows(1, 2, 3, 4))

        assert [r["_id"] for r in page.data] == [1, 2, 3]
        assert page.has_next_page is True
        assert page.has_previous_page is False

    def test_short_page(self):
        page = to_afterware(None, 4, cursor_of)(rows(1, 2))

        assert len(page.data) == 2
        assert page.has_next_page is False

    def test_cursors_from_first_and_last(self):
        page = to_afterware(None, 4, cursor_of)(rows(1, 2, 3, 4))

        assert page.start_cursor == "c:1"
        assert page.end_cursor == "c:3"

    def test_prev_probe_sets_has_previous(self):
        page = to_afterware(None, 4, cursor_of)(rows(5, 6), probe(True), None)

        assert page.has_previous_page is True
        assert page.has_next_page is False

    def test_empty_prev_probe(self):
        page = to_afterware(None, 4, cursor_of)(rows(5, 6), probe(False), None)

        assert page.has_previous_page is False

    def test_next_probe_without_sentinel(self):
        """A before bound with rows past it reports a next page."""
        page = to_afterware(None, 4, cursor_of)(rows(1, 2), None, probe(True))

        assert page.has_next_page is True


class TestBackwardPages:
    """Pages requested with last are fetched tail first."""

    def test_reversed_and_trimmed(self):
        page = to_afterware(3, 4, cursor_of)(rows(9, 8, 7, 6))

        assert [r["_id"] for r in page.data] == [7, 8, 9]
        assert page.has_previous_page is True
        assert page.has_next_page is False
        assert page.start_cursor == "c:7"
        assert page.end_cursor == "c:9"

    def test_short_backward_page(self):
        page = to_afterware(3, 4, cursor_of)(rows(2, 1))

        assert [r["_id"] for r in page.data] == [1, 2]
        assert page.has_previous_page is False

    def test_next_probe(self):
        page = to_afterware(3, 4, cursor_of)(rows(9, 8), None, probe(True))

        assert page.has_next_page is True

    def test_last_zero_is_backward(self):
        """last=0 still counts as a backward request."""
        page = to_afterware(0, 1, cursor_of)(rows(5))

        assert page.data == []
        assert page.has_previous_page is True
        assert page.has_next_page is False


class TestEdgeCases:
    """Empty pages and disabled trimming."""

    def test_empty(self):
        page = to_afterware(None, 4, cursor_of)([])

        assert page.data == []
        assert page.start_cursor is None
        assert page.end_cursor is None
        assert page.has_previous_page is False
        assert page.has_next_page is False

    def test_no_limit_keeps_everything(self):
        page = to_afterware(None, None, cursor_of)(rows(1, 2, 3))

        assert len(page.data) == 3
        assert page.has_next_page is False

    @pytest.mark.parametrize("backward", [None, 2])
    def test_input_not_mutated(self, backward):
        fetched = rows(1, 2, 3)

        to_afterware(backward, 3, cursor_of)(fetched)

        assert fetched == rows(1, 2, 3)
