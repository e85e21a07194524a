"""Unit tests for page range parsing and page modes."""

import pytest

from core.exceptions import InvalidInputError
from modules.page_selection import (
    format_page_list,
    parse_page_list,
    parse_page_selection,
    select_pages,
)


class TestParsePageSelection:
    """Custom range parsing against a known page count."""

    def test_mixed_tokens(self):
        """Test singles and ranges combine into one set."""
        selection = parse_page_selection("1-3, 5", 10)
        assert selection.sorted() == [1, 2, 3, 5]
        assert selection.canonical == "1-3, 5"

    def test_reversed_range_is_swapped(self):
        """Test 9-7 means 7-9."""
        selection = parse_page_selection("9-7", 10)
        assert selection.sorted() == [7, 8, 9]
        assert selection.canonical == "7-9"

    def test_endpoints_are_clamped(self):
        """Test out-of-range endpoints are pulled into [1, total]."""
        selection = parse_page_selection("0-20", 5)
        assert selection.sorted() == [1, 2, 3, 4, 5]
        assert selection.canonical == "1-5"

        assert parse_page_selection("99", 4).sorted() == [4]

    def test_invalid_tokens_are_dropped(self):
        """Test garbage tokens vanish from pages and canonical text."""
        selection = parse_page_selection("abc, 2, 3-, -1, 4-5x", 10)
        assert selection.sorted() == [2]
        assert selection.canonical == "2"

    def test_canonical_keeps_input_order(self):
        selection = parse_page_selection("5, 1-2, 5", 10)
        assert selection.canonical == "5, 1-2, 5"
        assert selection.as_page_list() == "1,2,5"

    def test_empty_input(self):
        """Test empty input selects nothing."""
        assert parse_page_selection("", 3).is_empty
        assert parse_page_selection(None, 3).is_empty
        assert parse_page_selection(" , ,", 3).is_empty

    def test_total_must_be_positive(self):
        """Test a zero-page document is rejected."""
        with pytest.raises(InvalidInputError):
            parse_page_selection("1", 0)


class TestSelectPages:
    """Page modes."""

    def test_all(self):
        assert select_pages("all", 4).sorted() == [1, 2, 3, 4]

    def test_odd_and_even(self):
        assert select_pages("odd", 5).sorted() == [1, 3, 5]
        assert select_pages("even", 5).sorted() == [2, 4]

    def test_even_on_single_page_document(self):
        """Test even mode on a one-page document selects nothing."""
        assert select_pages("even", 1).is_empty

    def test_custom_uses_parser(self):
        assert select_pages("custom", 6, "2-3").sorted() == [2, 3]

    def test_unknown_mode_selects_nothing(self):
        assert select_pages("duplex", 6).is_empty


class TestPageListWireFormat:
    """Comma-joined page lists sent to the cost endpoint."""

    def test_format_sorts_and_dedupes(self):
        assert format_page_list([3, 1, 3, 2]) == "1,2,3"

    def test_parse_is_lenient(self):
        """Test non-numeric entries are ignored and nothing is clamped."""
        assert parse_page_list("1, x, 3,,40") == frozenset({1, 3, 40})

    def test_parse_empty(self):
        assert parse_page_list("") == frozenset()
        assert parse_page_list(None) == frozenset()
