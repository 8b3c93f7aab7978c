"""
Pagination bar tests — the sliding window of page numbers rendered under
article lists.  Pure computation, no database.
"""
import pytest

from board.services.pagination_service import PaginationService


@pytest.mark.parametrize(
    "current_page, total_pages, expected",
    [
        (0, 13, [0, 1, 2, 3, 4]),
        (1, 13, [0, 1, 2, 3, 4]),
        (2, 13, [0, 1, 2, 3, 4]),
        (3, 13, [1, 2, 3, 4, 5]),
        (6, 13, [4, 5, 6, 7, 8]),
        (10, 13, [8, 9, 10, 11, 12]),
        (11, 13, [9, 10, 11, 12]),
        (12, 13, [10, 11, 12]),
        (0, 0, []),
        (0, 1, [0]),
        (0, 3, [0, 1, 2]),
    ],
)
def test_window(current_page, total_pages, expected):
    assert PaginationService(5).window(current_page, total_pages) == expected


def test_window_defaults_to_five_pages():
    assert PaginationService().window(0, 100) == [0, 1, 2, 3, 4]


def test_current_bar_length():
    assert PaginationService().current_bar_length() == 5
    assert PaginationService(7).current_bar_length() == 7


def test_window_with_even_bar_length():
    # 4 // 2 == 2 pages before the current one.
    assert PaginationService(4).window(5, 20) == [3, 4, 5, 6]


def test_window_current_page_past_the_end():
    assert PaginationService(5).window(20, 13) == []
    assert PaginationService(5).window(14, 13) == [12]


def test_window_negative_total_pages():
    assert PaginationService(5).window(0, -3) == []


def test_window_single_page_bar():
    assert PaginationService(1).window(6, 13) == [6]


@pytest.mark.parametrize("bar_length", [0, -1])
def test_non_positive_bar_length_is_rejected(bar_length):
    with pytest.raises(ValueError):
        PaginationService(bar_length)
