"""
Pagination bar — the page numbers shown under an article list.

The bar is a fixed-width window that slides so the current page sits in
the middle whenever possible.  Pages are 0-based, matching the ``page``
query parameter of the list endpoints.
"""
from board.config import settings

DEFAULT_BAR_LENGTH = 5


class PaginationService:
    """Compute the page numbers of a sliding pagination bar."""

    def __init__(self, bar_length: int = DEFAULT_BAR_LENGTH) -> None:
        if bar_length <= 0:
            raise ValueError(f"bar_length must be positive, got {bar_length}")
        self._bar_length = bar_length

    def window(self, current_page: int, total_pages: int) -> list[int]:
        """
        Return the page numbers to render for *current_page*.

        The window starts ``bar_length // 2`` pages before the current
        page, never before page 0, and never runs past the last page.
        Out-of-range input yields a truncated or empty window::

            >>> PaginationService(5).window(6, 13)
            [4, 5, 6, 7, 8]
            >>> PaginationService(5).window(12, 13)
            [10, 11, 12]
        """
        start = max(current_page - self._bar_length // 2, 0)
        end = min(start + self._bar_length, total_pages)
        return list(range(start, end))

    def current_bar_length(self) -> int:
        return self._bar_length


pagination = PaginationService(settings.PAGINATION_BAR_LENGTH)
