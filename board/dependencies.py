from enum import Enum

from fastapi import Query

from board.config import settings


class SearchType(str, Enum):
    TITLE = "title"
    CONTENT = "content"
    USERNAME = "username"
    NICKNAME = "nickname"
    HASHTAG = "hashtag"


class PaginationParams:
    """
    Pagination and sorting query parameters for article lists.

    Attributes
    ----------
    page:
        0-based page number; the pagination bar uses the same numbering.
    page_size:
        Items per page, clamped to ``settings.MAX_PAGE_SIZE``.
    sort_by:
        Column name; the service falls back to ``created_at`` for anything
        it does not recognise.
    sort_order:
        ``"asc"`` or ``"desc"``.
    """

    def __init__(
        self,
        page: int = Query(0, ge=0, description="Page number (0-based)."),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            description="Number of items returned per page (max 100).",
        ),
        sort_by: str = Query("created_at", description="Column name to sort results by."),
        sort_order: str = Query(
            "desc",
            pattern="^(asc|desc)$",
            description="Sort direction: 'asc' or 'desc'.",
        ),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)
        self.sort_by = sort_by
        self.sort_order = sort_order

    @property
    def offset(self) -> int:
        return self.page * self.page_size


class SearchParams:
    """Optional article search filter; both parts must be given to apply."""

    def __init__(
        self,
        search_type: SearchType | None = Query(None, description="Field to search in."),
        search_value: str | None = Query(None, max_length=100, description="Text to look for."),
    ) -> None:
        self.search_type = search_type
        self.search_value = search_value.strip() if search_value else None

    @property
    def active(self) -> bool:
        return self.search_type is not None and bool(self.search_value)
