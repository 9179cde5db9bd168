"""Cursor-driven retrieval of account movements."""
from connector.pagination.cursor import PageCursor
from connector.pagination.paginator import MovementPaginator, PaginationLimitExceeded

__all__ = ["MovementPaginator", "PageCursor", "PaginationLimitExceeded"]
