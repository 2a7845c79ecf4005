"""Utility modules."""

from app.utils.pagination import (
    PaginationParams,
    get_pagination,
    paginate_query,
)

__all__ = [
    # Pagination
    "PaginationParams",
    "get_pagination",
    "paginate_query",
]
