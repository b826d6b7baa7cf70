# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - meme.py: Author, feed item, comment and page envelope schemas
# - pagination.py: PaginationCursor (page / pageSize / total arithmetic)
#
# These models define the "contract" between the API and the client.
# =============================================================================

from .meme import (
    TEMP_ID_PREFIX,
    Author,
    Comment,
    CommentPage,
    CommentRecord,
    FeedItem,
    LoginResponse,
    MemePage,
    MemeRecord,
    MemeText,
)
from .pagination import PaginationCursor

__all__ = [
    "TEMP_ID_PREFIX",
    "Author",
    "Comment",
    "CommentPage",
    "CommentRecord",
    "FeedItem",
    "LoginResponse",
    "MemePage",
    "MemeRecord",
    "MemeText",
    "PaginationCursor",
]
