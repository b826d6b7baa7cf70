# =============================================================================
# core/models/pagination.py - Pagination Cursor
# =============================================================================
# A cursor describes where a paginated listing (the feed, or one comment
# thread) currently stands. The API reports `total` and `pageSize` on every
# page; everything else is derived.
# =============================================================================

import math

from pydantic import BaseModel, ConfigDict, Field


class PaginationCursor(BaseModel):
    """
    Position within a paginated listing.

    Example:
        cursor = PaginationCursor(page=2, page_size=3, total=7)
        cursor.page_count  # 3
        cursor.has_more    # True
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(..., ge=1, description="1-based page number")
    page_size: int = Field(..., ge=0, description="Items per page")
    total: int = Field(..., ge=0, description="Total number of items")

    @property
    def page_count(self) -> int:
        """Number of pages in the listing (0 when page_size is 0)."""
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)

    @property
    def has_more(self) -> bool:
        """Whether a page after `page` exists."""
        return self.page < self.page_count

    @property
    def remaining_pages(self) -> range:
        """Page numbers after the current one, in fetch order."""
        return range(self.page + 1, self.page_count + 1)
