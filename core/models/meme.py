# =============================================================================
# core/models/meme.py - Feed, Comment and Author Schemas
# =============================================================================
# These models define the data the client works with:
# - Author: a user profile, shared by reference wherever it is referenced
# - MemeRecord / CommentRecord: rows exactly as the API returns them
# - FeedItem / Comment: records with their author resolved
# - MemePage / CommentPage: paginated API envelopes
#
# Wire payloads are camelCase; attributes are snake_case. Both names are
# accepted when constructing a model.
# =============================================================================

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .pagination import PaginationCursor

# Prefix for comments shown before the server has confirmed them
TEMP_ID_PREFIX = "temp-"


class ApiModel(BaseModel):
    """Base for every model that crosses the API boundary."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# Authors
# =============================================================================

class Author(ApiModel):
    """
    Public profile of a user (GET /users/{id}).

    Example:
        {"id": "u1", "username": "alice", "pictureUrl": "https://..."}
    """
    id: str
    username: str = ""
    picture_url: str = ""

    @classmethod
    def placeholder(cls) -> "Author":
        """Empty author used when the current user's profile isn't loaded yet."""
        return cls(id="", username="", picture_url="")


# =============================================================================
# Memes
# =============================================================================

class MemeText(ApiModel):
    """A caption positioned on top of the picture."""
    content: str
    x: float
    y: float


class MemeRecord(ApiModel):
    """A meme as returned by GET /memes and POST /memes."""
    id: str
    author_id: str
    picture_url: str
    description: str = ""
    # The API has been seen sending this as a string; pydantic coerces it
    comments_count: int = 0
    texts: tuple[MemeText, ...] = ()
    created_at: datetime


class FeedItem(MemeRecord):
    """
    A meme in the accumulated feed, with its author resolved.

    `comments` holds whatever the client knows of the thread: optimistic
    entries submitted before the history was fetched, then the full thread.
    `thread_loaded` turns True only once the history has been fetched; from
    then on the thread is the authoritative source for the comment count.
    """
    author: Author
    comments: tuple["Comment", ...] | None = None
    thread_loaded: bool = False

    @classmethod
    def from_record(cls, record: MemeRecord, author: Author) -> "FeedItem":
        """Attach a resolved author to a raw meme record."""
        return cls(**dict(record), author=author)

    @property
    def comments_loaded(self) -> bool:
        return self.thread_loaded

    @property
    def displayed_comment_count(self) -> int:
        """Loaded thread length, else the server count plus local additions."""
        if self.thread_loaded:
            return len(self.comments or ())
        return self.comments_count + len(self.comments or ())


# =============================================================================
# Comments
# =============================================================================

class CommentRecord(ApiModel):
    """A comment as returned by GET/POST /memes/{id}/comments."""
    id: str
    author_id: str
    meme_id: str
    content: str
    created_at: datetime


class Comment(ApiModel):
    """A comment in a thread, with its author resolved."""
    id: str
    meme_id: str
    content: str
    created_at: datetime
    author: Author

    @classmethod
    def from_record(cls, record: CommentRecord, author: Author) -> "Comment":
        return cls(
            id=record.id,
            meme_id=record.meme_id,
            content=record.content,
            created_at=record.created_at,
            author=author,
        )

    @property
    def is_temporary(self) -> bool:
        """True for optimistic entries the server hasn't confirmed."""
        return self.id.startswith(TEMP_ID_PREFIX)


FeedItem.model_rebuild()


# =============================================================================
# Paginated Envelopes
# =============================================================================

class PageEnvelope(ApiModel):
    """Common `{total, pageSize}` part of every paginated response."""
    total: int = Field(..., ge=0)
    page_size: int = Field(..., ge=0)

    def cursor(self, page: int) -> PaginationCursor:
        """Cursor describing this envelope as page `page`."""
        return PaginationCursor(page=page, page_size=self.page_size, total=self.total)


class MemePage(PageEnvelope):
    """Response of GET /memes?page=N."""
    results: tuple[MemeRecord, ...] = ()


class CommentPage(PageEnvelope):
    """Response of GET /memes/{id}/comments?page=N."""
    results: tuple[CommentRecord, ...] = ()


class LoginResponse(ApiModel):
    """Response of POST /authentication/login."""
    jwt: str
