# =============================================================================
# core/services/comment_service.py - Comment Threads
# =============================================================================
# Two collaborators that share FeedState:
#
# CommentThreadLoader
#   First expansion of a thread loads *every* comment page, sequentially,
#   resolves all authors, then installs the whole thread at once.
#
# OptimisticCommentWriter
#   A submitted comment shows up at the head of the thread immediately with
#   a temporary id ("temp-<n>"); the create request runs in the background.
#   By default nothing is reconciled afterwards. With reconciliation enabled
#   the temporary entry is swapped for the server copy, or dropped if the
#   request fails.
# =============================================================================

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable

from app.auth.session import SessionStore
from app.config import settings
from app.exceptions import NotFoundError, ValidationFailureError
from core.models import TEMP_ID_PREFIX, Author, Comment, CommentRecord
from core.services.feed_state import FeedState
from lib.api_client import MemeApiClient
from lib.author_cache import AuthorCache

logger = logging.getLogger(__name__)


# =============================================================================
# Thread Loader
# =============================================================================

class CommentThreadLoader:
    """
    Loads complete comment threads on first expansion.

    Example:
        loader = CommentThreadLoader(api, authors, state)
        await loader.load_thread("meme-1")
        state.get("meme-1").comments  # every comment, oldest page first
    """

    def __init__(self, api: MemeApiClient, authors: AuthorCache, state: FeedState):
        self.api = api
        self.authors = authors
        self.state = state

    async def load_thread(self, item_id: str) -> bool:
        """
        Fetch all comment pages for an item and attach them.

        Skipped when the thread is already loaded or currently loading.

        Returns:
            True if the thread was fetched, False if skipped

        Raises:
            NotFoundError: If the item isn't in the feed
            Any API or author-resolution error (loading flag still cleared)
        """
        item = self.state.get(item_id)
        if item is None:
            raise NotFoundError(f"feed item {item_id}")
        if item.comments_loaded or self.state.is_loading_comments(item_id):
            return False

        self.state.set_loading_comments(item_id, True)
        try:
            records = await self._fetch_all_pages(item_id)
            authors = await asyncio.gather(
                *(self.authors.resolve(record.author_id) for record in records)
            )
            comments = [
                Comment.from_record(record.model_copy(update={"meme_id": item_id}), author)
                for record, author in zip(records, authors)
            ]
            # Comments submitted while the thread was loading stay on top
            current = self.state.get(item_id)
            optimistic = [c for c in (current.comments or ()) if c.is_temporary] if current else []
            self.state.set_comments(item_id, optimistic + comments)
            logger.info(f"Loaded {len(comments)} comments for meme {item_id}")
            return True
        finally:
            self.state.set_loading_comments(item_id, False)

    async def _fetch_all_pages(self, item_id: str) -> list[CommentRecord]:
        first = await self.api.get_meme_comments(item_id, 1)
        records = list(first.results)

        # One request at a time, in page order
        for page in first.cursor(1).remaining_pages:
            next_page = await self.api.get_meme_comments(item_id, page)
            records.extend(next_page.results)

        return records


# =============================================================================
# Optimistic Writer
# =============================================================================

class OptimisticCommentWriter:
    """
    Inserts comments locally before the server confirms them.

    Example:
        writer = OptimisticCommentWriter(api, authors, state, session)
        comment = writer.submit("meme-1", "nice")   # visible immediately
        await writer.drain()                          # wait for the POST
    """

    def __init__(
        self,
        api: MemeApiClient,
        authors: AuthorCache,
        state: FeedState,
        session: SessionStore,
        reconcile: bool | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.api = api
        self.authors = authors
        self.state = state
        self.session = session
        self.reconcile = settings.COMMENT_RECONCILIATION if reconcile is None else reconcile
        self._clock = clock
        self._last_temp_number = 0
        self._tasks: set[asyncio.Task] = set()

    def _next_temp_id(self) -> str:
        # Millisecond timestamp, bumped so two quick submits never collide
        number = max(int(self._clock() * 1000), self._last_temp_number + 1)
        self._last_temp_number = number
        return f"{TEMP_ID_PREFIX}{number}"

    def _current_author(self) -> Author:
        subject_id = self.session.subject_id
        if subject_id:
            author = self.authors.peek(subject_id)
            if author is not None:
                return author
        return Author.placeholder()

    def submit(self, item_id: str, content: str) -> Comment:
        """
        Show a comment right away and send it in the background.

        Must be called from within the running event loop.

        Returns:
            The temporary comment that was inserted

        Raises:
            ValidationFailureError: If content is empty
            NotFoundError: If the item isn't in the feed
        """
        if not content or not content.strip():
            raise ValidationFailureError("comment", "content is empty")
        if self.state.get(item_id) is None:
            raise NotFoundError(f"feed item {item_id}")

        comment = Comment(
            id=self._next_temp_id(),
            meme_id=item_id,
            content=content,
            created_at=datetime.now(timezone.utc),
            author=self._current_author(),
        )
        self.state.prepend_comment(item_id, comment)
        self.state.set_draft(item_id, "")

        task = asyncio.get_running_loop().create_task(self._send(comment))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Optimistic comment {comment.id} added to meme {item_id}")
        return comment

    async def _send(self, comment: Comment) -> None:
        try:
            record = await self.api.create_meme_comment(comment.meme_id, comment.content)
        except Exception as e:
            logger.warning(f"Creating comment {comment.id} on meme {comment.meme_id} failed: {e}")
            if self.reconcile:
                self.state.replace_comment(comment.meme_id, comment.id, None)
            return

        logger.debug(f"Comment {comment.id} confirmed as {record.id}")
        if self.reconcile:
            confirmed = Comment.from_record(record, comment.author)
            self.state.replace_comment(comment.meme_id, comment.id, confirmed)

    @property
    def pending_writes(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every background create request to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
