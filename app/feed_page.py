# =============================================================================
# app/feed_page.py - Feed Page Controller
# =============================================================================
# Holds the view state of the feed screen and wires user actions to the
# sync core:
#   mount()                  -> load page 1 + current user, start observing
#   toggle_comments(id)      -> open/close a thread, loading it the first time
#   set_comment_draft(id, s) -> per-item comment input
#   submit_comment(id)       -> optimistic insert of the current draft
#   unmount()                -> stop observing
#
# Rendering is someone else's job: a view reads `state`, `opened_item_id`,
# `is_loading` and displayed_comment_count() and feeds visibility changes
# into the VisibilityObserver it was given.
# =============================================================================

import asyncio
import logging
from typing import Callable

from app.auth.session import SessionStore
from app.exceptions import MemeFeedException, NotFoundError, user_message_for
from core.models import Author, Comment
from core.services import (
    CommentThreadLoader,
    FeedPaginator,
    FeedState,
    OptimisticCommentWriter,
    ScrollTrigger,
    VisibilityObserver,
)
from lib.api_client import MemeApiClient
from lib.author_cache import AuthorCache

logger = logging.getLogger(__name__)


class FeedPage:
    """
    Controller for the infinitely scrolling meme feed.

    Example:
        page = FeedPage(api, AuthorCache(api.get_user_by_id), session, observer)
        await page.mount()
        await page.toggle_comments("meme-1")
        page.set_comment_draft("meme-1", "so true")
        page.submit_comment("meme-1")
    """

    def __init__(
        self,
        api: MemeApiClient,
        authors: AuthorCache,
        session: SessionStore,
        observer: VisibilityObserver,
        on_error: Callable[[str], None] | None = None,
        reconcile_comments: bool | None = None,
    ):
        self.session = session
        self.authors = authors
        self.state = FeedState()
        self.paginator = FeedPaginator(api, authors, self.state)
        self.threads = CommentThreadLoader(api, authors, self.state)
        self.writer = OptimisticCommentWriter(
            api, authors, self.state, session, reconcile=reconcile_comments
        )
        self.trigger = ScrollTrigger(
            self.paginator, self.state, observer, on_error=self._report_error
        )
        self.on_error = on_error
        self.opened_item_id: str | None = None
        self.current_user: Author | None = None
        self.mounted = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self.paginator.is_loading

    @property
    def has_more(self) -> bool:
        return self.paginator.has_more

    async def mount(self) -> None:
        """
        First display of the feed: load page 1 and the signed-in user.

        Errors are propagated after being reported through on_error.
        """
        self.mounted = True
        try:
            await asyncio.gather(self.paginator.load_page(1), self._load_current_user())
        except Exception as e:
            self._report_error(e)
            raise
        finally:
            if self.mounted:
                self.trigger.refresh()

    async def _load_current_user(self) -> None:
        # The profile only decorates optimistic comments; the feed works without it
        subject_id = self.session.subject_id
        if not subject_id:
            return
        try:
            self.current_user = await self.authors.resolve(subject_id)
        except MemeFeedException as e:
            logger.warning(f"Could not load current user profile: {e}")

    def unmount(self) -> None:
        """Stop observing sentinels; in-flight fetches finish on their own."""
        self.mounted = False
        self.trigger.dispose()

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    async def toggle_comments(self, item_id: str) -> None:
        """
        Open or close a thread. Only one thread is open at a time.

        Opening a thread that was never loaded fetches it; later toggles
        are view-state only.
        """
        item = self.state.get(item_id)
        if item is None:
            raise NotFoundError(f"feed item {item_id}")

        if self.opened_item_id == item_id:
            self.opened_item_id = None
            return

        self.opened_item_id = item_id
        if not item.comments_loaded:
            try:
                await self.threads.load_thread(item_id)
            except Exception as e:
                self._report_error(e)
                raise

    def set_comment_draft(self, item_id: str, text: str) -> None:
        self.state.set_draft(item_id, text)

    def comment_draft(self, item_id: str) -> str:
        return self.state.draft(item_id)

    def submit_comment(self, item_id: str) -> Comment | None:
        """
        Submit the current draft for an item.

        An empty draft is ignored, like submitting an empty form.
        """
        content = self.state.draft(item_id)
        if not content:
            return None
        return self.writer.submit(item_id, content)

    def displayed_comment_count(self, item_id: str) -> int:
        item = self.state.get(item_id)
        if item is None:
            raise NotFoundError(f"feed item {item_id}")
        return item.displayed_comment_count

    def comments_for(self, item_id: str) -> tuple[Comment, ...]:
        item = self.state.get(item_id)
        if item is None:
            raise NotFoundError(f"feed item {item_id}")
        return item.comments or ()

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def _report_error(self, error: BaseException) -> None:
        message = user_message_for(error)
        logger.warning(f"Feed error shown to user: {message} ({error})")
        if self.on_error is not None:
            self.on_error(message)
