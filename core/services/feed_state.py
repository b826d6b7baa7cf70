# =============================================================================
# core/services/feed_state.py - In-Memory Feed State
# =============================================================================
# The one place the accumulated feed lives. Paginator, thread loader and
# comment writer all write through this object; views only read.
#
# Every update replaces a whole collection (tuple / frozenset / dict) rather
# than mutating one in place, so a reader holding `state.items` always sees
# a consistent snapshot.
# =============================================================================

import logging
from typing import Callable, Iterable

from core.models import Comment, FeedItem

logger = logging.getLogger(__name__)

ChangeListener = Callable[["FeedState"], None]


class FeedState:
    """
    Owned, single-writer store for feed items and per-item UI state.

    Attributes (read-only snapshots):
        items: Feed items in page-fetch order, unique by id
        loading_comments: Ids of items whose thread is being loaded
        comment_drafts: Unsent comment input per item id
    """

    def __init__(self):
        self.items: tuple[FeedItem, ...] = ()
        self.loading_comments: frozenset[str] = frozenset()
        self.comment_drafts: dict[str, str] = {}
        self._listeners: list[ChangeListener] = []

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def get(self, item_id: str) -> FeedItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    @property
    def item_ids(self) -> list[str]:
        return [item.id for item in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def is_loading_comments(self, item_id: str) -> bool:
        return item_id in self.loading_comments

    def draft(self, item_id: str) -> str:
        return self.comment_drafts.get(item_id, "")

    # -------------------------------------------------------------------------
    # Change notification
    # -------------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a callback run after every update; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -------------------------------------------------------------------------
    # Feed items
    # -------------------------------------------------------------------------

    def merge_items(self, new_items: Iterable[FeedItem]) -> list[FeedItem]:
        """
        Append items whose id isn't present yet, keeping their order.

        Returns:
            The items actually appended
        """
        seen = {item.id for item in self.items}
        added: list[FeedItem] = []
        for item in new_items:
            if item.id in seen:
                logger.debug(f"Dropping duplicate feed item {item.id}")
                continue
            seen.add(item.id)
            added.append(item)

        if added:
            self.items = self.items + tuple(added)
            self._changed()
        return added

    def _replace_item(self, item_id: str, update: Callable[[FeedItem], FeedItem]) -> bool:
        replaced = False
        items = []
        for item in self.items:
            if item.id == item_id:
                item = update(item)
                replaced = True
            items.append(item)

        if replaced:
            self.items = tuple(items)
            self._changed()
        return replaced

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    def set_comments(self, item_id: str, comments: Iterable[Comment]) -> bool:
        """Install a fully loaded thread on an item and mark its history fetched."""
        thread = tuple(comments)
        return self._replace_item(
            item_id,
            lambda item: item.model_copy(update={"comments": thread, "thread_loaded": True}),
        )

    def prepend_comment(self, item_id: str, comment: Comment) -> bool:
        """Put a comment at the head of an item's thread."""
        return self._replace_item(
            item_id,
            lambda item: item.model_copy(
                update={"comments": (comment,) + (item.comments or ())}
            ),
        )

    def replace_comment(self, item_id: str, comment_id: str, replacement: Comment | None) -> bool:
        """Swap one comment for another, or drop it when replacement is None."""

        def update(item: FeedItem) -> FeedItem:
            thread = []
            for comment in item.comments or ():
                if comment.id == comment_id:
                    if replacement is None:
                        continue
                    comment = replacement
                thread.append(comment)
            return item.model_copy(update={"comments": tuple(thread)})

        return self._replace_item(item_id, update)

    def set_loading_comments(self, item_id: str, loading: bool) -> None:
        if loading:
            self.loading_comments = self.loading_comments | {item_id}
        else:
            self.loading_comments = self.loading_comments - {item_id}
        self._changed()

    def set_draft(self, item_id: str, text: str) -> None:
        self.comment_drafts = {**self.comment_drafts, item_id: text}
        self._changed()

    def clear(self) -> None:
        """Drop everything (used on sign-out)."""
        self.items = ()
        self.loading_comments = frozenset()
        self.comment_drafts = {}
        self._changed()
