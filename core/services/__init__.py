# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .comment_service import CommentThreadLoader, OptimisticCommentWriter
from .feed_service import FeedPaginator
from .feed_state import FeedState
from .meme_service import MemeService
from .scroll_trigger import ManualVisibilityObserver, ScrollTrigger, VisibilityObserver

__all__ = [
    "CommentThreadLoader",
    "OptimisticCommentWriter",
    "FeedPaginator",
    "FeedState",
    "MemeService",
    "ManualVisibilityObserver",
    "ScrollTrigger",
    "VisibilityObserver",
]
