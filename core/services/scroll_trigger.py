# =============================================================================
# core/services/scroll_trigger.py - Infinite Scroll Trigger
# =============================================================================
# Watches the last and second-to-last feed items ("sentinels") and asks the
# paginator for the next page when either becomes visible.
#
# Visibility detection is abstracted behind VisibilityObserver so any
# rendering layer (or a test) can drive it:
#
#   observer.observe(sentinel_ids, threshold, callback) -> Subscription
#
# The callback receives (sentinel_id, is_visible) every time a sentinel's
# visible fraction crosses the threshold.
# =============================================================================

import asyncio
import logging
from typing import Callable, Iterable, Protocol

from app.config import settings
from core.services.feed_service import FeedPaginator
from core.services.feed_state import FeedState

logger = logging.getLogger(__name__)

VisibilityCallback = Callable[[str, bool], None]


class Subscription(Protocol):
    """Handle for an active observation."""

    def cancel(self) -> None: ...


class VisibilityObserver(Protocol):
    """Something that can report when rendered items scroll into view."""

    def observe(
        self,
        sentinel_ids: Iterable[str],
        threshold: float,
        callback: VisibilityCallback,
    ) -> Subscription: ...


# =============================================================================
# Headless observer
# =============================================================================

class _ManualSubscription:
    def __init__(self, owner: "ManualVisibilityObserver", sentinel_ids: frozenset[str],
                 threshold: float, callback: VisibilityCallback):
        self._owner = owner
        self.sentinel_ids = sentinel_ids
        self.threshold = threshold
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        self.active = False
        self._owner._subscriptions.discard(self)


class ManualVisibilityObserver:
    """
    VisibilityObserver driven by explicit set_visible() calls.

    Used by headless front-ends and tests; it remembers each item's visible
    fraction and fires callbacks only when the threshold is crossed.
    """

    def __init__(self):
        self._subscriptions: set[_ManualSubscription] = set()
        self._fractions: dict[str, float] = {}

    @property
    def active_subscriptions(self) -> int:
        return len(self._subscriptions)

    def observe(self, sentinel_ids, threshold, callback) -> _ManualSubscription:
        subscription = _ManualSubscription(self, frozenset(sentinel_ids), threshold, callback)
        self._subscriptions.add(subscription)
        # Like IntersectionObserver, report sentinels already on screen
        for sentinel_id in subscription.sentinel_ids:
            if self._fractions.get(sentinel_id, 0.0) >= threshold:
                callback(sentinel_id, True)
        return subscription

    def set_visible(self, item_id: str, fraction: float) -> None:
        """Record a new visible fraction (0.0 - 1.0) for a rendered item."""
        previous = self._fractions.get(item_id, 0.0)
        self._fractions[item_id] = fraction
        for subscription in list(self._subscriptions):
            if not subscription.active or item_id not in subscription.sentinel_ids:
                continue
            was_visible = previous >= subscription.threshold
            is_visible = fraction >= subscription.threshold
            if was_visible != is_visible:
                subscription.callback(item_id, is_visible)


# =============================================================================
# Trigger
# =============================================================================

class ScrollTrigger:
    """
    Requests the next feed page when a sentinel item scrolls into view.

    Call refresh() whenever the item list, has_more or is_loading changes;
    it always cancels the previous observation before creating a new one.
    """

    def __init__(
        self,
        paginator: FeedPaginator,
        state: FeedState,
        observer: VisibilityObserver,
        threshold: float | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ):
        self.paginator = paginator
        self.state = state
        self.observer = observer
        self.threshold = threshold if threshold is not None else settings.SCROLL_VISIBILITY_THRESHOLD
        self.on_error = on_error
        self._subscription: Subscription | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def sentinel_ids(self) -> list[str]:
        """Ids of the second-to-last and last items (fewer for short feeds)."""
        return self.state.item_ids[-2:]

    def refresh(self) -> None:
        """Re-subscribe to the current sentinels."""
        self.dispose()
        sentinels = self.sentinel_ids
        if not sentinels:
            return
        self._subscription = self.observer.observe(sentinels, self.threshold, self._on_visibility)
        logger.debug(f"Observing sentinels {sentinels}")

    def dispose(self) -> None:
        """Stop observing. An already-running page fetch is left to finish."""
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _on_visibility(self, sentinel_id: str, is_visible: bool) -> None:
        if not is_visible:
            return
        if not self.paginator.has_more or self.paginator.is_loading or self._tasks:
            return

        logger.debug(f"Sentinel {sentinel_id} visible, requesting page {self.paginator.current_page + 1}")
        task = asyncio.get_running_loop().create_task(self.paginator.load_next_page())
        self._tasks.add(task)
        task.add_done_callback(self._on_page_done)

    def _on_page_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            # Keep the current observation: scrolling back down retries
            logger.warning(f"Loading next feed page failed: {error}")
            if self.on_error is not None:
                self.on_error(error)
            return

        # Only re-observe if we're still mounted
        if self._subscription is not None:
            self.refresh()

    async def wait_idle(self) -> None:
        """Wait for page loads started by this trigger (tests, shutdown)."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
