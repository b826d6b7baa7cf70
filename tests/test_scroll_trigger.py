# =============================================================================
# tests/test_scroll_trigger.py - Scroll Trigger Tests
# =============================================================================
# Tests drive ManualVisibilityObserver the way a viewport would and check
# which feed pages get requested.
# =============================================================================

from unittest.mock import MagicMock

import pytest

from core.services import FeedPaginator, FeedState, ManualVisibilityObserver, ScrollTrigger
from lib.author_cache import AuthorCache
from tests.conftest import meme_json, page_json, run


@pytest.fixture
def observer():
    return ManualVisibilityObserver()


@pytest.fixture
def state():
    return FeedState()


@pytest.fixture
def paginator(api_client, state):
    return FeedPaginator(api_client, AuthorCache(api_client.get_user_by_id), state)


@pytest.fixture
def errors():
    return []


@pytest.fixture
def trigger(paginator, state, observer, errors):
    return ScrollTrigger(paginator, state, observer, threshold=0.5, on_error=errors.append)


@pytest.fixture
def three_pages(fake_api):
    fake_api.meme_pages[1] = page_json([meme_json("m1"), meme_json("m2"), meme_json("m3")], 9, 3)
    fake_api.meme_pages[2] = page_json([meme_json("m4"), meme_json("m5"), meme_json("m6")], 9, 3)
    fake_api.meme_pages[3] = page_json([meme_json("m7"), meme_json("m8"), meme_json("m9")], 9, 3)
    return fake_api


def memes_requested(fake_api):
    return [r.url.params["page"] for r in fake_api.requests_to("/memes")]


class TestSentinels:
    """Which items are observed."""

    def test_observes_last_two_items(self, trigger, paginator, three_pages):
        run(paginator.load_page(1))
        trigger.refresh()

        assert trigger.sentinel_ids == ["m2", "m3"]

    def test_nothing_observed_for_empty_feed(self, trigger, observer):
        trigger.refresh()

        assert observer.active_subscriptions == 0

    def test_refresh_replaces_previous_subscription(self, trigger, observer, paginator, three_pages):
        run(paginator.load_page(1))

        trigger.refresh()
        trigger.refresh()
        trigger.refresh()

        assert observer.active_subscriptions == 1

    def test_dispose_cancels_subscription(self, trigger, observer, paginator, three_pages):
        run(paginator.load_page(1))
        trigger.refresh()

        trigger.dispose()

        assert observer.active_subscriptions == 0


class TestTriggering:
    """Visible sentinels request the next page."""

    @pytest.mark.parametrize("sentinel", ["m3", "m2"])
    def test_either_sentinel_loads_next_page(self, sentinel, trigger, observer, paginator, state, three_pages):
        async def scenario():
            await paginator.load_page(1)
            trigger.refresh()
            observer.set_visible(sentinel, 1.0)
            await trigger.wait_idle()

        run(scenario())

        assert memes_requested(three_pages) == ["1", "2"]
        assert state.item_ids[-1] == "m6"
        assert trigger.sentinel_ids == ["m5", "m6"]

    def test_below_threshold_does_nothing(self, trigger, observer, paginator, three_pages):
        async def scenario():
            await paginator.load_page(1)
            trigger.refresh()
            observer.set_visible("m3", 0.3)
            await trigger.wait_idle()

        run(scenario())

        assert memes_requested(three_pages) == ["1"]

    def test_both_sentinels_visible_requests_one_page(self, trigger, observer, paginator, three_pages):
        async def scenario():
            await paginator.load_page(1)
            trigger.refresh()
            observer.set_visible("m2", 1.0)
            observer.set_visible("m3", 1.0)
            await trigger.wait_idle()

        run(scenario())

        assert memes_requested(three_pages) == ["1", "2"]

    def test_no_request_while_loading(self, trigger, observer, paginator, three_pages):
        async def scenario():
            await paginator.load_page(1)
            trigger.refresh()
            paginator.is_loading = True
            observer.set_visible("m3", 1.0)
            paginator.is_loading = False
            await trigger.wait_idle()

        run(scenario())

        assert memes_requested(three_pages) == ["1"]

    def test_keeps_loading_while_bottom_stays_visible_then_stops(self, trigger, observer, paginator, state, three_pages):
        """New sentinels that are already on screen keep the feed loading until exhausted."""

        async def scenario():
            await paginator.load_page(1)
            for item_id in ("m4", "m5", "m6", "m7", "m8", "m9"):
                observer.set_visible(item_id, 1.0)
            trigger.refresh()
            observer.set_visible("m3", 1.0)
            await trigger.wait_idle()

        run(scenario())

        assert memes_requested(three_pages) == ["1", "2", "3"]
        assert len(state.items) == 9
        assert paginator.has_more is False

    def test_exhausted_feed_never_requests(self, trigger, observer, paginator, fake_api):
        fake_api.meme_pages[1] = page_json([meme_json("m1"), meme_json("m2")], 2, 2)

        async def scenario():
            await paginator.load_page(1)
            trigger.refresh()
            observer.set_visible("m2", 1.0)
            await trigger.wait_idle()

        run(scenario())

        assert memes_requested(fake_api) == ["1"]

    def test_failed_page_is_reported(self, trigger, observer, paginator, state, errors, three_pages):
        async def scenario():
            await paginator.load_page(1)
            trigger.refresh()
            three_pages.failures["/memes"] = 500
            observer.set_visible("m3", 1.0)
            await trigger.wait_idle()

        run(scenario())

        assert len(errors) == 1
        assert state.item_ids == ["m1", "m2", "m3"]
        assert paginator.is_loading is False

    def test_disposed_trigger_does_not_resubscribe(self, paginator, state, three_pages):
        observer = MagicMock()

        async def scenario():
            await paginator.load_page(1)
            trigger = ScrollTrigger(paginator, state, observer)
            trigger.refresh()
            callback = observer.observe.call_args.args[2]
            callback("m3", True)
            trigger.dispose()
            await trigger.wait_idle()

        run(scenario())

        # Page 2 still lands, but nothing observes the new sentinels
        assert state.item_ids[-1] == "m6"
        assert observer.observe.call_count == 1
