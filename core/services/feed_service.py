# =============================================================================
# core/services/feed_service.py - Feed Paginator
# =============================================================================
# Loads feed pages one at a time and merges them into FeedState.
#
# Observable state:
#   is_loading   - a page fetch is in flight (single-flight guard)
#   has_more     - the last loaded page wasn't the final one
#   current_page - highest page successfully merged (0 before the first load)
#
# A page is only merged once every author on it has been resolved; a
# failure anywhere leaves the feed exactly as it was.
# =============================================================================

import asyncio
import logging

from core.models import FeedItem
from core.services.feed_state import FeedState
from lib.api_client import MemeApiClient
from lib.author_cache import AuthorCache

logger = logging.getLogger(__name__)


class FeedPaginator:
    """
    Sequential, deduplicating loader for the meme feed.

    Example:
        paginator = FeedPaginator(api, authors, state)
        await paginator.load_page(1)
        while paginator.has_more:
            await paginator.load_next_page()
    """

    def __init__(self, api: MemeApiClient, authors: AuthorCache, state: FeedState):
        self.api = api
        self.authors = authors
        self.state = state
        self.is_loading = False
        self.has_more = True
        self.current_page = 0

    async def load_page(self, page: int) -> bool:
        """
        Fetch page `page` and merge it into the feed.

        No-op while another page is being fetched.

        Returns:
            True if the page was fetched and merged, False if skipped

        Raises:
            Any API or author-resolution error; nothing is merged in that case
        """
        if self.is_loading:
            logger.debug(f"Skipping feed page {page}: a fetch is already in flight")
            return False

        self.is_loading = True
        try:
            meme_page = await self.api.get_memes(page)
            authors = await asyncio.gather(
                *(self.authors.resolve(record.author_id) for record in meme_page.results)
            )
            items = [
                FeedItem.from_record(record, author)
                for record, author in zip(meme_page.results, authors)
            ]

            added = self.state.merge_items(items)
            # Reloading an earlier page must not move the cursor backwards
            if page >= self.current_page:
                self.has_more = meme_page.cursor(page).has_more
                self.current_page = page

            logger.info(
                f"Loaded feed page {page}: {len(added)} new of {len(items)} "
                f"(total={meme_page.total}, has_more={self.has_more})"
            )
            return True
        finally:
            self.is_loading = False

    async def load_next_page(self) -> bool:
        """Load the page after `current_page`, unless the feed is exhausted."""
        if not self.has_more:
            logger.debug("Feed exhausted, not requesting another page")
            return False
        return await self.load_page(self.current_page + 1)
