# =============================================================================
# lib/author_cache.py - Single-Flight Author Cache
# =============================================================================
# Memoizes author-profile lookups for the lifetime of one session.
#
# Lookup order for resolve(id):
#   1. _resolved  - permanent results, returned without touching the network
#   2. _pending   - a fetch for this id is already running: share it
#   3. otherwise  - start a fetch, register it in _pending
#
# A successful fetch moves the author into _resolved; a failed one is simply
# forgotten (nothing cached) and the error reaches every waiting caller.
# There is no eviction: the author set is small and profiles are immutable.
#
# Usage:
#   cache = AuthorCache(api.get_user_by_id)
#   author = await cache.resolve("u1")
# =============================================================================

import asyncio
import logging
from typing import Awaitable, Callable

from core.models import Author

logger = logging.getLogger(__name__)

AuthorFetcher = Callable[[str], Awaitable[Author]]


class AuthorCache:
    """
    Per-session author lookup with at most one in-flight fetch per id.

    Example:
        cache = AuthorCache(api.get_user_by_id)
        a, b = await asyncio.gather(cache.resolve("u1"), cache.resolve("u1"))
        assert a is b  # one request, one shared Author instance
    """

    def __init__(self, fetch_author: AuthorFetcher):
        self._fetch_author = fetch_author
        self._resolved: dict[str, Author] = {}
        self._pending: dict[str, asyncio.Future[Author]] = {}
        self.fetch_count = 0

    def peek(self, author_id: str) -> Author | None:
        """Return the author if it has already been resolved, without fetching."""
        return self._resolved.get(author_id)

    def is_pending(self, author_id: str) -> bool:
        return author_id in self._pending

    async def resolve(self, author_id: str) -> Author:
        """
        Get an author, fetching it at most once.

        Raises:
            Whatever the fetcher raises; the failure is not cached
        """
        cached = self._resolved.get(author_id)
        if cached is not None:
            return cached

        pending = self._pending.get(author_id)
        if pending is None:
            logger.debug(f"Author cache miss: {author_id}")
            pending = asyncio.ensure_future(self._fetch(author_id))
            self._pending[author_id] = pending
        else:
            logger.debug(f"Author fetch already in flight: {author_id}")

        # One caller going away must not cancel the fetch for the others
        return await asyncio.shield(pending)

    async def resolve_many(self, author_ids: list[str]) -> list[Author]:
        """Resolve several authors concurrently, preserving input order."""
        return list(await asyncio.gather(*(self.resolve(i) for i in author_ids)))

    async def _fetch(self, author_id: str) -> Author:
        self.fetch_count += 1
        try:
            author = await self._fetch_author(author_id)
        finally:
            self._pending.pop(author_id, None)

        self._resolved[author_id] = author
        return author

    def __len__(self) -> int:
        return len(self._resolved)
