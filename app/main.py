# =============================================================================
# app/main.py - Client Composition Root
# =============================================================================
# Builds the long-lived objects of a running client and ties their
# lifetimes to the session:
#
#   SessionStore  - lives as long as the process
#   MemeApiClient - lives as long as the process
#   AuthorCache   - created on sign-in, discarded on sign-out
#   FeedPage      - created on sign-in, discarded on sign-out
#
# Usage:
#   client = MemeFeedClient.create(observer=my_view.observer, redirect=my_view.go)
#   client.start()                 # restores a stored token if still valid
#   await client.login("alice", "secret")
#   await client.feed.mount()
# =============================================================================

import logging
from typing import Callable

from app.auth.login import LoginService
from app.auth.models import Authenticated, SessionState
from app.auth.session import SessionStore
from app.auth.storage import FileTokenStorage, TokenStorage
from app.config import settings
from app.exceptions import NotAuthenticatedError
from app.feed_page import FeedPage
from core.services import MemeService, VisibilityObserver
from lib.api_client import MemeApiClient
from lib.author_cache import AuthorCache

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure root logging the same way for every entry point."""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


class MemeFeedClient:
    """
    Owns the session and everything whose lifetime depends on it.

    Session-scoped objects (author cache, feed page) are rebuilt on every
    sign-in and dropped on sign-out, so nothing cached for one user leaks
    into the next session.
    """

    def __init__(
        self,
        session: SessionStore,
        api: MemeApiClient,
        observer: VisibilityObserver,
        on_error: Callable[[str], None] | None = None,
    ):
        self.session = session
        self.api = api
        self.observer = observer
        self.on_error = on_error
        self.login_service = LoginService(api, session)
        self.memes = MemeService(api)
        self.authors: AuthorCache | None = None
        self._feed: FeedPage | None = None
        self._unsubscribe = session.subscribe(self._on_session_change)

    @classmethod
    def create(
        cls,
        observer: VisibilityObserver,
        redirect: Callable[[str], None] | None = None,
        storage: TokenStorage | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> "MemeFeedClient":
        """Build a client from settings."""
        logger.info(f"Configuring {settings.ENVIRONMENT} client for {settings.api_base_url}")
        session = SessionStore(
            storage if storage is not None else FileTokenStorage(settings.TOKEN_STORAGE_PATH),
            redirect=redirect,
        )
        return cls(session, MemeApiClient(session), observer, on_error=on_error)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> bool:
        """Restore a persisted session, if any. Returns True when signed in."""
        return self.session.restore()

    async def login(self, username: str, password: str) -> Authenticated:
        return await self.login_service.login(username, password)

    def signout(self) -> None:
        self.session.signout()

    async def aclose(self) -> None:
        self._teardown()
        self._unsubscribe()
        await self.api.aclose()

    @property
    def feed(self) -> FeedPage:
        """The feed page of the current session."""
        if self._feed is None:
            raise NotAuthenticatedError()
        return self._feed

    def _on_session_change(self, state: SessionState) -> None:
        self._teardown()
        if isinstance(state, Authenticated):
            self.authors = AuthorCache(self.api.get_user_by_id)
            self._feed = FeedPage(
                self.api, self.authors, self.session, self.observer, on_error=self.on_error
            )
            logger.debug(f"Session-scoped state created for user {state.subject_id}")

    def _teardown(self) -> None:
        if self._feed is not None:
            self._feed.unmount()
            self._feed.state.clear()
        self._feed = None
        self.authors = None
