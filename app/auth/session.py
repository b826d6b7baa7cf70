# =============================================================================
# app/auth/session.py - Session Store
# =============================================================================
# Owns the bearer token, the claims derived from it and the expiry check.
#
# Expiry is checked lazily: only when current_token() is called. When the
# token turns out to be expired, or the API rejects it with a 401, the
# store signs out (clearing the persisted token) and asks the navigator to
# send the user to the login boundary.
#
# Usage:
#   store = SessionStore(FileTokenStorage(path), redirect=router.go)
#   store.restore()
#   store.authenticate(jwt)
#   token = store.current_token()
# =============================================================================

import logging
import time
from typing import Callable

from jose import jwt, JWTError

from app.auth.models import (
    Authenticated,
    SessionState,
    TokenClaims,
    Unauthenticated,
)
from app.auth.storage import TokenStorage
from app.config import settings
from app.exceptions import NotAuthenticatedError, TokenExpiredError

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionState], None]


class MalformedTokenError(ValueError):
    """Raised when a token can't be decoded or lacks a required claim."""


def decode_claims(token: str, subject_claim: str | None = None) -> TokenClaims:
    """
    Read the expiry and subject claims from a token without verifying it.

    The signature is the server's business; the client only needs to know
    who the token is for and when it stops being usable.

    Raises:
        MalformedTokenError: If the token isn't a JWT or a claim is missing
    """
    claim = subject_claim or settings.TOKEN_SUBJECT_CLAIM
    try:
        payload = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise MalformedTokenError(f"Cannot decode token: {e}") from e

    subject_id = payload.get(claim)
    exp = payload.get("exp")
    if subject_id in (None, "") or exp is None:
        raise MalformedTokenError(f"Token missing '{claim}' or 'exp' claim")

    try:
        return TokenClaims(subject_id=str(subject_id), exp=int(exp))
    except (TypeError, ValueError) as e:
        raise MalformedTokenError(f"Invalid token claims: {e}") from e


class SessionStore:
    """
    Session state machine: Unauthenticated <-> Authenticated.

    Listeners registered with subscribe() are told about every sign-in and
    sign-out. The redirect callable receives the login path whenever the
    session ends because of expiry or a 401.
    """

    def __init__(
        self,
        storage: TokenStorage,
        redirect: Callable[[str], None] | None = None,
        clock: Callable[[], float] = time.time,
        storage_key: str | None = None,
        subject_claim: str | None = None,
    ):
        self._storage = storage
        self._redirect = redirect
        self._clock = clock
        self._storage_key = storage_key or settings.TOKEN_STORAGE_KEY
        self._subject_claim = subject_claim or settings.TOKEN_SUBJECT_CLAIM
        self._state: SessionState = Unauthenticated()
        self._claims: TokenClaims | None = None
        self._listeners: list[SessionListener] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return isinstance(self._state, Authenticated)

    @property
    def subject_id(self) -> str | None:
        """Id of the signed-in user, if any."""
        if isinstance(self._state, Authenticated):
            return self._state.subject_id
        return None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener for sign-in / sign-out.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def restore(self) -> bool:
        """
        Restore a previously persisted token at startup.

        Expired or malformed tokens are discarded silently.

        Returns:
            True if a session was restored
        """
        token = self._storage.get(self._storage_key)
        if not token:
            return False

        try:
            claims = decode_claims(token, self._subject_claim)
        except MalformedTokenError as e:
            logger.info(f"Discarding malformed stored token: {e}")
            self._storage.remove(self._storage_key)
            return False

        if self._is_expired(claims):
            logger.info("Discarding expired stored token")
            self._storage.remove(self._storage_key)
            return False

        self._claims = claims
        self._set_state(Authenticated(token=token, subject_id=claims.subject_id))
        logger.info(f"Restored session for user {claims.subject_id}")
        return True

    def authenticate(self, token: str) -> Authenticated:
        """
        Sign in with an already-issued token.

        The token is trusted; it is only decoded to extract the subject id.

        Raises:
            MalformedTokenError: If the subject id can't be read
        """
        claims = decode_claims(token, self._subject_claim)
        self._storage.set(self._storage_key, token)
        self._claims = claims

        state = Authenticated(token=token, subject_id=claims.subject_id)
        self._set_state(state)
        logger.info(f"Signed in as user {claims.subject_id}")
        return state

    def signout(self) -> None:
        """Forget the token (in memory and on disk) and notify listeners."""
        self._storage.remove(self._storage_key)
        self._claims = None
        was_authenticated = self.is_authenticated
        self._set_state(Unauthenticated())
        if was_authenticated:
            logger.info("Signed out")

    def current_token(self) -> str:
        """
        Bearer token for an authenticated call.

        Raises:
            NotAuthenticatedError: If nobody is signed in
            TokenExpiredError: If the token's expiry has passed; the store
                signs out and redirects to login before raising
        """
        if not isinstance(self._state, Authenticated) or self._claims is None:
            raise NotAuthenticatedError()

        if self._is_expired(self._claims):
            expired_at = self._claims.exp
            logger.warning(f"Token expired at {expired_at}, signing out")
            self._end_session()
            raise TokenExpiredError(expired_at)

        return self._state.token

    def handle_unauthorized(self) -> None:
        """
        The API rejected the token (revoked server-side): end the session.

        Only the first 401 of a burst signs out and redirects; later ones
        arrive after the session is already gone and are ignored.
        """
        if not self.is_authenticated:
            logger.debug("API answered 401 with no active session, ignoring")
            return
        logger.warning("API answered 401, signing out")
        self._end_session()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _is_expired(self, claims: TokenClaims) -> bool:
        return self._clock() >= claims.exp

    def _end_session(self) -> None:
        self.signout()
        if self._redirect is not None:
            self._redirect(settings.LOGIN_PATH)
