# =============================================================================
# tests/test_session.py - Session Store Tests
# =============================================================================
# This module contains tests for:
# - Sign-in / sign-out transitions and listener notification
# - Lazy expiry detection in current_token()
# - Restoring a persisted token at startup
# - File-backed token storage
# =============================================================================

import time

import pytest

from app.auth import (
    Authenticated,
    FileTokenStorage,
    MalformedTokenError,
    MemoryTokenStorage,
    SessionStore,
    Unauthenticated,
    decode_claims,
)
from app.exceptions import NotAuthenticatedError, TokenExpiredError
from tests.conftest import make_token


# =============================================================================
# Token Decoding Tests
# =============================================================================

class TestDecodeClaims:
    """Test reading claims from unverified tokens."""

    def test_reads_subject_and_expiry(self):
        token = make_token("dummy_user_id", expires_in=60)

        claims = decode_claims(token)

        assert claims.subject_id == "dummy_user_id"
        assert claims.exp > time.time()

    def test_garbage_is_malformed(self):
        with pytest.raises(MalformedTokenError):
            decode_claims("not-a-token")

    def test_missing_subject_is_malformed(self):
        token = make_token("user-1", id=None)

        with pytest.raises(MalformedTokenError):
            decode_claims(token)


# =============================================================================
# Transition Tests
# =============================================================================

class TestSessionTransitions:
    """Test authenticate / signout."""

    def test_authenticate_persists_and_notifies(self, storage):
        store = SessionStore(storage)
        seen = []
        store.subscribe(seen.append)
        token = make_token("user-7")

        state = store.authenticate(token)

        assert isinstance(state, Authenticated)
        assert state.subject_id == "user-7"
        assert store.subject_id == "user-7"
        assert storage.get("authToken") == token
        assert seen == [state]

    def test_signout_discards_token(self, session, storage):
        session.signout()

        assert isinstance(session.state, Unauthenticated)
        assert storage.get("authToken") is None
        with pytest.raises(NotAuthenticatedError):
            session.current_token()

    def test_unsubscribe_stops_notifications(self, session):
        seen = []
        unsubscribe = session.subscribe(seen.append)
        unsubscribe()

        session.signout()

        assert seen == []

    def test_handle_unauthorized_signs_out_and_redirects(self, session, storage, redirects):
        session.handle_unauthorized()

        assert not session.is_authenticated
        assert storage.get("authToken") is None
        assert redirects == ["/login"]

    def test_repeated_unauthorized_ends_session_once(self, session, redirects):
        states = []
        session.subscribe(states.append)

        session.handle_unauthorized()
        session.handle_unauthorized()
        session.handle_unauthorized()

        assert redirects == ["/login"]
        assert len(states) == 1


# =============================================================================
# Expiry Tests
# =============================================================================

class TestCurrentToken:
    """Test lazy expiry checking."""

    def test_valid_token_is_returned(self, session, storage):
        assert session.current_token() == storage.get("authToken")

    def test_expired_token_signs_out_and_redirects(self, storage, redirects):
        store = SessionStore(storage, redirect=redirects.append)
        store.authenticate(make_token("user-1", expires_in=-10))

        with pytest.raises(TokenExpiredError):
            store.current_token()

        assert isinstance(store.state, Unauthenticated)
        assert storage.get("authToken") is None
        assert redirects == ["/login"]

    def test_expiry_is_checked_lazily(self, storage):
        now = [1_000.0]
        store = SessionStore(storage, clock=lambda: now[0])
        token = make_token("user-1")
        exp = decode_claims(token).exp
        now[0] = exp - 1
        store.authenticate(token)

        assert store.current_token() == token

        # Nothing happens until the token is asked for again
        now[0] = exp
        assert store.is_authenticated
        with pytest.raises(TokenExpiredError):
            store.current_token()


# =============================================================================
# Restore Tests
# =============================================================================

class TestRestore:
    """Test restoring a persisted token at startup."""

    def test_restores_valid_token(self):
        token = make_token("user-3")
        store = SessionStore(MemoryTokenStorage({"authToken": token}))

        assert store.restore() is True
        assert store.subject_id == "user-3"
        assert store.current_token() == token

    @pytest.mark.parametrize(
        "token",
        [make_token("user-1", expires_in=-60), "garbage.token.value", make_token("user-1", id="")],
    )
    def test_discards_unusable_token_silently(self, token, redirects):
        storage = MemoryTokenStorage({"authToken": token})
        store = SessionStore(storage, redirect=redirects.append)

        assert store.restore() is False
        assert storage.get("authToken") is None
        assert redirects == []
        assert not store.is_authenticated

    def test_nothing_stored(self):
        assert SessionStore(MemoryTokenStorage()).restore() is False


# =============================================================================
# File Storage Tests
# =============================================================================

class TestFileTokenStorage:
    """Test JSON-file storage."""

    def test_survives_new_instance(self, tmp_path):
        path = tmp_path / "nested" / "storage.json"
        FileTokenStorage(path).set("authToken", "abc")

        assert FileTokenStorage(path).get("authToken") == "abc"

    def test_remove(self, tmp_path):
        storage = FileTokenStorage(tmp_path / "storage.json")
        storage.set("authToken", "abc")
        storage.set("other", "keep")

        storage.remove("authToken")

        assert storage.get("authToken") is None
        assert storage.get("other") == "keep"

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("{not json", encoding="utf-8")

        assert FileTokenStorage(path).get("authToken") is None
