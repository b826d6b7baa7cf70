# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Session store, token storage and the login flow.
#
# Usage:
#   from app.auth import SessionStore, FileTokenStorage
#
#   session = SessionStore(FileTokenStorage(settings.TOKEN_STORAGE_PATH))
#   session.restore()
# =============================================================================

from app.auth.login import LoginService
from app.auth.models import Authenticated, SessionState, TokenClaims, Unauthenticated
from app.auth.session import MalformedTokenError, SessionStore, decode_claims
from app.auth.storage import FileTokenStorage, MemoryTokenStorage, TokenStorage

__all__ = [
    "LoginService",
    "Authenticated",
    "SessionState",
    "TokenClaims",
    "Unauthenticated",
    "MalformedTokenError",
    "SessionStore",
    "decode_claims",
    "FileTokenStorage",
    "MemoryTokenStorage",
    "TokenStorage",
]
