# =============================================================================
# app/auth/models.py - Session Models
# =============================================================================
# The session is a tagged union: either Unauthenticated or Authenticated.
# =============================================================================

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict


class Unauthenticated(BaseModel):
    """No usable token is held."""

    model_config = ConfigDict(frozen=True)

    is_authenticated: Literal[False] = False


class Authenticated(BaseModel):
    """
    A signed-in session.

    The subject id is extracted once from the token when the session is
    created; the token itself is treated as opaque apart from its claims.
    """

    model_config = ConfigDict(frozen=True)

    is_authenticated: Literal[True] = True
    token: str
    subject_id: str


SessionState = Union[Unauthenticated, Authenticated]


class TokenClaims(BaseModel):
    """The two claims the client reads from a token."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    exp: int  # Expiration timestamp (seconds since epoch)
