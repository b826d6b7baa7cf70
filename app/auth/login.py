# =============================================================================
# app/auth/login.py - Login Flow
# =============================================================================
# Exchanges a username/password for a token and signs the session in.
# Failures come in two flavours so the UI can word them differently:
#   WrongCredentialsError - the API rejected the credentials (400 / 401)
#   UnknownLoginError     - anything else
# =============================================================================

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.auth.models import Authenticated
from app.auth.session import MalformedTokenError, SessionStore
from app.exceptions import (
    MemeFeedException,
    TransportOrServerError,
    UnauthorizedError,
    UnknownLoginError,
    ValidationFailureError,
    WrongCredentialsError,
)

if TYPE_CHECKING:
    from lib.api_client import MemeApiClient

logger = logging.getLogger(__name__)


class LoginService:
    """Signs users in against POST /authentication/login."""

    def __init__(self, api: MemeApiClient, session: SessionStore):
        self.api = api
        self.session = session

    async def login(self, username: str, password: str) -> Authenticated:
        """
        Log in and start a session.

        Raises:
            ValidationFailureError: If username or password is empty
            WrongCredentialsError: If the API rejected the credentials
            UnknownLoginError: For any other failure
        """
        if not username:
            raise ValidationFailureError("username", "username is empty")
        if not password:
            raise ValidationFailureError("password", "password is empty")

        try:
            response = await self.api.login(username, password)
        except UnauthorizedError as e:
            logger.info(f"Login rejected for {username}")
            raise WrongCredentialsError(username) from e
        except TransportOrServerError as e:
            if e.status_code == 400:
                logger.info(f"Login rejected for {username}")
                raise WrongCredentialsError(username) from e
            logger.warning(f"Login failed for {username}: {e}")
            raise UnknownLoginError(e.message) from e
        except MemeFeedException as e:
            logger.warning(f"Login failed for {username}: {e}")
            raise UnknownLoginError(e.message) from e

        try:
            return self.session.authenticate(response.jwt)
        except MalformedTokenError as e:
            logger.warning(f"Login returned an unusable token: {e}")
            raise UnknownLoginError(str(e)) from e
