# =============================================================================
# lib/api_client.py - Meme API Client
# =============================================================================
# Typed async wrapper around the meme REST API.
#
# Every authenticated call asks the SessionStore for the bearer token (which
# runs the lazy expiry check) and maps responses onto the client error
# taxonomy:
#   401 -> session.handle_unauthorized() + UnauthorizedError
#   404 -> NotFoundError
#   other non-2xx, network failures, unparseable bodies -> TransportOrServerError
#
# Usage:
#   async with MemeApiClient(session) as api:
#       page = await api.get_memes(1)
# =============================================================================

from __future__ import annotations

import logging
import mimetypes
from typing import Any, Sequence, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.auth.session import SessionStore
from app.config import settings
from app.exceptions import (
    NotFoundError,
    TransportOrServerError,
    UnauthorizedError,
)
from core.models import (
    Author,
    CommentPage,
    CommentRecord,
    LoginResponse,
    MemePage,
    MemeRecord,
    MemeText,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class MemeApiClient:
    """
    Async client for the meme API.

    One instance is shared by every component of a running client; it owns
    an httpx.AsyncClient unless one is passed in.

    Example:
        api = MemeApiClient(session_store)
        author = await api.get_user_by_id("u1")
        await api.aclose()
    """

    def __init__(
        self,
        session: SessionStore,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self.session = session
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS,
        )

    async def __aenter__(self) -> "MemeApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if we created it."""
        if self._owns_client:
            await self._http.aclose()

    # -------------------------------------------------------------------------
    # Request plumbing
    # -------------------------------------------------------------------------

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.session.current_token()}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        authenticated: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if authenticated:
            headers.update(self._auth_headers())

        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransportOrServerError(path, str(e)) from e

        self._check_status(response, path, authenticated)
        return response

    def _check_status(self, response: httpx.Response, path: str, authenticated: bool) -> None:
        status = response.status_code
        if status == 401:
            if authenticated:
                self.session.handle_unauthorized()
            raise UnauthorizedError(path)
        if status == 404:
            raise NotFoundError(path)
        if status >= 400:
            logger.warning(f"{response.request.method} {path} answered {status}")
            raise TransportOrServerError(path, f"HTTP {status}", status_code=status)

    @staticmethod
    def _parse(model: type[ModelT], response: httpx.Response, path: str) -> ModelT:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TransportOrServerError(path, f"Unexpected response body: {e}") from e

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def login(self, username: str, password: str) -> LoginResponse:
        """
        Exchange credentials for a token (POST /authentication/login).

        A 401 here means wrong credentials and does not touch the session.
        """
        path = "/authentication/login"
        response = await self._request(
            "POST",
            path,
            authenticated=False,
            json={"username": username, "password": password},
        )
        return self._parse(LoginResponse, response, path)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def get_user_by_id(self, user_id: str) -> Author:
        """GET /users/{id}"""
        path = f"/users/{user_id}"
        response = await self._request("GET", path)
        return self._parse(Author, response, path)

    # -------------------------------------------------------------------------
    # Memes
    # -------------------------------------------------------------------------

    async def get_memes(self, page: int) -> MemePage:
        """GET /memes?page=N"""
        path = "/memes"
        response = await self._request("GET", path, params={"page": page})
        logger.debug(f"Fetched memes page {page}")
        return self._parse(MemePage, response, path)

    async def create_meme(
        self,
        picture: bytes,
        filename: str,
        description: str,
        texts: Sequence[MemeText],
    ) -> MemeRecord:
        """
        POST /memes as multipart form data.

        Captions are sent as indexed fields: Texts[0][Content], Texts[0][X]...
        """
        path = "/memes"
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

        data: dict[str, str] = {"Description": description}
        for index, text in enumerate(texts):
            data[f"Texts[{index}][Content]"] = text.content
            data[f"Texts[{index}][X]"] = str(text.x)
            data[f"Texts[{index}][Y]"] = str(text.y)

        response = await self._request(
            "POST",
            path,
            data=data,
            files={"Picture": (filename, picture, content_type)},
        )
        return self._parse(MemeRecord, response, path)

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    async def get_meme_comments(self, meme_id: str, page: int) -> CommentPage:
        """GET /memes/{id}/comments?page=N"""
        path = f"/memes/{meme_id}/comments"
        response = await self._request("GET", path, params={"page": page})
        logger.debug(f"Fetched comments page {page} for meme {meme_id}")
        return self._parse(CommentPage, response, path)

    async def create_meme_comment(self, meme_id: str, content: str) -> CommentRecord:
        """POST /memes/{id}/comments"""
        path = f"/memes/{meme_id}/comments"
        response = await self._request("POST", path, json={"content": content})
        return self._parse(CommentRecord, response, path)
