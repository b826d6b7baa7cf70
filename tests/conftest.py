# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up environment variables before any imports
# - FakeMemeApi: an in-memory meme API served through httpx.MockTransport
# - Token factory producing real (HS256-signed) JWTs
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("API_BASE_URL", "https://api.test")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import asyncio
import json
import time
from typing import Any

import httpx
import pytest
from jose import jwt

from app.auth.session import SessionStore
from app.auth.storage import MemoryTokenStorage
from lib.api_client import MemeApiClient

BASE_URL = "https://api.test"


# =============================================================================
# Helpers
# =============================================================================

def make_token(subject_id: str = "user-1", expires_in: int = 3600, **claims: Any) -> str:
    """Signed JWT with an `id` subject claim and an `exp` relative to now."""
    payload = {"id": subject_id, "exp": int(time.time()) + expires_in, **claims}
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def meme_json(meme_id: str, author_id: str = "user-1", comments_count: Any = 0) -> dict:
    return {
        "id": meme_id,
        "authorId": author_id,
        "pictureUrl": f"https://dummy.url/meme/{meme_id}",
        "description": f"description of {meme_id}",
        "commentsCount": comments_count,
        "texts": [
            {"content": "dummy text 1", "x": 0, "y": 0},
            {"content": "dummy text 2", "x": 100, "y": 100},
        ],
        "createdAt": "2024-01-15T10:30:00Z",
    }


def comment_json(comment_id: str, meme_id: str, author_id: str = "user-1") -> dict:
    return {
        "id": comment_id,
        "authorId": author_id,
        "memeId": meme_id,
        "content": f"content of {comment_id}",
        "createdAt": "2024-01-15T11:00:00Z",
    }


def page_json(results: list[dict], total: int, page_size: int) -> dict:
    return {"total": total, "pageSize": page_size, "results": results}


def user_json(user_id: str) -> dict:
    return {
        "id": user_id,
        "username": f"name_{user_id}",
        "pictureUrl": f"https://dummy.url/user/{user_id}",
    }


class FakeMemeApi:
    """
    In-memory meme API.

    Fill `users`, `meme_pages` and `comment_pages`, then build a client with
    `http_client()`. Every request is recorded in `requests`. Set
    `failures[path] = status` to make a path fail, or `comment_gate` to an
    asyncio.Event to hold comment creation until it is set.
    """

    def __init__(self):
        self.users: dict[str, dict] = {}
        self.meme_pages: dict[int, dict] = {}
        self.comment_pages: dict[tuple[str, int], dict] = {}
        self.credentials: dict[str, str] = {"valid_user": "password"}
        self.login_token = make_token("user-1")
        self.failures: dict[str, int] = {}
        self.requests: list[httpx.Request] = []
        self.comment_gate: asyncio.Event | None = None
        self.in_flight_comment_fetches = 0
        self.max_concurrent_comment_fetches = 0
        self._next_comment_id = 1

    def add_users(self, *user_ids: str) -> None:
        for user_id in user_ids:
            self.users[user_id] = user_json(user_id)

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), base_url=BASE_URL)

    def requests_to(self, path: str, method: str = "GET") -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path and r.method == method]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        is_comment_fetch = path.endswith("/comments") and request.method == "GET"

        if is_comment_fetch:
            self.in_flight_comment_fetches += 1
            self.max_concurrent_comment_fetches = max(
                self.max_concurrent_comment_fetches, self.in_flight_comment_fetches
            )
        try:
            # Yield to the loop so concurrent callers really interleave
            await asyncio.sleep(0)
            if path.endswith("/comments") and request.method == "POST" and self.comment_gate:
                await self.comment_gate.wait()
            return self._respond(request)
        finally:
            if is_comment_fetch:
                self.in_flight_comment_fetches -= 1

    def _respond(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path in self.failures:
            return httpx.Response(self.failures[path], json={"message": "failure"})

        if path == "/authentication/login":
            data = json.loads(request.content)
            if self.credentials.get(data["username"]) == data["password"]:
                return httpx.Response(200, json={"jwt": self.login_token})
            return httpx.Response(401, json={"message": "Unauthorized"})

        if path.startswith("/users/"):
            user = self.users.get(path.rsplit("/", 1)[1])
            return httpx.Response(200, json=user) if user else httpx.Response(404)

        page = int(request.url.params.get("page", "1"))

        if path == "/memes" and request.method == "GET":
            return httpx.Response(200, json=self.meme_pages.get(page, page_json([], 0, 10)))

        if path == "/memes" and request.method == "POST":
            created = meme_json("meme-new")
            return httpx.Response(201, json=created)

        if path.startswith("/memes/") and path.endswith("/comments"):
            meme_id = path.split("/")[2]
            if request.method == "GET":
                data = self.comment_pages.get((meme_id, page), page_json([], 0, 10))
                return httpx.Response(200, json=data)
            comment_id = f"server-{self._next_comment_id}"
            self._next_comment_id += 1
            content = json.loads(request.content)["content"]
            return httpx.Response(201, json={**comment_json(comment_id, meme_id), "content": content})

        return httpx.Response(404)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_api():
    """In-memory API with three known users."""
    api = FakeMemeApi()
    api.add_users("user-1", "user-2", "user-3")
    return api


@pytest.fixture
def redirects():
    """Paths the session store redirected to."""
    return []


@pytest.fixture
def storage():
    return MemoryTokenStorage()


@pytest.fixture
def session(storage, redirects):
    """Session signed in as user-1."""
    store = SessionStore(storage, redirect=redirects.append)
    store.authenticate(make_token("user-1"))
    return store


@pytest.fixture
def api_client(session, fake_api):
    """MemeApiClient talking to the fake API."""
    return MemeApiClient(session, http_client=fake_api.http_client())


def run(coro):
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)
