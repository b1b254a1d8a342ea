"""Shared fixtures and dummy collaborators for controller tests."""

from __future__ import annotations

import asyncio

import pytest

from postfeed.domain.models import Notification, Post
from postfeed.services.exceptions import ServerError
from postfeed.services.search_store import MemorySearchStore


def _post(post_id: int, title: str, owner_id: int = 1) -> Post:
    return Post(owner_id=owner_id, id=post_id, title=title, body=f"body {post_id}")


SAMPLE_POSTS = (
    _post(1, "Alpha post"),
    _post(2, "Beta"),
    _post(3, "alphabet soup"),
)


class DummyProbe:
    def __init__(self, connected: bool = True) -> None:
        self.connected = connected
        self.calls = 0

    async def is_connected(self) -> bool:
        self.calls += 1
        return self.connected


class DummySource:
    """Serves queued outcomes; an ``asyncio.Event`` outcome blocks until set."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    def queue(self, outcome) -> None:
        self.outcomes.append(outcome)

    async def fetch_all(self):
        self.calls += 1
        outcome = self.outcomes.pop(0) if self.outcomes else SAMPLE_POSTS
        if isinstance(outcome, tuple) and len(outcome) == 2 and isinstance(outcome[0], asyncio.Event):
            gate, outcome = outcome
            await gate.wait()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class CollectingSink:
    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def emit(self, notification: Notification) -> None:
        self.notifications.append(notification)


@pytest.fixture
def sample_posts() -> tuple[Post, ...]:
    return SAMPLE_POSTS


@pytest.fixture
def probe() -> DummyProbe:
    return DummyProbe()


@pytest.fixture
def source() -> DummySource:
    return DummySource()


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def search_store() -> MemorySearchStore:
    return MemorySearchStore()


@pytest.fixture
def server_error() -> ServerError:
    return ServerError(500, "boom")
