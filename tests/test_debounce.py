"""Trailing-edge debounce of search edits."""

from __future__ import annotations

import asyncio
import json
import threading
import time

import pytest

from postfeed.controller.debounce import SearchDebouncer
from postfeed.controller.state import StateStore
from postfeed.domain.models import ControllerState, Post
from postfeed.services.exceptions import SearchStoreError
from postfeed.services.search_store import JsonFileSearchStore

KEY = "searchText"


class RecordingStore:
    def __init__(self) -> None:
        self.writes: list[tuple[float, str, str]] = []

    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str) -> None:
        self.writes.append((asyncio.get_running_loop().time(), key, value))


class BrokenStore:
    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str) -> None:
        raise SearchStoreError("disk full")


class SlowFileStore(JsonFileSearchStore):
    """Counts overlapping disk writes; each write takes a while."""

    def __init__(self, path, write_seconds: float = 0.2) -> None:
        super().__init__(path)
        self.write_seconds = write_seconds
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def _write(self, data) -> None:
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.write_seconds)
            super()._write(data)
        finally:
            with self._guard:
                self.active -= 1


def _collection() -> tuple[Post, ...]:
    return (
        Post(owner_id=1, id=1, title="Alpha post", body=""),
        Post(owner_id=1, id=2, title="Beta", body=""),
    )


async def _type(store: StateStore, debouncer: SearchDebouncer, text: str) -> None:
    await store.set(query=text)
    debouncer.push()


@pytest.mark.asyncio
async def test_burst_of_edits_produces_one_write_and_one_recompute():
    collection = _collection()
    state_store = StateStore(ControllerState(collection=collection, filtered=collection))
    search_store = RecordingStore()
    debouncer = SearchDebouncer(state_store, search_store, delay=0.3, storage_key=KEY)
    recomputes: list[tuple[int, ...]] = []
    state_store.subscribe(
        lambda state: recomputes.append(tuple(post.id for post in state.filtered))
    )
    loop = asyncio.get_running_loop()

    started = loop.time()
    await _type(state_store, debouncer, "b")
    await asyncio.sleep(0.1)
    await _type(state_store, debouncer, "be")
    await asyncio.sleep(0.05)
    await _type(state_store, debouncer, "alp")

    await asyncio.sleep(0.2)
    assert search_store.writes == []
    assert debouncer.pending is True
    assert [post.id for post in state_store.state.filtered] == [1, 2]

    await asyncio.sleep(0.25)
    assert [(key, value) for _, key, value in search_store.writes] == [(KEY, "alp")]
    fired_at = search_store.writes[0][0] - started
    assert 0.4 <= fired_at < 0.6
    assert [post.id for post in state_store.state.filtered] == [1]
    assert recomputes[-1] == (1,)
    assert debouncer.pending is False

    await debouncer.aclose()


@pytest.mark.asyncio
async def test_recompute_uses_collection_current_when_timer_fires():
    state_store = StateStore()
    search_store = RecordingStore()
    debouncer = SearchDebouncer(state_store, search_store, delay=0.05, storage_key=KEY)

    await _type(state_store, debouncer, "beta")
    collection = _collection()
    await state_store.set(collection=collection)
    await asyncio.sleep(0.1)

    assert [post.id for post in state_store.state.filtered] == [2]
    await debouncer.aclose()


@pytest.mark.asyncio
async def test_empty_query_is_persisted_and_shows_everything():
    collection = _collection()
    state_store = StateStore(ControllerState(collection=collection, query="alp"))
    search_store = RecordingStore()
    debouncer = SearchDebouncer(state_store, search_store, delay=0.01, storage_key=KEY)

    await _type(state_store, debouncer, "")
    await asyncio.sleep(0.05)

    assert [value for _, _, value in search_store.writes] == [""]
    assert state_store.state.filtered == collection
    await debouncer.aclose()


@pytest.mark.asyncio
async def test_teardown_cancels_pending_write():
    state_store = StateStore(ControllerState(collection=_collection()))
    search_store = RecordingStore()
    debouncer = SearchDebouncer(state_store, search_store, delay=0.05, storage_key=KEY)

    await _type(state_store, debouncer, "alp")
    await debouncer.aclose()
    await asyncio.sleep(0.1)

    assert search_store.writes == []
    assert state_store.state.filtered == ()
    with pytest.raises(RuntimeError):
        debouncer.push()


@pytest.mark.asyncio
async def test_flush_applies_pending_work_immediately():
    state_store = StateStore(ControllerState(collection=_collection()))
    search_store = RecordingStore()
    debouncer = SearchDebouncer(state_store, search_store, delay=10, storage_key=KEY)

    await debouncer.flush()
    assert search_store.writes == []

    await _type(state_store, debouncer, "beta")
    await debouncer.flush()

    assert [value for _, _, value in search_store.writes] == ["beta"]
    assert [post.id for post in state_store.state.filtered] == [2]
    assert debouncer.pending is False
    await debouncer.aclose()


@pytest.mark.asyncio
async def test_persist_failure_still_refilters():
    state_store = StateStore(ControllerState(collection=_collection()))
    debouncer = SearchDebouncer(state_store, BrokenStore(), delay=0.01, storage_key=KEY)

    await _type(state_store, debouncer, "alpha")
    await asyncio.sleep(0.05)

    assert [post.id for post in state_store.state.filtered] == [1]
    await debouncer.aclose()


@pytest.mark.asyncio
async def test_new_edit_does_not_overlap_write_in_progress(tmp_path):
    path = tmp_path / "search.json"
    state_store = StateStore(ControllerState(collection=_collection()))
    search_store = SlowFileStore(path)
    debouncer = SearchDebouncer(state_store, search_store, delay=0.01, storage_key=KEY)

    await _type(state_store, debouncer, "b")
    await asyncio.sleep(0.05)
    assert search_store.active == 1
    await _type(state_store, debouncer, "be")
    await asyncio.sleep(0.6)

    assert search_store.max_active == 1
    assert json.loads(path.read_text(encoding="utf-8")) == {KEY: "be"}
    assert state_store.state.filtered == (_collection()[1],)
    await debouncer.aclose()


@pytest.mark.asyncio
async def test_teardown_waits_for_write_already_started(tmp_path):
    path = tmp_path / "search.json"
    state_store = StateStore(ControllerState(collection=_collection()))
    search_store = SlowFileStore(path, write_seconds=0.1)
    debouncer = SearchDebouncer(state_store, search_store, delay=0.01, storage_key=KEY)

    await _type(state_store, debouncer, "beta")
    await asyncio.sleep(0.05)
    await debouncer.aclose()

    assert search_store.active == 0
    assert json.loads(path.read_text(encoding="utf-8")) == {KEY: "beta"}
