"""Controller owning one posts screen session."""

from __future__ import annotations

import asyncio
from typing import Callable

from postfeed.config import SearchSettings
from postfeed.controller.debounce import SearchDebouncer
from postfeed.controller.fetch import FetchController
from postfeed.controller.state import Observer, StateStore
from postfeed.domain.models import ControllerState, FetchStatus, RefreshTrigger
from postfeed.logging import logger
from postfeed.services.connectivity import ConnectivityProbe
from postfeed.services.exceptions import SearchStoreError
from postfeed.services.notifications import NotificationSink
from postfeed.services.remote_source import RecordSource
from postfeed.services.search_store import SearchStore


class PostsController:
    """Public surface consumed by the presentation layer.

    ``start`` seeds the query from the search store and runs the first fetch,
    ``refresh`` is wired to the pull gesture, ``set_query`` to every keystroke.
    Use as an async context manager, or call ``aclose`` on teardown.
    """

    def __init__(
        self,
        source: RecordSource,
        probe: ConnectivityProbe,
        search_store: SearchStore,
        notifier: NotificationSink,
        settings: SearchSettings | None = None,
    ) -> None:
        self.settings = settings or SearchSettings()
        self._search_store = search_store
        self._store = StateStore()
        self._fetcher = FetchController(self._store, source, probe, notifier)
        self._debouncer = SearchDebouncer(
            self._store,
            search_store,
            delay=self.settings.debounce_seconds,
            storage_key=self.settings.storage_key,
        )
        self._mount_task: asyncio.Task[bool] | None = None
        self._query_touched = False
        self._closed = False

    @property
    def state(self) -> ControllerState:
        return self._store.state

    @property
    def is_fetching(self) -> bool:
        return self._fetcher.in_flight

    @property
    def search_pending(self) -> bool:
        return self._debouncer.pending

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        return self._store.subscribe(observer)

    async def start(self) -> bool:
        if self._mount_task is None:
            self._mount_task = asyncio.ensure_future(self._mount())
        return await asyncio.shield(self._mount_task)

    async def refresh(self, trigger: RefreshTrigger = RefreshTrigger.USER_PULL) -> bool:
        return await self._fetcher.refresh(trigger)

    async def set_query(self, query: str) -> None:
        self._query_touched = True
        await self._store.set(query=query)
        self._debouncer.push()

    async def flush_search(self) -> None:
        await self._debouncer.flush()

    async def aclose(self) -> None:
        """Tear down the session.

        Fetches still in flight finish in the background but no longer touch
        state or emit notifications.
        """

        self._closed = True
        self._fetcher.close()
        await self._debouncer.aclose()

    async def __aenter__(self) -> PostsController:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _mount(self) -> bool:
        saved = await self._load_saved_query()
        if self._closed:
            return False

        def seed(state: ControllerState) -> ControllerState:
            # A keystroke that arrived while the store was being read wins.
            changes = {"status": FetchStatus.LOADING}
            if not self._query_touched:
                changes["query"] = saved
            return state.model_copy(update=changes)

        await self._store.update(seed)
        return await self._fetcher.start()

    async def _load_saved_query(self) -> str:
        key = self.settings.storage_key
        try:
            saved = await self._search_store.get(key)
        except SearchStoreError:
            logger.exception("search_restore_failed", key=key)
            return ""
        if saved:
            logger.info("search_restored", key=key, query=saved)
        return saved or ""


__all__ = ["PostsController"]
