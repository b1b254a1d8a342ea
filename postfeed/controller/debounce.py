"""Trailing-edge debounce for search text edits."""

from __future__ import annotations

import asyncio
import contextlib

from postfeed.controller.state import StateStore
from postfeed.domain.models import ControllerState
from postfeed.logging import logger
from postfeed.services.exceptions import SearchStoreError
from postfeed.services.search_filter import filter_posts
from postfeed.services.search_store import SearchStore

DEFAULT_DEBOUNCE_SECONDS = 0.3


class SearchDebouncer:
    """Coalesce bursts of query edits into one write and one re-filter.

    Each :meth:`push` restarts the quiet period. When it elapses the current
    query is persisted and ``filtered`` is recomputed from the collection held
    at that moment. :meth:`aclose` drops whatever is still pending.
    """

    def __init__(
        self,
        store: StateStore,
        search_store: SearchStore,
        *,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        storage_key: str = "searchText",
    ) -> None:
        self._store = store
        self._search_store = search_store
        self._delay = delay
        self._storage_key = storage_key
        self._task: asyncio.Task[None] | None = None
        self._applying: set[asyncio.Task[None]] = set()
        self._apply_lock = asyncio.Lock()
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def push(self) -> None:
        """Register a query mutation and (re)start the quiet period."""

        if self._closed:
            raise RuntimeError("SearchDebouncer is closed")
        self._drop_pending()
        self._task = asyncio.get_running_loop().create_task(self._fire_later())

    async def flush(self) -> None:
        """Run pending work now instead of waiting for the timer."""

        if not self.pending:
            return
        await self._cancel_pending()
        await self._apply()

    async def aclose(self) -> None:
        """Drop the pending timer and wait for a write that already started."""

        self._closed = True
        await self._cancel_pending()
        if self._applying:
            await asyncio.gather(*self._applying, return_exceptions=True)

    def _drop_pending(self) -> None:
        if self.pending:
            self._task.cancel()
        self._task = None

    async def _cancel_pending(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _fire_later(self) -> None:
        await asyncio.sleep(self._delay)
        # Once fired, cancelling the timer must not interrupt the write.
        applying = asyncio.ensure_future(self._apply())
        self._applying.add(applying)
        applying.add_done_callback(self._applying.discard)
        await asyncio.shield(applying)

    async def _apply(self) -> None:
        async with self._apply_lock:
            query = self._store.state.query
            try:
                await self._search_store.set(self._storage_key, query)
            except SearchStoreError:
                logger.exception("search_persist_failed", key=self._storage_key)
            else:
                logger.debug("search_persisted", key=self._storage_key, query=query)
            state = await self._store.update(_refilter)
        logger.debug("search_applied", query=state.query, matches=len(state.filtered))


def _refilter(state: ControllerState) -> ControllerState:
    return state.model_copy(update={"filtered": filter_posts(state.collection, state.query)})


__all__ = ["DEFAULT_DEBOUNCE_SECONDS", "SearchDebouncer"]
