"""Fetch lifecycle: probe, remote call, state transition, notification."""

from __future__ import annotations

import asyncio
import itertools
from typing import Sequence

from postfeed.controller.state import StateStore
from postfeed.domain.models import (
    ControllerState,
    ErrorKind,
    FetchError,
    FetchStatus,
    Post,
    RefreshTrigger,
)
from postfeed.logging import logger
from postfeed.services.connectivity import ConnectivityProbe
from postfeed.services.exceptions import NetworkError, ServerError
from postfeed.services.notifications import NotificationSink, notification_for
from postfeed.services.remote_source import RecordSource
from postfeed.services.search_filter import filter_posts


class FetchController:
    """Runs fetches against the remote source and applies their outcome.

    Every invocation is tagged with a sequence number when it starts. A
    result is applied only if no later-started invocation has already been
    applied; otherwise it is dropped without touching state or notifying.
    Failures are never retried here, the caller decides when to refresh again.
    """

    def __init__(
        self,
        store: StateStore,
        source: RecordSource,
        probe: ConnectivityProbe,
        notifier: NotificationSink,
    ) -> None:
        self._store = store
        self._source = source
        self._probe = probe
        self._notifier = notifier
        self._sequence = itertools.count(1)
        self._applied_seq = 0
        self._in_flight = 0
        self._has_succeeded = False
        self._closed = False
        self._initial_task: asyncio.Task[bool] | None = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight > 0

    def close(self) -> None:
        """Stop accepting refreshes; results still in flight are dropped on arrival."""

        self._closed = True

    async def start(self) -> bool:
        """Run the initial fetch once; later calls wait on that same fetch."""

        if self._initial_task is None:
            self._initial_task = asyncio.ensure_future(self.refresh(RefreshTrigger.INITIAL))
        return await asyncio.shield(self._initial_task)

    async def refresh(self, trigger: RefreshTrigger = RefreshTrigger.USER_PULL) -> bool:
        """Fetch the collection; return whether this invocation's result was applied."""

        if self._closed:
            logger.info("fetch_skipped_closed", trigger=trigger.value)
            return False
        seq = next(self._sequence)
        self._in_flight += 1
        log = logger.bind(fetch_seq=seq, trigger=trigger.value)
        try:
            await self._store.update(lambda state: self._begin(state, trigger))
            log.info("fetch_started")

            if not await self._probe.is_connected():
                error = FetchError(
                    kind=ErrorKind.OFFLINE,
                    message="connectivity probe reported offline",
                )
                return await self._fail(seq, error, log)

            try:
                posts = await self._source.fetch_all()
            except ServerError as exc:
                error = FetchError(
                    kind=ErrorKind.SERVER_ERROR,
                    status_code=exc.status_code,
                    message=str(exc),
                )
                return await self._fail(seq, error, log)
            except NetworkError as exc:
                error = FetchError(kind=ErrorKind.NETWORK_ERROR, message=str(exc))
                return await self._fail(seq, error, log)

            return await self._succeed(seq, posts, log)
        except Exception:
            log.exception("fetch_crashed")
            raise
        finally:
            self._in_flight -= 1

    def _begin(self, state: ControllerState, trigger: RefreshTrigger) -> ControllerState:
        if trigger is RefreshTrigger.USER_PULL and self._has_succeeded:
            status = FetchStatus.REFRESHING_IN_BACKGROUND
        else:
            status = FetchStatus.LOADING
        return state.model_copy(update={"status": status, "error": None})

    def _claim(self, seq: int) -> bool:
        if self._closed or seq <= self._applied_seq:
            return False
        self._applied_seq = seq
        return True

    async def _succeed(self, seq: int, posts: Sequence[Post], log) -> bool:
        collection = tuple(posts)
        applied = False

        def mutation(state: ControllerState) -> ControllerState | None:
            nonlocal applied
            if not self._claim(seq):
                return None
            applied = True
            self._has_succeeded = True
            return state.model_copy(
                update={
                    "collection": collection,
                    "filtered": filter_posts(collection, state.query),
                    "status": FetchStatus.SUCCEEDED,
                    "error": None,
                }
            )

        await self._store.update(mutation)
        if applied:
            log.info("fetch_succeeded", count=len(collection))
        else:
            log.info("fetch_result_discarded", applied_seq=self._applied_seq)
        return applied

    async def _fail(self, seq: int, error: FetchError, log) -> bool:
        applied = False

        def mutation(state: ControllerState) -> ControllerState | None:
            nonlocal applied
            if not self._claim(seq):
                return None
            applied = True
            return state.model_copy(update={"status": FetchStatus.FAILED, "error": error})

        await self._store.update(mutation)
        if not applied:
            log.info(
                "fetch_result_discarded",
                applied_seq=self._applied_seq,
                error_kind=error.kind.value,
            )
            return False

        log.warning(
            "fetch_failed",
            error_kind=error.kind.value,
            status_code=error.status_code,
            error=error.message,
        )
        self._notifier.emit(notification_for(error))
        return True


__all__ = ["FetchController"]
