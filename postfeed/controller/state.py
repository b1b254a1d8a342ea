"""Single-writer container for :class:`ControllerState`."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

from postfeed.domain.models import ControllerState
from postfeed.logging import logger

Observer = Callable[[ControllerState], Any]
Mutation = Callable[[ControllerState], "ControllerState | None"]


class StateStore:
    """Holds the current snapshot and fans changes out to observers.

    All writes go through :meth:`update`, which computes the new snapshot from
    the latest one under a lock, so concurrent task chains never apply
    mutations out of order. Returning ``None`` from a mutation leaves the
    state untouched and notifies nobody.

    Observers run while the lock is held and must not await :meth:`update`.
    """

    def __init__(self, initial: ControllerState | None = None) -> None:
        self._state = initial or ControllerState()
        self._lock = asyncio.Lock()
        self._observers: list[Observer] = []

    @property
    def state(self) -> ControllerState:
        return self._state

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    async def update(self, mutation: Mutation) -> ControllerState:
        async with self._lock:
            new_state = mutation(self._state)
            if new_state is None or new_state == self._state:
                return self._state
            self._state = new_state
            await self._notify(new_state)
            return new_state

    async def set(self, **changes: Any) -> ControllerState:
        return await self.update(lambda state: state.model_copy(update=changes))

    async def _notify(self, state: ControllerState) -> None:
        for observer in list(self._observers):
            try:
                result = observer(state)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("state_observer_failed", observer=repr(observer))


__all__ = ["Mutation", "Observer", "StateStore"]
