"""User-visible alerts emitted when a fetch fails."""

from __future__ import annotations

import asyncio
from typing import Protocol

from postfeed.domain.models import ErrorKind, FetchError, Notification
from postfeed.logging import logger

OFFLINE_TITLE = "No Internet"
OFFLINE_DETAIL = "You are offline."
SERVER_ERROR_TITLE = "Server Error"
NETWORK_ERROR_TITLE = "Network Error"
NETWORK_ERROR_DETAIL = "Something went wrong."


class NotificationSink(Protocol):
    def emit(self, notification: Notification) -> None: ...


def notification_for(error: FetchError) -> Notification:
    if error.kind is ErrorKind.OFFLINE:
        return Notification(kind=error.kind, title=OFFLINE_TITLE, detail=OFFLINE_DETAIL)
    if error.kind is ErrorKind.SERVER_ERROR:
        return Notification(
            kind=error.kind,
            title=SERVER_ERROR_TITLE,
            detail=f"Status {error.status_code}",
        )
    return Notification(kind=error.kind, title=NETWORK_ERROR_TITLE, detail=NETWORK_ERROR_DETAIL)


class LoggingNotificationSink:
    def __init__(self, log=None) -> None:
        self._log = log or logger

    def emit(self, notification: Notification) -> None:
        self._log.warning(
            "user_notification",
            kind=notification.kind.value,
            title=notification.title,
            detail=notification.detail,
        )


class QueueNotificationSink:
    """Buffers alerts for a presentation layer that drains them at its own pace.

    When the buffer is full the oldest alert is dropped so ``emit`` never blocks.
    """

    def __init__(self, maxsize: int = 100) -> None:
        self.queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=maxsize)

    def emit(self, notification: Notification) -> None:
        if self.queue.full():
            dropped = self.queue.get_nowait()
            logger.warning("notification_dropped", title=dropped.title)
        self.queue.put_nowait(notification)


__all__ = [
    "LoggingNotificationSink",
    "NotificationSink",
    "QueueNotificationSink",
    "notification_for",
]
