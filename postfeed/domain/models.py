"""Pydantic models shared by the services and the controller."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Post(BaseModel):
    """One record of the remote collection; identity is ``id``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    owner_id: int = Field(alias="userId")
    id: int
    title: str
    body: str


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    REFRESHING_IN_BACKGROUND = "refreshing_in_background"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ErrorKind(str, Enum):
    OFFLINE = "offline"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"


class RefreshTrigger(str, Enum):
    INITIAL = "initial"
    USER_PULL = "user_pull"


class FetchError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    status_code: int | None = None
    message: str = ""


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    title: str
    detail: str


class ControllerState(BaseModel):
    """Snapshot observed by the presentation layer.

    ``status`` is ``FAILED`` exactly when ``error`` is set. ``filtered`` lags
    behind ``query`` only while a debounced search is pending.
    """

    model_config = ConfigDict(frozen=True)

    collection: tuple[Post, ...] = ()
    filtered: tuple[Post, ...] = ()
    query: str = ""
    status: FetchStatus = FetchStatus.IDLE
    error: FetchError | None = None


__all__ = [
    "ControllerState",
    "ErrorKind",
    "FetchError",
    "FetchStatus",
    "Notification",
    "Post",
    "RefreshTrigger",
]
