"""HTTP-backed source of the remote post collection."""

from __future__ import annotations

from typing import Protocol, Sequence

import httpx
from pydantic import TypeAdapter, ValidationError

from postfeed.config import RemoteSourceSettings
from postfeed.domain.models import Post
from postfeed.logging import logger
from postfeed.services.exceptions import NetworkError, ServerError

_POSTS_ADAPTER = TypeAdapter(list[Post])


class RecordSource(Protocol):
    async def fetch_all(self) -> Sequence[Post]: ...


class RemoteRecordSource:
    """Fetch the whole collection with a single GET.

    Non-2xx responses raise :class:`ServerError`; anything that prevents a
    usable payload (transport failure, timeout, malformed JSON, schema
    mismatch) raises :class:`NetworkError`.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: RemoteSourceSettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or RemoteSourceSettings()

    async def fetch_all(self) -> tuple[Post, ...]:
        url = self._settings.posts_url
        try:
            response = await self._client.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self._settings.request_timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.warning("remote_source_status_error", url=url, status_code=status_code)
            raise ServerError(status_code, exc.response.text[:500]) from exc
        except httpx.RequestError as exc:
            logger.warning("remote_source_request_failed", url=url, error=str(exc))
            raise NetworkError(f"Request to {url} failed: {exc}") from exc

        try:
            posts = _POSTS_ADAPTER.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            logger.warning("remote_source_decode_failed", url=url, error=str(exc))
            raise NetworkError(f"Malformed payload from {url}") from exc

        logger.debug("remote_source_fetched", url=url, count=len(posts))
        return tuple(posts)


__all__ = ["RecordSource", "RemoteRecordSource"]
