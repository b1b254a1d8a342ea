"""Network reachability checks performed before each fetch."""

from __future__ import annotations

from typing import Protocol

import httpx

from postfeed.config import ConnectivitySettings
from postfeed.logging import logger


class ConnectivityProbe(Protocol):
    async def is_connected(self) -> bool: ...


class HttpConnectivityProbe:
    """Treat any HTTP answer from the probe URL as "online"."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: ConnectivitySettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or ConnectivitySettings()

    async def is_connected(self) -> bool:
        url = str(self._settings.probe_url)
        try:
            await self._client.head(url, timeout=self._settings.timeout_seconds)
        except httpx.RequestError as exc:
            logger.info("connectivity_probe_offline", url=url, error=str(exc))
            return False
        return True


class StaticConnectivityProbe:
    def __init__(self, connected: bool = True) -> None:
        self.connected = connected

    async def is_connected(self) -> bool:
        return self.connected


def build_probe(
    http_client: httpx.AsyncClient, settings: ConnectivitySettings
) -> ConnectivityProbe:
    if settings.assume_online:
        return StaticConnectivityProbe(True)
    return HttpConnectivityProbe(http_client, settings)


__all__ = [
    "ConnectivityProbe",
    "HttpConnectivityProbe",
    "StaticConnectivityProbe",
    "build_probe",
]
