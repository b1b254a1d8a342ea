"""Application entrypoint."""

from __future__ import annotations

import asyncio
import sys
from typing import Sequence

import httpx

from postfeed.config import get_settings
from postfeed.controller import PostsController
from postfeed.domain.models import ControllerState
from postfeed.logging import configure_logging, logger
from postfeed.services.connectivity import build_probe
from postfeed.services.notifications import LoggingNotificationSink
from postfeed.services.remote_source import RemoteRecordSource
from postfeed.services.search_store import build_search_store

PREVIEW_LIMIT = 10


def _log_state(state: ControllerState) -> None:
    logger.debug(
        "state_changed",
        status=state.status.value,
        query=state.query,
        total=len(state.collection),
        matches=len(state.filtered),
    )


async def main(argv: Sequence[str] | None = None) -> ControllerState:
    configure_logging()
    settings = get_settings()
    args = list(sys.argv[1:] if argv is None else argv)

    async with httpx.AsyncClient(follow_redirects=True) as client:
        controller = PostsController(
            source=RemoteRecordSource(client, settings.remote),
            probe=build_probe(client, settings.connectivity),
            search_store=build_search_store(settings.search),
            notifier=LoggingNotificationSink(),
            settings=settings.search,
        )
        async with controller:
            controller.subscribe(_log_state)
            logger.info("postfeed_starting", posts_url=settings.remote.posts_url)
            await controller.start()
            if args:
                await controller.set_query(" ".join(args))
                await controller.flush_search()

            state = controller.state
            logger.info(
                "postfeed_ready",
                status=state.status.value,
                query=state.query,
                total=len(state.collection),
                matches=len(state.filtered),
                titles=[post.title for post in state.filtered[:PREVIEW_LIMIT]],
            )
            return state


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
