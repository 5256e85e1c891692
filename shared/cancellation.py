"""
Propagate inbound client disconnects to outbound work.
"""

import asyncio
from typing import Awaitable, TypeVar

from starlette.requests import Request

from .errors import ClientClosedRequestError
from .logging import get_logger

T = TypeVar("T")

DEFAULT_POLL_INTERVAL = 0.1

logger = get_logger("shared.cancellation")


async def cancel_on_disconnect(
    request: Request,
    work: Awaitable[T],
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> T:
    """Await ``work`` unless the caller disconnects first.

    The inbound connection is polled every ``poll_interval`` seconds. When the
    client has gone away the task is cancelled, which unwinds any
    ``httpx.AsyncClient`` context managers it holds and releases their sockets.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()

            if await request.is_disconnected():
                logger.info(
                    "Client disconnected, cancelling outbound work",
                    path=request.url.path,
                )
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                raise ClientClosedRequestError()
    finally:
        if not task.done():
            task.cancel()
