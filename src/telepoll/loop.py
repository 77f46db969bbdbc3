from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from functools import partial
from typing import Protocol

import anyio
from anyio import to_thread

from .api_models import Update
from .errors import ApiError, MalformedResponseError, TransportError
from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_POLL_TIMEOUT_S = 50
INITIAL_BACKOFF_S = 2.0
MAX_BACKOFF_S = 60.0


class UpdateSource(Protocol):
    @property
    def last_poll_error(self) -> ApiError | None: ...

    def get_updates(
        self,
        timeout: int = 0,
        limit: int = 0,
        offset: int | None = None,
    ) -> list[Update]: ...


async def poll_updates(
    bot: UpdateSource,
    *,
    timeout: int = DEFAULT_POLL_TIMEOUT_S,
    limit: int = 0,
    sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    initial_backoff_s: float = INITIAL_BACKOFF_S,
    max_backoff_s: float = MAX_BACKOFF_S,
) -> AsyncIterator[Update]:
    """Yield updates forever, long-polling in a worker thread.

    Failed polls back off exponentially, whether the request never completed,
    the response was not a readable envelope, or the server rejected it. A
    rejection carrying ``retry_after`` waits exactly that long instead. A
    result that does not decode as updates is raised.
    """
    backoff = initial_backoff_s
    while True:
        try:
            updates = await to_thread.run_sync(
                partial(bot.get_updates, timeout, limit)
            )
        except (TransportError, MalformedResponseError) as exc:
            logger.warning(
                "loop.get_updates.error",
                error=str(exc),
                error_type=exc.__class__.__name__,
                retry_in=backoff,
            )
            await sleep(backoff)
            backoff = min(backoff * 2, max_backoff_s)
            continue

        if not updates:
            error = bot.last_poll_error
            if error is not None:
                delay = error.retry_after if error.retry_after is not None else backoff
                logger.info(
                    "loop.get_updates.failed",
                    error_code=error.error_code,
                    retry_in=delay,
                )
                await sleep(delay)
                if error.retry_after is None:
                    backoff = min(backoff * 2, max_backoff_s)
                continue

        backoff = initial_backoff_s
        if updates:
            logger.debug("loop.updates", count=len(updates))
        for update in updates:
            yield update
