from __future__ import annotations

import threading
from collections.abc import Callable

from .api_models import Update
from .dispatcher import Dispatcher, normalize_endpoint, require_token
from .errors import ApiError, InputError
from .logging import get_logger
from .params import Params
from .transport import HttpTransport, HttpVerb, Transport

logger = get_logger(__name__)

DEFAULT_READ_MARGIN_S = 10.0


class Poller:
    """Owns the ``getUpdates`` offset for one bot token.

    Each ``poll`` reads the offset, issues the request and advances the offset
    under one lock, so concurrent callers never re-request an acknowledged
    update and never lose an advance.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        *,
        read_margin_s: float = DEFAULT_READ_MARGIN_S,
    ) -> None:
        self._dispatcher = dispatcher
        self._read_margin_s = read_margin_s
        self._lock = threading.Lock()
        self._offset = 0
        self._last_error: ApiError | None = None

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def endpoint(self) -> str:
        return self._dispatcher.endpoint

    @property
    def last_error(self) -> ApiError | None:
        """Rejection returned by the most recent poll, if it was rejected."""
        return self._last_error

    def poll(self, timeout: int = 0, limit: int = 0) -> list[Update]:
        _check_timeout(timeout)
        with self._lock:
            updates = self._fetch(timeout, limit, self._offset)
            if updates:
                self._advance(updates[-1].update_id + 1)
            return updates

    def poll_from(self, timeout: int, limit: int, offset: int) -> list[Update]:
        """Fetch from an explicit offset without moving the stored one."""
        _check_timeout(timeout)
        with self._lock:
            return self._fetch(timeout, limit, offset)

    def _fetch(self, timeout: int, limit: int, offset: int) -> list[Update]:
        params = (
            Params()
            .positive("offset", offset)
            .limit("limit", limit)
            .positive("timeout", timeout)
        )
        result = self._dispatcher.request(
            "getUpdates",
            params,
            list[Update],
            HttpVerb.POST,
            timeout=max(timeout, 0) + self._read_margin_s,
        )
        if result.error is not None:
            self._last_error = result.error
            logger.debug(
                "poller.rejected",
                error_code=result.error.error_code,
                description=result.error.description,
                offset=offset,
            )
            return []
        self._last_error = None
        return result.value or []

    def _advance(self, next_offset: int) -> None:
        if next_offset > self._offset:
            logger.debug("poller.advanced", previous=self._offset, offset=next_offset)
            self._offset = next_offset


def _check_timeout(timeout: int) -> None:
    if timeout < 0:
        raise InputError(f"poll timeout must be non-negative, got {timeout}")


class PollerRegistry:
    """Maps each bot token to the single :class:`Poller` consuming its updates.

    Pollers are created on first lookup and kept for the registry's lifetime.
    The endpoint given on first lookup is the one the poller keeps.
    """

    def __init__(
        self,
        *,
        transport: Transport | None = None,
        transport_factory: Callable[[], Transport] = HttpTransport,
        read_margin_s: float = DEFAULT_READ_MARGIN_S,
    ) -> None:
        self._transport = transport
        self._transport_factory = transport_factory
        self._read_margin_s = read_margin_s
        self._lock = threading.Lock()
        self._pollers: dict[str, Poller] = {}

    def __len__(self) -> int:
        return len(self._pollers)

    def __contains__(self, token: object) -> bool:
        return token in self._pollers

    def get_poller(
        self,
        token: str | None,
        endpoint: str | None = None,
        *,
        transport: Transport | None = None,
    ) -> Poller:
        token = require_token(token)
        poller = self._pollers.get(token)
        if poller is None:
            with self._lock:
                poller = self._pollers.get(token)
                if poller is None:
                    dispatcher = Dispatcher(
                        token, endpoint, transport or self._shared_transport()
                    )
                    poller = Poller(dispatcher, read_margin_s=self._read_margin_s)
                    self._pollers[token] = poller
                    logger.debug("poller.registered", endpoint=dispatcher.endpoint)
                    return poller
        if endpoint is not None and normalize_endpoint(endpoint) != poller.endpoint:
            logger.warning(
                "poller.endpoint_ignored",
                requested=normalize_endpoint(endpoint),
                endpoint=poller.endpoint,
            )
        return poller

    @property
    def transport(self) -> Transport:
        with self._lock:
            return self._shared_transport()

    def _shared_transport(self) -> Transport:
        if self._transport is None:
            self._transport = self._transport_factory()
        return self._transport

    def close(self) -> None:
        with self._lock:
            if self._transport is not None:
                self._transport.close()


_default_registry: PollerRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> PollerRegistry:
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = PollerRegistry()
        return _default_registry
