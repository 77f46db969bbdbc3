from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from . import envelope as codec
from .envelope import Envelope
from .errors import ApiResult, InputError
from .logging import get_logger
from .params import Param, Params
from .transport import HttpVerb, Transport

logger = get_logger(__name__)

DEFAULT_ENDPOINT = "https://api.telegram.org"


def normalize_endpoint(endpoint: str | None) -> str:
    if not endpoint or not endpoint.strip():
        return DEFAULT_ENDPOINT
    return endpoint.strip().rstrip("/")


def require_token(token: str | None) -> str:
    if token is None or not token.strip():
        raise InputError("Telegram bot token is empty")
    return token.strip()


class Dispatcher:
    """Sends one Bot API method call and decodes its envelope."""

    def __init__(self, token: str, endpoint: str | None, transport: Transport) -> None:
        self._token = require_token(token)
        self._endpoint = normalize_endpoint(endpoint)
        self._base = f"{self._endpoint}/bot{self._token}"
        self._file_base = f"{self._endpoint}/file/bot{self._token}"
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def transport(self) -> Transport:
        return self._transport

    def file_url(self, file_path: str) -> str:
        return f"{self._file_base}/{file_path.lstrip('/')}"

    def call(
        self,
        method: str,
        params: Params | Iterable[Param] = (),
        verb: HttpVerb | None = None,
        *,
        timeout: float | None = None,
    ) -> Envelope:
        if not method:
            raise InputError("method name is empty")
        items = list(params)
        if verb is None:
            verb = HttpVerb.POST if items else HttpVerb.GET
        if verb is HttpVerb.GET and items:
            raise InputError(f"{method} carries parameters and must use POST")

        logger.debug(
            "telegram.request",
            method=method,
            verb=verb.value,
            params=[name for name, _ in items],
        )
        raw = self._transport.request(
            verb, f"{self._base}/{method}", items, timeout=timeout
        )
        result = codec.decode(raw, method=method)
        if result.ok:
            logger.debug("telegram.response", method=method)
        else:
            logger.warning(
                "telegram.api_error",
                method=method,
                error_code=result.error_code,
                description=result.description,
            )
        return result

    def request(
        self,
        method: str,
        params: Params | Iterable[Param],
        model: Any,
        verb: HttpVerb | None = None,
        *,
        timeout: float | None = None,
    ) -> ApiResult[Any]:
        result = self.call(method, params, verb, timeout=timeout)
        if not result.ok:
            return ApiResult.failure(result.to_error(method))
        return ApiResult.success(codec.decode_result(result, model, method=method))
