from __future__ import annotations

import enum
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

import httpx

from .errors import TransportError
from .logging import get_logger, redact_text
from .params import InputFile, Param

logger = get_logger(__name__)

DEFAULT_TIMEOUT_S = 30.0


class HttpVerb(str, enum.Enum):
    GET = "GET"
    POST = "POST"


class Transport(Protocol):
    def request(
        self,
        verb: HttpVerb,
        url: str,
        params: Iterable[Param] = (),
        *,
        timeout: float | None = None,
    ) -> bytes: ...

    def download(self, url: str, dest: Path) -> Path: ...

    def close(self) -> None: ...


class HttpTransport:
    """Blocking transport over a shared :class:`httpx.Client`.

    The client is safe to use from several threads, so one transport can back
    every poller and dispatcher in the process.
    """

    def __init__(
        self,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._http_client = http_client or httpx.Client(timeout=timeout_s)
        self._owns_http_client = http_client is None

    def close(self) -> None:
        if self._owns_http_client:
            self._http_client.close()

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def request(
        self,
        verb: HttpVerb,
        url: str,
        params: Iterable[Param] = (),
        *,
        timeout: float | None = None,
    ) -> bytes:
        request_timeout = httpx.Timeout(
            timeout if timeout is not None else self._timeout_s
        )
        try:
            if verb is HttpVerb.GET:
                resp = self._http_client.get(url, timeout=request_timeout)
            else:
                data, files = _split_params(params)
                resp = self._http_client.post(
                    url,
                    data=data,
                    files=files or None,
                    timeout=request_timeout,
                )
        except httpx.HTTPError as exc:
            raise _transport_error(exc, url) from exc
        return resp.content

    def download(self, url: str, dest: Path) -> Path:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            dir=dest.parent, prefix=f".{dest.name}.", delete=False
        ) as tmp:
            tmp_path = Path(tmp.name)
            try:
                with self._http_client.stream("GET", url) as resp:
                    resp.raise_for_status()
                    for chunk in resp.iter_bytes():
                        tmp.write(chunk)
            except BaseException as exc:
                tmp.close()
                tmp_path.unlink(missing_ok=True)
                if isinstance(exc, httpx.HTTPError):
                    raise _transport_error(exc, url) from exc
                raise
        tmp_path.replace(dest)
        return dest


def _split_params(
    params: Iterable[Param],
) -> tuple[dict[str, str], dict[str, tuple[str, bytes]]]:
    data: dict[str, str] = {}
    files: dict[str, tuple[str, bytes]] = {}
    for name, value in params:
        if isinstance(value, InputFile):
            files[name] = (value.filename, value.read())
        else:
            data[name] = value
    return data, files


def _transport_error(exc: httpx.HTTPError, url: str) -> TransportError:
    safe_url = redact_text(url)
    detail = redact_text(str(exc))
    logger.error(
        "telegram.network_error",
        url=safe_url,
        error=detail,
        error_type=exc.__class__.__name__,
    )
    return TransportError(f"{exc.__class__.__name__} calling {safe_url}: {detail}")
