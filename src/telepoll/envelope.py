"""Decoding of the ``{ok, result | error}`` wrapper around every response.

``result`` is held as :class:`msgspec.Raw`, so each caller decodes it straight
into its own result shape without a second pass through Python builtins.
"""

from __future__ import annotations

from typing import Any

import msgspec

from .errors import ApiError, DecodeError, InputError, MalformedResponseError


class ResponseParameters(msgspec.Struct, kw_only=True):
    retry_after: float | None = None
    migrate_to_chat_id: int | None = None


class Envelope(msgspec.Struct, kw_only=True):
    ok: bool
    result: msgspec.Raw = msgspec.field(default_factory=msgspec.Raw)
    description: str | None = None
    error_code: int | None = None
    parameters: ResponseParameters | None = None

    @property
    def has_result(self) -> bool:
        return len(bytes(self.result)) > 0

    def to_error(self, method: str) -> ApiError:
        params = self.parameters or ResponseParameters()
        return ApiError(
            method=method,
            error_code=self.error_code,
            description=self.description,
            retry_after=params.retry_after,
            migrate_to_chat_id=params.migrate_to_chat_id,
        )


_decoder = msgspec.json.Decoder(Envelope)


def decode(raw: bytes, *, method: str | None = None) -> Envelope:
    try:
        envelope = _decoder.decode(raw)
    except msgspec.DecodeError as exc:
        raise MalformedResponseError(
            f"invalid response envelope: {exc}", method=method
        ) from exc
    if envelope.ok and not envelope.has_result:
        raise MalformedResponseError(
            "successful response without a result", method=method
        )
    return envelope


def decode_result(envelope: Envelope, model: Any, *, method: str | None = None) -> Any:
    if not envelope.ok:
        raise InputError("cannot decode the result of a failed response")
    try:
        return msgspec.json.decode(envelope.result, type=model)
    except msgspec.DecodeError as exc:
        raise DecodeError(
            f"result does not match {_model_name(model)}: {exc}", method=method
        ) from exc


def _model_name(model: Any) -> str:
    return getattr(model, "__name__", None) or str(model)
