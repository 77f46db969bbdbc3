from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class TelepollError(Exception):
    pass


class InputError(TelepollError, ValueError):
    """Caller supplied a missing token or an out-of-range argument."""


class TransportError(TelepollError):
    """The server could not be reached or did not answer in time."""

    def __init__(self, message: str, *, method: str | None = None) -> None:
        super().__init__(message)
        self.method = method


class MalformedResponseError(TelepollError):
    """The response body is not a Bot API envelope."""

    def __init__(self, message: str, *, method: str | None = None) -> None:
        super().__init__(message)
        self.method = method


class DecodeError(TelepollError):
    """The envelope result does not match the requested shape."""

    def __init__(self, message: str, *, method: str | None = None) -> None:
        super().__init__(message)
        self.method = method


@dataclass(frozen=True, slots=True)
class ApiError:
    method: str
    error_code: int | None
    description: str | None
    retry_after: float | None = None
    migrate_to_chat_id: int | None = None

    def __str__(self) -> str:
        code = self.error_code if self.error_code is not None else "?"
        desc = self.description or "no description"
        return f"{self.method} failed ({code}): {desc}"


class ServerRejection(TelepollError):
    """The server answered ``ok: false``."""

    def __init__(self, error: ApiError) -> None:
        super().__init__(str(error))
        self.error = error

    @property
    def error_code(self) -> int | None:
        return self.error.error_code

    @property
    def description(self) -> str | None:
        return self.error.description

    @property
    def retry_after(self) -> float | None:
        return self.error.retry_after


@dataclass(frozen=True, slots=True)
class ApiResult(Generic[T]):
    """Either the decoded result of a call or the server's rejection.

    ``value`` is ``None`` whenever ``error`` is set, so callers that only care
    about success can keep treating a failed call as an empty result.
    """

    value: T | None = None
    error: ApiError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise ServerRejection(self.error)
        return self.value  # type: ignore[return-value]

    def value_or(self, default: T) -> T:
        if self.error is not None or self.value is None:
            return default
        return self.value

    @classmethod
    def success(cls, value: T) -> ApiResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ApiError) -> ApiResult[T]:
        return cls(error=error)
