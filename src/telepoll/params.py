from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import msgspec

MAX_LIMIT = 100


@dataclass(frozen=True, slots=True)
class InputFile:
    """A file uploaded as part of a multipart request."""

    filename: str
    content: bytes | None = None
    path: Path | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> InputFile:
        resolved = Path(path).expanduser()
        return cls(filename=resolved.name, path=resolved)

    @classmethod
    def from_bytes(cls, filename: str, content: bytes) -> InputFile:
        return cls(filename=filename, content=content)

    def read(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.path is None:
            raise ValueError(f"InputFile {self.filename!r} has no content")
        return self.path.read_bytes()


ParamValue = Union[str, InputFile]
Param = tuple[str, ParamValue]


def clamp_limit(limit: int | None, *, upper: int = MAX_LIMIT) -> int | None:
    if limit is None or limit < 1 or limit > upper:
        return None
    return limit


class Params:
    """Ordered request parameters with the Bot API omission rules.

    Unset values are dropped rather than sent, so the server applies its own
    defaults: ``None`` and empty strings, non-positive ids and counts, and
    ``False`` flags never reach the wire.
    """

    def __init__(self) -> None:
        self._items: list[Param] = []

    def __iter__(self) -> Iterator[Param]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self._items)

    def items(self) -> list[Param]:
        return list(self._items)

    def get(self, name: str) -> ParamValue | None:
        for key, value in self._items:
            if key == name:
                return value
        return None

    def add(self, name: str, value: Any) -> Params:
        self._items.append((name, _stringify(value)))
        return self

    def text(self, name: str, value: str | None) -> Params:
        if value:
            self._items.append((name, value))
        return self

    def positive(self, name: str, value: int | None) -> Params:
        if value is not None and value > 0:
            self._items.append((name, str(value)))
        return self

    def non_negative(self, name: str, value: int | None) -> Params:
        if value is not None and value >= 0:
            self._items.append((name, str(value)))
        return self

    def flag(self, name: str, value: bool | None) -> Params:
        if value:
            self._items.append((name, "true"))
        return self

    def limit(self, name: str, value: int | None, *, upper: int = MAX_LIMIT) -> Params:
        clamped = clamp_limit(value, upper=upper)
        if clamped is not None:
            self._items.append((name, str(clamped)))
        return self

    def json(self, name: str, value: Any) -> Params:
        if value is not None:
            self._items.append((name, msgspec.json.encode(value).decode("utf-8")))
        return self

    def media(self, name: str, value: str | InputFile | Path) -> Params:
        if isinstance(value, Path):
            value = InputFile.from_path(value)
        self._items.append((name, value))
        return self

    @property
    def has_files(self) -> bool:
        return any(isinstance(value, InputFile) for _, value in self._items)


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return str(value)
