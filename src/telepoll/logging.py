from __future__ import annotations

import errno
import io
import os
import re
import sys
from typing import Any, TextIO, cast

import structlog
from structlog.types import Processor

TOKEN_IN_URL_RE = re.compile(r"bot\d+:[A-Za-z0-9_-]+")
BARE_TOKEN_RE = re.compile(r"\b\d+:[A-Za-z0-9_-]{10,}\b")

_LEVELS: dict[str, int] = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "error": 40,
    "exception": 40,
    "critical": 50,
}

_MIN_LEVEL = _LEVELS["info"]


def _truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _level_value(value: str | None, *, default: str = "info") -> int:
    if not value:
        return _LEVELS[default]
    level = _LEVELS.get(value.strip().lower())
    return level if level is not None else _LEVELS[default]


def _drop_below_level(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    if _LEVELS.get(method_name, 0) < _MIN_LEVEL:
        raise structlog.DropEvent
    return event_dict


def redact_text(value: str) -> str:
    redacted = TOKEN_IN_URL_RE.sub("bot[REDACTED]", value)
    return BARE_TOKEN_RE.sub("[REDACTED_TOKEN]", redacted)


def _redact_value(value: Any, memo: dict[int, Any]) -> Any:
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, (bytes, bytearray)):
        return redact_text(value.decode("utf-8", errors="replace"))
    obj_id = id(value)
    if obj_id in memo:
        return memo[obj_id]
    if isinstance(value, dict):
        redacted: dict[Any, Any] = {}
        memo[obj_id] = redacted
        for key, val in value.items():
            redacted[key] = _redact_value(val, memo)
        return redacted
    if isinstance(value, (list, tuple)):
        items = [_redact_value(item, memo) for item in value]
        return items if isinstance(value, list) else tuple(items)
    return value


def redact_event_dict(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    _ = logger, method_name
    return _redact_value(event_dict, memo={})


def _add_logger_name(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    name = event_dict.pop("logger_name", None)
    if "logger" not in event_dict and isinstance(name, str) and name:
        event_dict["logger"] = name
    return event_dict


def get_logger(name: str | None = None) -> Any:
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()


class StderrWriter(io.TextIOBase):
    """Writes to whatever ``sys.stderr`` is at call time.

    A closed or broken stream drops the record instead of failing the caller.
    """

    def write(self, message: str) -> int:
        try:
            return sys.stderr.write(message)
        except (BrokenPipeError, ValueError):
            return 0
        except OSError as exc:
            if exc.errno == errno.EPIPE:
                return 0
            raise

    def flush(self) -> None:
        try:
            sys.stderr.flush()
        except (BrokenPipeError, ValueError):
            return
        except OSError as exc:
            if exc.errno == errno.EPIPE:
                return
            raise

    def isatty(self) -> bool:
        isatty = getattr(sys.stderr, "isatty", None)
        return bool(isatty()) if callable(isatty) else False


def setup_logging(
    *, debug: bool = False, cache_logger_on_first_use: bool = True
) -> None:
    global _MIN_LEVEL

    level_name = os.environ.get("TELEPOLL_LOG_LEVEL")
    if debug:
        level_name = "debug"
    _MIN_LEVEL = _level_value(level_name, default="info")

    format_value = os.environ.get("TELEPOLL_LOG_FORMAT", "console").strip().lower()
    color_override = os.environ.get("TELEPOLL_LOG_COLOR")
    if color_override is None:
        is_tty = StderrWriter().isatty()
    else:
        is_tty = _truthy(color_override)
    if format_value == "json":
        renderer: Any = structlog.processors.JSONRenderer(default=str)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=is_tty)

    processors = cast(
        list[Processor],
        [
            _drop_below_level,
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            _add_logger_name,
        ],
    )
    if format_value == "json":
        processors.append(structlog.processors.format_exc_info)
    processors.extend(
        cast(list[Processor], [redact_event_dict, cast(Processor, renderer)])
    )

    structlog.configure(
        processors=processors,
        logger_factory=structlog.PrintLoggerFactory(file=cast(TextIO, StderrWriter())),
        cache_logger_on_first_use=cache_logger_on_first_use,
    )
