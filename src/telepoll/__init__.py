"""Telegram Bot API client with a shared long-polling offset per bot token."""

from .api_models import Update
from .client import BotClient
from .dispatcher import DEFAULT_ENDPOINT, Dispatcher
from .envelope import Envelope
from .errors import (
    ApiError,
    ApiResult,
    DecodeError,
    InputError,
    MalformedResponseError,
    ServerRejection,
    TelepollError,
    TransportError,
)
from .params import InputFile, Params
from .poller import Poller, PollerRegistry, default_registry
from .transport import HttpTransport, HttpVerb

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_ENDPOINT",
    "ApiError",
    "ApiResult",
    "BotClient",
    "DecodeError",
    "Dispatcher",
    "Envelope",
    "HttpTransport",
    "HttpVerb",
    "InputError",
    "InputFile",
    "MalformedResponseError",
    "Params",
    "Poller",
    "PollerRegistry",
    "ServerRejection",
    "TelepollError",
    "TransportError",
    "Update",
    "default_registry",
]
