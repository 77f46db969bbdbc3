from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from .api_models import File, Message, Update, User, UserProfilePhotos
from .dispatcher import Dispatcher
from .errors import ApiError, ApiResult, TelepollError
from .logging import get_logger
from .params import InputFile, Params
from .poller import Poller, PollerRegistry, default_registry
from .transport import HttpVerb, Transport

logger = get_logger(__name__)

ChatId = Union[int, str]
Media = Union[str, InputFile, Path]

DEFAULT_DOWNLOAD_DIR = Path("downloads")


def _chat_params(chat_id: ChatId) -> Params:
    return Params().add("chat_id", chat_id)


def _reply_params(
    params: Params,
    *,
    reply_to_message_id: int | None,
    reply_markup: Any,
    disable_notification: bool,
) -> Params:
    return (
        params.flag("disable_notification", disable_notification)
        .positive("reply_to_message_id", reply_to_message_id)
        .json("reply_markup", reply_markup)
    )


class BotClient:
    """Bot API client for one token.

    Updates are read through the registry's poller for the token, so every
    client built for the same token in the process shares one offset.
    """

    def __init__(
        self,
        token: str,
        endpoint: str | None = None,
        *,
        registry: PollerRegistry | None = None,
        transport: Transport | None = None,
    ) -> None:
        registry = registry if registry is not None else default_registry()
        self._poller: Poller = registry.get_poller(token, endpoint, transport=transport)
        self._dispatcher = Dispatcher(
            token, endpoint, transport if transport is not None else registry.transport
        )
        self._identity: User | None = None

    @property
    def endpoint(self) -> str:
        return self._dispatcher.endpoint

    @property
    def last_poll_error(self) -> ApiError | None:
        return self._poller.last_error

    def _send(self, method: str, params: Params) -> ApiResult[Message]:
        return self._dispatcher.request(method, params, Message)

    def _confirm(self, method: str, params: Params) -> ApiResult[bool]:
        return self._dispatcher.request(method, params, bool)

    def get_updates(
        self,
        timeout: int = 0,
        limit: int = 0,
        offset: int | None = None,
    ) -> list[Update]:
        if offset is None:
            return self._poller.poll(timeout, limit)
        return self._poller.poll_from(timeout, limit, offset)

    def get_me(self) -> ApiResult[User]:
        return self._dispatcher.request("getMe", (), User, HttpVerb.GET)

    @property
    def identity(self) -> User | None:
        if self._identity is None:
            try:
                self._identity = self.get_me().value
            except TelepollError as exc:
                logger.error(
                    "telegram.identity_failed",
                    error=str(exc),
                    error_type=exc.__class__.__name__,
                )
        return self._identity

    def send_message(
        self,
        chat_id: ChatId,
        text: str,
        *,
        parse_mode: str | None = None,
        disable_web_page_preview: bool = False,
        reply_to_message_id: int | None = None,
        reply_markup: Any = None,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        params = (
            _chat_params(chat_id)
            .add("text", text)
            .text("parse_mode", parse_mode)
            .flag("disable_web_page_preview", disable_web_page_preview)
        )
        _reply_params(
            params,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )
        return self._send("sendMessage", params)

    def forward_message(
        self,
        chat_id: ChatId,
        from_chat_id: ChatId,
        message_id: int,
        *,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        params = (
            _chat_params(chat_id)
            .add("from_chat_id", from_chat_id)
            .add("message_id", message_id)
            .flag("disable_notification", disable_notification)
        )
        return self._send("forwardMessage", params)

    def send_photo(
        self,
        chat_id: ChatId,
        photo: Media,
        *,
        caption: str | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any = None,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        params = _chat_params(chat_id).media("photo", photo).text("caption", caption)
        _reply_params(
            params,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )
        return self._send("sendPhoto", params)

    def send_audio(
        self,
        chat_id: ChatId,
        audio: Media,
        *,
        duration: int | None = None,
        performer: str | None = None,
        title: str | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any = None,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        params = (
            _chat_params(chat_id)
            .media("audio", audio)
            .positive("duration", duration)
            .text("performer", performer)
            .text("title", title)
        )
        _reply_params(
            params,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )
        return self._send("sendAudio", params)

    def send_document(
        self,
        chat_id: ChatId,
        document: Media,
        *,
        caption: str | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any = None,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        params = (
            _chat_params(chat_id)
            .media("document", document)
            .text("caption", caption)
        )
        _reply_params(
            params,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )
        return self._send("sendDocument", params)

    def send_sticker(
        self,
        chat_id: ChatId,
        sticker: Media,
        *,
        reply_to_message_id: int | None = None,
        reply_markup: Any = None,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        params = _chat_params(chat_id).media("sticker", sticker)
        _reply_params(
            params,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )
        return self._send("sendSticker", params)

    def send_video(
        self,
        chat_id: ChatId,
        video: Media,
        *,
        duration: int | None = None,
        caption: str | None = None,
        width: int | None = None,
        height: int | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any = None,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        params = (
            _chat_params(chat_id)
            .media("video", video)
            .positive("duration", duration)
            .text("caption", caption)
        )
        _reply_params(
            params,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )
        params.positive("width", width).positive("height", height)
        return self._send("sendVideo", params)

    def send_voice(
        self,
        chat_id: ChatId,
        voice: Media,
        *,
        duration: int | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any = None,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        params = (
            _chat_params(chat_id).media("voice", voice).positive("duration", duration)
        )
        _reply_params(
            params,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )
        return self._send("sendVoice", params)

    def _send_place(
        self,
        method: str,
        chat_id: ChatId,
        latitude: float,
        longitude: float,
        *,
        title: str | None = None,
        address: str | None = None,
        foursquare_id: str | None = None,
        reply_to_message_id: int | None,
        reply_markup: Any,
        disable_notification: bool,
    ) -> ApiResult[Message]:
        params = (
            _chat_params(chat_id)
            .add("latitude", latitude)
            .add("longitude", longitude)
            .text("title", title)
            .text("address", address)
            .text("foursquare_id", foursquare_id)
        )
        _reply_params(
            params,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )
        return self._send(method, params)

    def send_location(
        self,
        chat_id: ChatId,
        latitude: float,
        longitude: float,
        *,
        reply_to_message_id: int | None = None,
        reply_markup: Any = None,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        return self._send_place(
            "sendLocation",
            chat_id,
            latitude,
            longitude,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )

    def send_venue(
        self,
        chat_id: ChatId,
        latitude: float,
        longitude: float,
        title: str,
        address: str,
        *,
        foursquare_id: str | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any = None,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        return self._send_place(
            "sendVenue",
            chat_id,
            latitude,
            longitude,
            title=title,
            address=address,
            foursquare_id=foursquare_id,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )

    def send_contact(
        self,
        chat_id: ChatId,
        phone_number: str,
        first_name: str,
        *,
        last_name: str | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any = None,
        disable_notification: bool = False,
    ) -> ApiResult[Message]:
        params = (
            _chat_params(chat_id)
            .add("phone_number", phone_number)
            .add("first_name", first_name)
            .text("last_name", last_name)
        )
        _reply_params(
            params,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
            disable_notification=disable_notification,
        )
        return self._send("sendContact", params)

    def send_chat_action(self, chat_id: ChatId, action: str) -> ApiResult[bool]:
        return self._confirm(
            "sendChatAction", _chat_params(chat_id).add("action", action)
        )

    def get_user_profile_photos(
        self,
        user_id: int,
        *,
        offset: int | None = None,
        limit: int | None = None,
    ) -> ApiResult[UserProfilePhotos]:
        params = (
            Params()
            .add("user_id", user_id)
            .positive("offset", offset)
            .limit("limit", limit)
        )
        return self._dispatcher.request(
            "getUserProfilePhotos", params, UserProfilePhotos
        )

    def get_file(self, file_id: str) -> ApiResult[File]:
        return self._dispatcher.request(
            "getFile", Params().add("file_id", file_id), File
        )

    def download_file(
        self,
        file_id: str,
        dest: str | Path | None = None,
    ) -> ApiResult[Path]:
        """Resolve ``file_id`` with ``getFile`` and stream the file to disk.

        ``dest`` defaults to the server-side file name under ``downloads/``.
        """
        info = self.get_file(file_id)
        if info.error is not None:
            return ApiResult.failure(info.error)
        file_path = info.value.file_path if info.value is not None else None
        if not file_path:
            return ApiResult.failure(
                ApiError(
                    method="getFile",
                    error_code=None,
                    description=f"file {file_id!r} has no downloadable path",
                )
            )
        target = (
            Path(dest).expanduser()
            if dest is not None
            else DEFAULT_DOWNLOAD_DIR / Path(file_path).name
        )
        url = self._dispatcher.file_url(file_path)
        return ApiResult.success(self._dispatcher.transport.download(url, target))

    def answer_inline_query(
        self,
        inline_query_id: str,
        results: list[Any],
        *,
        next_offset: str | None = None,
        is_personal: bool = False,
        cache_time: int | None = None,
        switch_pm_text: str | None = None,
        switch_pm_parameter: str | None = None,
    ) -> ApiResult[bool]:
        params = (
            Params()
            .add("inline_query_id", inline_query_id)
            .json("results", results)
            .text("next_offset", next_offset)
            .flag("is_personal", is_personal)
            .non_negative("cache_time", cache_time)
            .text("switch_pm_text", switch_pm_text)
            .text("switch_pm_parameter", switch_pm_parameter)
        )
        return self._confirm("answerInlineQuery", params)
