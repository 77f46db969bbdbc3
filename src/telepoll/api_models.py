"""Result shapes returned by the Bot API.

Only the fields this client reads are declared; unknown fields are ignored
while decoding so newer server payloads keep decoding.
"""

from __future__ import annotations

import msgspec


class User(msgspec.Struct, kw_only=True):
    id: int
    is_bot: bool | None = None
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None


class Chat(msgspec.Struct, kw_only=True):
    id: int
    type: str | None = None
    title: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class PhotoSize(msgspec.Struct, kw_only=True):
    file_id: str
    width: int | None = None
    height: int | None = None
    file_size: int | None = None


class File(msgspec.Struct, kw_only=True):
    file_id: str
    file_size: int | None = None
    file_path: str | None = None


class Document(msgspec.Struct, kw_only=True):
    file_id: str
    file_name: str | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Audio(msgspec.Struct, kw_only=True):
    file_id: str
    duration: int | None = None
    performer: str | None = None
    title: str | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Video(msgspec.Struct, kw_only=True):
    file_id: str
    width: int | None = None
    height: int | None = None
    duration: int | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Voice(msgspec.Struct, kw_only=True):
    file_id: str
    duration: int | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Sticker(msgspec.Struct, kw_only=True):
    file_id: str
    width: int | None = None
    height: int | None = None
    emoji: str | None = None


class Location(msgspec.Struct, kw_only=True):
    latitude: float
    longitude: float


class Venue(msgspec.Struct, kw_only=True):
    location: Location
    title: str
    address: str
    foursquare_id: str | None = None


class Contact(msgspec.Struct, kw_only=True):
    phone_number: str
    first_name: str
    last_name: str | None = None
    user_id: int | None = None


class Message(msgspec.Struct, kw_only=True):
    message_id: int
    date: int | None = None
    chat: Chat | None = None
    from_: User | None = msgspec.field(name="from", default=None)
    text: str | None = None
    caption: str | None = None
    reply_to_message: Message | None = None
    photo: list[PhotoSize] | None = None
    document: Document | None = None
    audio: Audio | None = None
    video: Video | None = None
    voice: Voice | None = None
    sticker: Sticker | None = None
    location: Location | None = None
    venue: Venue | None = None
    contact: Contact | None = None


class InlineQuery(msgspec.Struct, kw_only=True):
    id: str
    from_: User = msgspec.field(name="from")
    query: str
    offset: str = ""


class ChosenInlineResult(msgspec.Struct, kw_only=True):
    result_id: str
    from_: User = msgspec.field(name="from")
    query: str
    inline_message_id: str | None = None


class CallbackQuery(msgspec.Struct, kw_only=True):
    id: str
    from_: User = msgspec.field(name="from")
    message: Message | None = None
    inline_message_id: str | None = None
    data: str | None = None


class Update(msgspec.Struct, kw_only=True):
    update_id: int
    message: Message | None = None
    edited_message: Message | None = None
    channel_post: Message | None = None
    edited_channel_post: Message | None = None
    inline_query: InlineQuery | None = None
    chosen_inline_result: ChosenInlineResult | None = None
    callback_query: CallbackQuery | None = None


class UserProfilePhotos(msgspec.Struct, kw_only=True):
    total_count: int
    photos: list[list[PhotoSize]] = msgspec.field(default_factory=list)
