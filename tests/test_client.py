import json
from pathlib import Path

import pytest

from telepoll.api_models import File, Message, User
from telepoll.client import BotClient
from telepoll.errors import ServerRejection, TransportError
from telepoll.params import InputFile

from tests.fakes import TOKEN, ScriptedTransport, ok, rejected


@pytest.fixture
def bot(registry, transport) -> BotClient:
    return BotClient(TOKEN, registry=registry, transport=transport)


def test_send_message_omits_zero_reply_to(bot, transport) -> None:
    transport.push(ok({"message_id": 1}), ok({"message_id": 2}))

    bot.send_message(42, "hello", reply_to_message_id=0)
    bot.send_message(42, "hello", reply_to_message_id=5)

    first, second = transport.requests
    assert first.method == "sendMessage"
    assert "reply_to_message_id" not in first.form
    assert first.form == {"chat_id": "42", "text": "hello"}
    assert second.form["reply_to_message_id"] == "5"


def test_send_message_encodes_optional_fields(bot, transport) -> None:
    transport.push(ok({"message_id": 7, "text": "hi"}))
    markup = {"inline_keyboard": [[{"text": "ok", "callback_data": "y"}]]}

    result = bot.send_message(
        "@channel",
        "hi",
        parse_mode="HTML",
        disable_web_page_preview=True,
        reply_markup=markup,
        disable_notification=True,
    )

    assert result.value == Message(message_id=7, text="hi")
    form = transport.requests[0].form
    assert form["chat_id"] == "@channel"
    assert form["parse_mode"] == "HTML"
    assert form["disable_web_page_preview"] == "true"
    assert form["disable_notification"] == "true"
    assert json.loads(form["reply_markup"]) == markup


def test_rejection_is_returned_with_details(bot, transport) -> None:
    transport.push(rejected(400, "Bad Request: chat not found"))

    result = bot.send_message(1, "x")

    assert not result.ok
    assert result.value is None
    assert result.value_or(None) is None
    with pytest.raises(ServerRejection) as excinfo:
        result.unwrap()
    assert excinfo.value.error_code == 400
    assert "chat not found" in (excinfo.value.description or "")


def test_transport_errors_surface_from_wrappers(bot, transport) -> None:
    transport.push(TransportError("unreachable"))

    with pytest.raises(TransportError):
        bot.send_chat_action(1, "typing")


def test_get_me_uses_get_and_identity_is_cached(bot, transport) -> None:
    transport.push(ok({"id": 99, "is_bot": True, "username": "pollbot"}))

    assert bot.identity == User(id=99, is_bot=True, username="pollbot")
    assert bot.identity is not None

    [request] = transport.requests
    assert request.method == "getMe"
    assert request.verb.value == "GET"


def test_identity_is_none_when_unreachable(bot, transport) -> None:
    transport.push(TransportError("down"))

    assert bot.identity is None


def test_send_photo_uploads_local_file(bot, transport, tmp_path: Path) -> None:
    photo = tmp_path / "cat.jpg"
    photo.write_bytes(b"jpeg")
    transport.push(ok({"message_id": 3}))

    bot.send_photo(5, photo, caption="", reply_to_message_id=0)

    request = transport.requests[0]
    assert request.form == {"chat_id": "5"}
    assert request.files["photo"].filename == "cat.jpg"


def test_send_video_sends_caption_and_dimensions(bot, transport) -> None:
    transport.push(ok({"message_id": 3}))

    bot.send_video(5, "video-file-id", duration=0, caption="clip", width=640, height=0)

    form = transport.requests[0].form
    assert form == {
        "chat_id": "5",
        "video": "video-file-id",
        "caption": "clip",
        "width": "640",
    }


def test_send_venue_and_location_share_parameter_rules(bot, transport) -> None:
    transport.push(ok({"message_id": 1}), ok({"message_id": 2}))

    bot.send_location(5, 1.5, 2.25)
    bot.send_venue(5, 1.5, 2.25, "Cafe", "Main St 1", foursquare_id="4sq")

    location, venue = transport.requests
    assert location.method == "sendLocation"
    assert location.form == {"chat_id": "5", "latitude": "1.5", "longitude": "2.25"}
    assert venue.method == "sendVenue"
    assert venue.form["title"] == "Cafe"
    assert venue.form["address"] == "Main St 1"
    assert venue.form["foursquare_id"] == "4sq"


def test_answer_inline_query_serializes_results(bot, transport) -> None:
    transport.push(ok(True))
    results = [{"type": "article", "id": "1", "title": "A"}]

    result = bot.answer_inline_query("q1", results, cache_time=0, is_personal=False)

    assert result.value is True
    form = transport.requests[0].form
    assert json.loads(form["results"]) == results
    assert form["cache_time"] == "0"
    assert "is_personal" not in form


def test_user_profile_photos_limit_rule(bot, transport) -> None:
    transport.push(ok({"total_count": 0, "photos": []}), ok({"total_count": 0}))

    bot.get_user_profile_photos(7, offset=0, limit=100)
    bot.get_user_profile_photos(7, offset=3, limit=101)

    assert transport.requests[0].form == {"user_id": "7", "limit": "100"}
    assert transport.requests[1].form == {"user_id": "7", "offset": "3"}


def test_download_file_streams_to_destination(bot, transport, tmp_path: Path) -> None:
    transport.push(ok({"file_id": "f1", "file_path": "documents/file_1.pdf"}))
    url = f"https://api.telegram.org/file/bot{TOKEN}/documents/file_1.pdf"
    transport.files[url] = b"%PDF"
    dest = tmp_path / "out" / "report.pdf"

    result = bot.download_file("f1", dest)

    assert result.value == dest
    assert dest.read_bytes() == b"%PDF"
    assert transport.downloads == [(url, dest)]


def test_download_file_without_path_fails(bot, transport) -> None:
    transport.push(ok({"file_id": "f1"}))

    result = bot.download_file("f1")

    assert not result.ok
    assert transport.downloads == []


def test_get_file_decodes_file(bot, transport) -> None:
    transport.push(ok({"file_id": "f1", "file_size": 10, "file_path": "a/b"}))

    assert bot.get_file("f1").unwrap() == File(
        file_id="f1", file_size=10, file_path="a/b"
    )


def test_forward_and_contact(bot, transport) -> None:
    transport.push(ok({"message_id": 1}), ok({"message_id": 2}))

    bot.forward_message(1, -100200, 55, disable_notification=True)
    bot.send_contact(1, "+100", "Ada", last_name=None)

    forward, contact = transport.requests
    assert forward.form == {
        "chat_id": "1",
        "from_chat_id": "-100200",
        "message_id": "55",
        "disable_notification": "true",
    }
    assert contact.form == {"chat_id": "1", "phone_number": "+100", "first_name": "Ada"}


def test_send_document_from_bytes(bot, transport) -> None:
    transport.push(ok({"message_id": 1}))

    bot.send_document(1, InputFile.from_bytes("a.txt", b"abc"), caption="notes")

    request = transport.requests[0]
    assert request.form == {"chat_id": "1", "caption": "notes"}
    assert request.files["document"].read() == b"abc"


def test_empty_strings_are_not_sent(bot, transport) -> None:
    transport.push(ok({"message_id": 1}), ok({"message_id": 2}), ok(True))

    bot.send_document(1, "file-id", caption="")
    bot.send_contact(1, "+100", "Ada", last_name="")
    bot.answer_inline_query(
        "q1", [], next_offset="", switch_pm_text="", switch_pm_parameter=""
    )

    document, contact, inline = transport.requests
    assert document.form == {"chat_id": "1", "document": "file-id"}
    assert "last_name" not in contact.form
    assert set(inline.form) == {"inline_query_id", "results"}


def test_wrappers_use_their_own_endpoint(registry) -> None:
    transport = ScriptedTransport([ok({"message_id": 1})])
    bot = BotClient(TOKEN, "https://proxy.example", registry=registry, transport=transport)

    bot.send_message(1, "x")

    assert transport.requests[0].url.startswith("https://proxy.example/bot")
    assert bot.endpoint == "https://proxy.example"
