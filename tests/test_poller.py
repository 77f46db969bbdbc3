import threading

import pytest
from structlog.testing import capture_logs

from telepoll.errors import DecodeError, InputError, TransportError
from telepoll.poller import PollerRegistry
from telepoll.transport import HttpVerb

from tests.fakes import (
    TOKEN,
    ScriptedTransport,
    UpdateQueueServer,
    ok,
    rejected,
    updates,
)


def _ids(batch) -> list[int]:
    return [update.update_id for update in batch]


def test_sequential_polls_never_repeat_updates(registry, transport) -> None:
    transport.push(updates(5, 6, 7), updates(8, 9), updates())
    poller = registry.get_poller(TOKEN)

    batches = [_ids(poller.poll(timeout=30, limit=100)) for _ in range(3)]

    assert batches == [[5, 6, 7], [8, 9], []]
    offsets = [req.form.get("offset") for req in transport.requests]
    assert offsets == [None, "8", "10"]
    assert poller.offset == 10


def test_offset_is_monotonic(registry, transport) -> None:
    # Server replays an older id after a newer batch; the offset must not drop.
    transport.push(updates(10, 11), updates(3), updates(12))
    poller = registry.get_poller(TOKEN)

    seen = []
    for _ in range(3):
        poller.poll()
        seen.append(poller.offset)

    assert seen == [12, 12, 13]


def test_get_updates_request_shape(registry, transport) -> None:
    poller = registry.get_poller(TOKEN)

    poller.poll(timeout=25, limit=50)

    [request] = transport.requests
    assert request.method == "getUpdates"
    assert request.verb is HttpVerb.POST
    assert request.form == {"limit": "50", "timeout": "25"}
    assert request.timeout is not None and request.timeout > 25


def test_out_of_range_limit_is_omitted(registry, transport) -> None:
    poller = registry.get_poller(TOKEN)

    poller.poll(timeout=0, limit=500)
    poller.poll(timeout=0, limit=0)

    assert [req.form for req in transport.requests] == [{}, {}]


def test_rejection_leaves_offset_and_returns_empty(registry, transport) -> None:
    transport.push(updates(1), rejected(401, "Unauthorized"))
    poller = registry.get_poller(TOKEN)
    poller.poll()

    result = poller.poll()

    assert result == []
    assert poller.offset == 2
    assert poller.last_error is not None
    assert poller.last_error.error_code == 401
    assert poller.last_error.description == "Unauthorized"


def test_rejected_poll_logs_a_single_warning(registry, transport) -> None:
    transport.push(rejected(409, "Conflict"))
    poller = registry.get_poller(TOKEN)

    with capture_logs() as logs:
        poller.poll()

    warnings = [entry["event"] for entry in logs if entry["log_level"] == "warning"]
    assert warnings == ["telegram.api_error"]
    assert any(entry["event"] == "poller.rejected" for entry in logs)


def test_successful_poll_clears_last_error(registry, transport) -> None:
    transport.push(rejected(409, "Conflict"), updates())
    poller = registry.get_poller(TOKEN)

    poller.poll()
    assert poller.last_error is not None
    poller.poll()

    assert poller.last_error is None


def test_transport_error_propagates_and_keeps_offset(registry, transport) -> None:
    transport.push(updates(4), TransportError("timed out"))
    poller = registry.get_poller(TOKEN)
    poller.poll()

    with pytest.raises(TransportError):
        poller.poll()

    assert poller.offset == 5


def test_decode_error_propagates_and_keeps_offset(registry, transport) -> None:
    transport.push(ok([{"no_update_id": True}]))
    poller = registry.get_poller(TOKEN)

    with pytest.raises(DecodeError):
        poller.poll()

    assert poller.offset == 0


def test_negative_timeout_is_rejected(registry) -> None:
    poller = registry.get_poller(TOKEN)

    with pytest.raises(InputError):
        poller.poll(timeout=-1)


def test_poll_from_does_not_move_offset(registry, transport) -> None:
    transport.push(updates(1, 2), updates(40, 41))
    poller = registry.get_poller(TOKEN)
    poller.poll()

    batch = poller.poll_from(0, 10, 40)

    assert _ids(batch) == [40, 41]
    assert transport.requests[-1].form == {"offset": "40", "limit": "10"}
    assert poller.offset == 3


def test_concurrent_polls_deliver_each_update_once() -> None:
    server = UpdateQueueServer(range(1, 201), delay_s=0.001)
    registry = PollerRegistry(transport=server)
    poller = registry.get_poller(TOKEN)
    delivered: list[int] = []
    delivered_lock = threading.Lock()

    def worker() -> None:
        for _ in range(10):
            batch = _ids(poller.poll(limit=7))
            with delivered_lock:
                delivered.extend(batch)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(delivered) == list(range(1, 201))
    assert len(delivered) == len(set(delivered))
    assert poller.offset == 201


def test_pollers_for_different_tokens_do_not_block_each_other() -> None:
    release = threading.Event()
    entered = threading.Event()

    class BlockingTransport(ScriptedTransport):
        def request(self, verb, url, params=(), *, timeout=None):
            if "bot111:" in url:
                entered.set()
                release.wait(5)
            return super().request(verb, url, params, timeout=timeout)

    registry = PollerRegistry(transport=BlockingTransport())
    slow = registry.get_poller("111:slowtoken")
    fast = registry.get_poller("222:fasttoken")

    thread = threading.Thread(target=slow.poll, kwargs={"timeout": 30})
    thread.start()
    try:
        assert entered.wait(5)
        assert fast.poll() == []
    finally:
        release.set()
        thread.join()
