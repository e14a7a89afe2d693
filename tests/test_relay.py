import pytest

from pinch.utils.relay import RELAY_KINDS


@pytest.mark.asyncio
async def test_offer_reaches_only_target(presence, connect):
    a, ca = connect()
    b, cb = connect()
    c, cc = connect()
    for s in (a, b, c):
        await presence.handle(s, "join-room", "R1")
    for ch in (ca, cb, cc):
        ch.clear()

    assert await presence.handle(a, "offer", {"target": b.id, "sdp": "x"}) is True

    assert cb.frames == [{"type": "offer", "data": {"sdp": "x", "from": a.id}}]
    assert ca.frames == []
    assert cc.frames == []


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", sorted(RELAY_KINDS))
async def test_every_relay_kind_is_forwarded_as_is(presence, connect, kind):
    a, ca = connect()
    b, cb = connect()
    await presence.handle(a, "join-room", "R1")
    await presence.handle(b, "join-room", "R1")
    cb.clear()

    field = RELAY_KINDS[kind][1]
    value = {"type": "offer", "sdp": "v=0"} if field == "sdp" else {"candidate": "candidate:1", "sdpMid": "0"}
    await presence.handle(a, kind, {"target": b.id, field: value})

    assert cb.frames == [{"type": kind, "data": {field: value, "from": a.id}}]


@pytest.mark.asyncio
async def test_unknown_target_gets_delivery_failed(presence, connect):
    a, ca = connect()
    await presence.handle(a, "join-room", "R1")
    ca.clear()

    assert await presence.handle(a, "ice-candidate", {"target": "nobody", "candidate": "c"}) is False
    assert ca.frames == [{"type": "delivery-failed", "data": {"event": "ice-candidate", "target": "nobody"}}]


@pytest.mark.asyncio
async def test_target_in_other_room_is_not_reached(presence, connect):
    a, ca = connect()
    b, cb = connect()
    await presence.handle(a, "join-room", "R1")
    await presence.handle(b, "join-room", "R2")
    ca.clear()
    cb.clear()

    await presence.handle(a, "offer", {"target": b.id, "sdp": "x"})

    assert cb.frames == []
    assert ca.of("delivery-failed") == [{"event": "offer", "target": b.id}]


@pytest.mark.asyncio
async def test_dead_target_channel_reports_delivery_failed(presence, connect):
    a, ca = connect()
    b, cb = connect()
    await presence.handle(a, "join-room", "R1")
    await presence.handle(b, "join-room", "R1")
    ca.clear()
    cb.closed = True

    await presence.handle(a, "answer", {"target": b.id, "sdp": "y"})

    assert ca.of("delivery-failed") == [{"event": "answer", "target": b.id}]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    None,
    "just-a-string",
    {"sdp": "x"},
    {"target": "", "sdp": "x"},
    {"target": 5, "sdp": "x"},
    {"target": "abc"},
    {"target": "abc", "sdp": None},
])
async def test_malformed_offer_is_rejected(presence, connect, payload):
    a, ca = connect()
    b, cb = connect()
    await presence.handle(a, "join-room", "R1")
    await presence.handle(b, "join-room", "R1")
    ca.clear()
    cb.clear()

    await presence.handle(a, "offer", payload)

    errors = ca.of("error")
    assert len(errors) == 1
    assert errors[0]["code"] == "invalid_payload"
    assert errors[0]["event"] == "offer"
    assert cb.frames == []


@pytest.mark.asyncio
async def test_candidate_is_required_for_ice(presence, connect):
    a, ca = connect()
    await presence.handle(a, "join-room", "R1")
    ca.clear()
    await presence.handle(a, "screen-ice-candidate", {"target": "x", "sdp": "wrong field"})
    assert ca.of("error")[0]["code"] == "invalid_payload"


@pytest.mark.asyncio
async def test_relay_requires_room(presence, connect):
    a, ca = connect()
    b, cb = connect()
    await presence.handle(a, "offer", {"target": b.id, "sdp": "x"})
    assert ca.of("error")[0]["code"] == "not_in_room"
    assert cb.frames == []
