import pytest

from pinch.utils.errors import RoomFullError


def _assert_tags_match_members(room):
    assert room.used_emotions == {p.emotion for p in room.participants.values()}
    assert room.used_animals == {p.animal for p in room.participants.values()}


def test_first_join_creates_room(directory):
    assert "R1" not in directory
    result = directory.join("R1", "a")
    assert "R1" in directory
    assert result.others == []
    assert result.previous is None
    assert result.participant.room_id == "R1"


def test_join_returns_others_in_insertion_order(directory):
    directory.join("R1", "a")
    directory.join("R1", "b")
    result = directory.join("R1", "c")
    assert [p.id for p in result.others] == ["a", "b"]
    assert [p.brief()["id"] for p in result.others] == ["a", "b"]


def test_tags_never_shared_across_joins_and_leaves(directory):
    for pid in "abcde":
        directory.join("R1", pid)
    directory.leave("R1", "b")
    directory.leave("R1", "d")
    for pid in "fgh":
        directory.join("R1", pid)
    room = directory.get("R1")
    emotions = [p.emotion for p in room.participants.values()]
    animals = [p.animal for p in room.participants.values()]
    assert len(emotions) == len(set(emotions))
    assert len(animals) == len(set(animals))
    _assert_tags_match_members(room)


def test_leave_releases_tags_and_evicts_empty_room(directory):
    directory.join("R1", "a")
    directory.join("R1", "b")

    result = directory.leave("R1", "a")
    assert result.participant.id == "a"
    assert result.room_empty is False
    _assert_tags_match_members(directory.get("R1"))

    result = directory.leave("R1", "b")
    assert result.room_empty is True
    assert "R1" not in directory
    assert len(directory) == 0


def test_leave_unknown_is_noop(directory):
    assert directory.leave("nope", "a") is None
    directory.join("R1", "a")
    assert directory.leave("R1", "zzz") is None


def test_join_other_room_leaves_previous(directory):
    directory.join("R1", "a")
    directory.join("R1", "b")
    result = directory.join("R2", "a", current_room_id="R1")

    assert result.previous is not None
    assert result.previous.participant.room_id == "R1"
    assert [p.id for p in directory.members("R1")] == ["b"]
    assert [p.id for p in directory.members("R2")] == ["a"]
    _assert_tags_match_members(directory.get("R1"))


def test_rejoin_same_room_gets_fresh_identity(directory):
    directory.join("R1", "a")
    result = directory.join("R1", "a", current_room_id="R1")
    assert result.previous is not None
    assert result.others == []
    assert [p.id for p in directory.members("R1")] == ["a"]
    _assert_tags_match_members(directory.get("R1"))


def test_ninth_join_is_rejected(directory):
    for i in range(8):
        directory.join("R1", f"p{i}")
    with pytest.raises(RoomFullError) as exc:
        directory.join("R1", "p8")
    assert exc.value.room_id == "R1"
    assert len(directory.members("R1")) == 8
    assert directory.participant("R1", "p8") is None


def test_full_room_keeps_current_membership(directory):
    for i in range(8):
        directory.join("R1", f"p{i}")
    directory.join("R2", "x")

    with pytest.raises(RoomFullError):
        directory.join("R1", "x", current_room_id="R2")

    assert directory.participant("R2", "x") is not None


def test_full_room_allows_member_to_rejoin(directory):
    for i in range(8):
        directory.join("R1", f"p{i}")
    result = directory.join("R1", "p3", current_room_id="R1")
    assert result.participant.id == "p3"
    assert len(directory.members("R1")) == 8


def test_leave_clears_screen_share_of_leaver_only(directory):
    directory.join("R1", "a")
    directory.join("R1", "b")
    room = directory.get("R1")
    directory.arbiter.start(room, "a")

    result = directory.leave("R1", "b")
    assert result.stopped_share is False
    assert room.screen_sharer_id == "a"

    directory.join("R1", "c")
    result = directory.leave("R1", "a")
    assert result.stopped_share is True
    assert room.screen_sharer_id is None
