import asyncio
import random

from scrummy.runtime_rooms import Room, RoomRegistry
from scrummy.runtime_types import User
from scrummy.runtime_utils import RoomNameGenerator


def _join(room, connect, nickname, **kwargs):
    connection = connect(**kwargs)
    room.add_user(User(nickname=nickname, room=room.name, connection=connection))
    return connection


def test_members_keep_join_order(connect):
    room = Room(name="avengers")
    for nickname in ("hank pym", "janet van dyne", "tony stark"):
        _join(room, connect, nickname)

    assert room.nicknames == ["hank pym", "janet van dyne", "tony stark"]
    assert room.users_payload()[0] == {"nickname": "hank pym", "room": "avengers"}
    assert room.has_user("tony stark")
    assert not room.has_user("thor odinson")


async def test_broadcast_survives_a_failing_member(connect):
    room = Room(name="avengers")
    first = _join(room, connect, "hank pym")
    broken = _join(room, connect, "janet van dyne", fail_sends=True)
    last = _join(room, connect, "tony stark")

    delivered = await room.broadcast({"type": "reveal", "data": {}})

    assert delivered == 2
    assert first.types() == ["reveal"]
    assert broken.sent == []
    assert broken.failures == 1
    assert last.types() == ["reveal"]


async def test_broadcast_skips_closed_connections(connect):
    room = Room(name="avengers")
    gone = _join(room, connect, "hank pym")
    here = _join(room, connect, "tony stark")
    gone.open = False

    assert await room.broadcast({"type": "reveal", "data": {}}) == 1
    assert gone.sent == []
    assert here.types() == ["reveal"]
    assert gone.failures == 1
    assert here.failures == 0


async def test_revoke_vote_removes_entry_and_notifies(connect):
    room = Room(name="x")
    watcher = _join(room, connect, "taylor")
    _join(room, connect, "sam")
    room.record_vote("taylor", 3)
    room.record_vote("sam", 5)

    await room.revoke_vote("taylor")

    assert room.votes == {"sam": 5}
    assert watcher.last("clientRevoke")["data"] == {"nickname": "taylor", "votes": {"sam": 5}}


async def test_reset_votes_clears_everything(connect):
    room = Room(name="x")
    watcher = _join(room, connect, "taylor")
    room.record_vote("taylor", 3)

    await room.reset_votes()

    assert room.votes == {}
    assert watcher.last("reset")["data"] == {"votes": {}}


async def test_remove_user_drops_member_and_vote(connect):
    room = Room(name="x")
    leaving = _join(room, connect, "taylor")
    staying = _join(room, connect, "sam")
    room.record_vote("taylor", 3)

    removed = await room.remove_user("taylor")

    assert removed is not None and removed.connection is leaving
    assert room.nicknames == ["sam"]
    assert "taylor" not in room.votes
    assert leaving.sent == []
    assert staying.last("clientDisconnect")["data"] == {
        "nickname": "taylor",
        "users": [{"nickname": "sam", "room": "x"}],
        "votes": {},
    }


async def test_remove_unknown_user_is_silent(connect):
    room = Room(name="x")
    staying = _join(room, connect, "sam")

    assert await room.remove_user("taylor") is None
    assert staying.sent == []


async def test_registry_get_or_create_returns_same_room():
    registry = RoomRegistry()

    first = await registry.get_or_create("avengers")
    second = await registry.get_or_create("avengers")

    assert first is second
    assert len(registry) == 1
    assert await registry.get("avengers") is first
    assert await registry.get("x-men") is None
    assert await registry.get("") is None


async def test_registry_creates_a_single_room_under_concurrent_sign_ins():
    registry = RoomRegistry()

    rooms = await asyncio.gather(*(registry.get_or_create("avengers") for _ in range(20)))

    assert len({id(room) for room in rooms}) == 1
    assert len(registry) == 1


async def test_generated_rooms_avoid_existing_names():
    registry = RoomRegistry()
    await registry.get_or_create("alpha")
    await registry.get_or_create("bravo")
    generator = RoomNameGenerator(["alpha", "bravo", "charlie"], rng=random.Random(2))

    room = await registry.create_generated(generator)

    assert room.name == "charlie"
    assert room.users == []
    assert len(registry) == 3
