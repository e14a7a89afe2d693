"""
Shared fixtures: an isolated presence stack per test with an in-memory chat
store and fake channels that record every frame sent to a participant.
"""

import asyncio
import random

import pytest

from pinch.config import ANIMAL_WORDS, EMOTION_WORDS
from pinch.db.chat import MemoryChatStore
from pinch.utils.hub import ConnectionHub
from pinch.utils.identity import IdentityAllocator
from pinch.utils.presence import PresenceController
from pinch.utils.rooms import RoomDirectory


class FakeChannel:
    def __init__(self):
        self.frames = []
        self.closed = False

    async def send_json(self, data):
        if self.closed:
            raise RuntimeError("channel closed")
        self.frames.append(data)

    def events(self):
        return [f["type"] for f in self.frames]

    def of(self, event):
        return [f["data"] for f in self.frames if f["type"] == event]

    def clear(self):
        self.frames.clear()


class YieldingChannel(FakeChannel):
    """Gives the loop a turn before each frame lands, like a real socket write."""

    async def send_json(self, data):
        await asyncio.sleep(0)
        await super().send_json(data)


class FailingChatStore:
    def __init__(self, fail_append=True, fail_history=False):
        self.fail_append = fail_append
        self.fail_history = fail_history
        self.inner = MemoryChatStore()

    async def append(self, room_id, name, message, timestamp):
        if self.fail_append:
            raise ConnectionError("db down")
        return await self.inner.append(room_id, name, message, timestamp)

    async def history(self, room_id):
        if self.fail_history:
            raise ConnectionError("db down")
        return await self.inner.history(room_id)

    async def close(self):
        await self.inner.close()


@pytest.fixture
def allocator():
    return IdentityAllocator(EMOTION_WORDS, ANIMAL_WORDS, rng=random.Random(1234))


@pytest.fixture
def directory(allocator):
    return RoomDirectory(allocator)


@pytest.fixture
def store():
    return MemoryChatStore()


@pytest.fixture
def presence(directory, store):
    return PresenceController(directory, ConnectionHub(), store)


@pytest.fixture
def connect(presence):
    """Open a fake connection: returns (session, channel)."""

    def _connect(lang="en"):
        channel = FakeChannel()
        session = presence.connect(channel, lang)
        return session, channel

    return _connect
