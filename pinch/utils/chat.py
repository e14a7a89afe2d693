import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict

from pinch.utils.errors import ErrorCode, PresenceError

log = logging.getLogger(__name__)


def _utcnow():
    return datetime.now(timezone.utc)


class ChatRelay:
    """
    Persist-then-broadcast chat for a room.

    Append and broadcast run under one lock per room, so every observer sees
    new-message frames of a room in increasing seq order. History reads take
    the same lock; a joiner may still get a new-message it also finds in its
    history, clients drop frames whose seq they have already seen.
    """

    def __init__(self, directory, hub, store, max_length: int = 2000, clock=_utcnow):
        self.directory = directory
        self.hub = hub
        self.store = store
        self.max_length = max_length
        self.clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock(self, room_id: str) -> asyncio.Lock:
        lock = self._locks.get(room_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[room_id] = lock
        return lock

    def forget(self, room_id: str):
        lock = self._locks.get(room_id)
        if lock is not None and not lock.locked() and room_id not in self.directory:
            self._locks.pop(room_id, None)

    async def send(self, session, body):
        if not isinstance(body, str) or not body.strip():
            raise PresenceError(ErrorCode.INVALID_PAYLOAD, event="send-message", reason="message body is empty")
        if len(body) > self.max_length:
            raise PresenceError(
                ErrorCode.INVALID_PAYLOAD,
                event="send-message",
                reason=f"message is longer than {self.max_length} characters",
            )
        if session.room_id is None:
            raise PresenceError(ErrorCode.NOT_IN_ROOM, event="send-message")

        room_id, name = session.room_id, session.name
        try:
            async with self._lock(room_id):
                try:
                    msg = await self.store.append(room_id, name, body, self.clock())
                except Exception as e:
                    log.error(f"[CHAT] append failed room={room_id} peer={session.id}: {e}")
                    raise PresenceError(ErrorCode.MESSAGE_NOT_SENT) from e
                members = [p.id for p in self.directory.members(room_id)]
                log.info(f"[CHAT] message room={room_id} seq={msg.seq} from={session.id} to={len(members)}")
                await self.hub.broadcast(members, "new-message", msg.to_wire())
        finally:
            self.forget(room_id)
        return msg

    async def deliver_history(self, session, room_id: str) -> bool:
        """Send chat-history privately; skipped if the session left the room meanwhile."""
        try:
            async with self._lock(room_id):
                try:
                    history = await self.store.history(room_id)
                except Exception as e:
                    log.error(f"[CHAT] history failed room={room_id} peer={session.id}: {e}")
                    if session.room_id == room_id:
                        raise PresenceError(ErrorCode.HISTORY_UNAVAILABLE, room=room_id) from e
                    return False
                if session.room_id != room_id:
                    return False
                return await self.hub.send(session.id, "chat-history", [m.to_wire() for m in history])
        finally:
            self.forget(room_id)
