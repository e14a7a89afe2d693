"""
Presence controller: the event handlers behind the WebSocket route.

Every handler receives the connection's SessionContext. Room state changes
happen synchronously through the RoomDirectory before any frame is sent,
so other events never observe a half-applied join or leave.
"""

import logging
from typing import Optional

from pinch.i18n.messages import tr
from pinch.utils.chat import ChatRelay
from pinch.utils.errors import ErrorCode, PresenceError
from pinch.utils.hub import ConnectionHub
from pinch.utils.relay import RELAY_KINDS, RelayRouter
from pinch.utils.rooms import LeaveResult, RoomDirectory
from pinch.utils.session import SessionContext

log = logging.getLogger(__name__)


class PresenceController:
    def __init__(
        self,
        directory: RoomDirectory,
        hub: ConnectionHub,
        chat_store,
        max_message_length: int = 2000,
        max_room_id_length: int = 128,
    ):
        self.directory = directory
        self.hub = hub
        self.chat = ChatRelay(directory, hub, chat_store, max_length=max_message_length)
        self.relay = RelayRouter(directory, hub)
        self.max_room_id_length = max_room_id_length
        self.handlers = {
            "join-room": self.join,
            "leave-room": self.leave,
            "send-message": self.send_message,
            "start-screen-share": self.start_screen_share,
            "stop-screen-share": self.stop_screen_share,
        }

    ## connection lifecycle

    def connect(self, channel, lang: str = "en") -> SessionContext:
        session = SessionContext.new(lang)
        self.hub.register(session.id, channel)
        log.info(f"[WS] connected peer={session.id}")
        return session

    async def disconnect(self, session: SessionContext):
        self.hub.unregister(session.id)
        if session.room_id is not None:
            room_id = session.room_id
            result = self.directory.leave(room_id, session.id)
            session.clear()
            if result:
                await self._announce_leave(room_id, result)
        log.info(f"[WS] disconnect peer={session.id}")

    async def handle(self, session: SessionContext, event: str, data=None):
        """Dispatch one inbound event, turning failures into an error frame for this session only."""
        try:
            if event in RELAY_KINDS:
                return await self.relay.relay(event, session, data)
            handler = self.handlers.get(event)
            if handler is None:
                raise PresenceError(ErrorCode.UNKNOWN_EVENT, event=event)
            return await handler(session, data)
        except PresenceError as e:
            log.info(f"[WS] {event} rejected peer={session.id} code={e.code.value}")
            await self.report_error(session, event, e)
        except Exception as e:
            log.exception(f"[WS] {event} failed peer={session.id}: {e}")
            await self.report_error(session, event, PresenceError(ErrorCode.INTERNAL_ERROR))
        return None

    async def report_error(self, session: SessionContext, event: Optional[str], err: PresenceError):
        fmt = dict({"event": event or "", "limit": self.max_room_id_length}, **err.details)
        await self.hub.send(session.id, "error", {
            "code": err.code.value,
            "message": tr(f"error.{err.code.value}", session.lang, **fmt),
            "event": event,
            "details": err.details,
        })

    ## room membership

    def _validate_room_id(self, room_id) -> str:
        if isinstance(room_id, str):
            room_id = room_id.strip()
            if room_id and len(room_id) <= self.max_room_id_length:
                return room_id
        raise PresenceError(ErrorCode.INVALID_ROOM_ID)

    async def join(self, session: SessionContext, room_id):
        room_id = self._validate_room_id(room_id)
        old_room_id = session.room_id
        result = self.directory.join(room_id, session.id, old_room_id)
        me = result.participant
        session.enter(room_id, me.display_name)

        ## snapshot before the first await
        others = [p.brief() for p in result.others]

        if result.previous is not None:
            await self._announce_leave(old_room_id, result.previous)

        await self.hub.send(session.id, "name-assigned", me.display_name)
        await self.hub.send(session.id, "existing-users", others)
        ## re-read after the sends above: a stop in between was already
        ## broadcast to this joiner as a member
        room = self.directory.get(room_id)
        sharer = room.sharer if room and session.room_id == room_id else None
        if sharer is not None:
            await self.hub.send(session.id, "user-started-screen-share", sharer.brief())
        await self.hub.broadcast([p["id"] for p in others], "user-joined", me.brief())
        log.info(f"[WS] joined room={room_id} peer={session.id} name={me.display_name} existing={len(others)}")

        await self.chat.deliver_history(session, room_id)
        return me

    async def leave(self, session: SessionContext, _data=None):
        if session.room_id is None:
            return None
        room_id = session.room_id
        result = self.directory.leave(room_id, session.id)
        session.clear()
        if result:
            await self._announce_leave(room_id, result)
        return result

    async def _announce_leave(self, room_id: str, result: LeaveResult):
        pid = result.participant.id
        if result.room_empty:
            self.chat.forget(room_id)
        ## pid is a member again when it re-joined the same room
        remaining = [p.id for p in self.directory.members(room_id) if p.id != pid]
        if result.stopped_share:
            await self.hub.broadcast(remaining, "user-stopped-screen-share", {"id": pid})
        await self.hub.broadcast(remaining, "user-disconnected", pid)
        log.info(f"[WS] peer-left room={room_id} peer={pid} notified={len(remaining)}")

    ## chat

    async def send_message(self, session: SessionContext, body):
        return await self.chat.send(session, body)

    ## screen share

    def _room_of(self, session: SessionContext, event: str):
        room = self.directory.get(session.room_id)
        if room is None or session.id not in room.participants:
            raise PresenceError(ErrorCode.NOT_IN_ROOM, event=event)
        return room

    async def start_screen_share(self, session: SessionContext, _data=None) -> bool:
        room = self._room_of(session, "start-screen-share")
        if not self.directory.arbiter.start(room, session.id):
            return False
        me = room.participants[session.id]
        others = [p.id for p in room.list_peers_except(session.id)]
        await self.hub.broadcast(others, "user-started-screen-share", me.brief())
        return True

    async def stop_screen_share(self, session: SessionContext, _data=None) -> bool:
        room = self._room_of(session, "stop-screen-share")
        if not self.directory.arbiter.stop(room, session.id):
            return False
        others = [p.id for p in room.list_peers_except(session.id)]
        await self.hub.broadcast(others, "user-stopped-screen-share", {"id": session.id})
        return True
