## Client-visible error codes. A PresenceError raised inside an event
## handler is turned into an "error" frame for that participant only.

from enum import Enum
from typing import Any, Dict


class ErrorCode(str, Enum):
    ROOM_FULL = "room_full"
    NOT_IN_ROOM = "not_in_room"
    INVALID_PAYLOAD = "invalid_payload"
    INVALID_ROOM_ID = "invalid_room_id"
    SCREEN_SHARE_ACTIVE = "screen_share_active"
    MESSAGE_NOT_SENT = "message_not_sent"
    HISTORY_UNAVAILABLE = "history_unavailable"
    UNKNOWN_EVENT = "unknown_event"
    INTERNAL_ERROR = "internal_error"


class PresenceError(Exception):
    """Base exception for failures scoped to one participant."""

    def __init__(self, code: ErrorCode, **details: Any):
        self.code = code
        self.details: Dict[str, Any] = details
        super().__init__(f"{code.value}: {details}" if details else code.value)


class RoomFullError(PresenceError):
    def __init__(self, room_id: str, capacity: int):
        super().__init__(ErrorCode.ROOM_FULL, room=room_id, capacity=capacity)
        self.room_id = room_id
        self.capacity = capacity


class ScreenShareActiveError(PresenceError):
    def __init__(self, sharer_id: str, name: str):
        super().__init__(ErrorCode.SCREEN_SHARE_ACTIVE, id=sharer_id, name=name)
        self.sharer_id = sharer_id
