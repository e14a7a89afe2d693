"""
Screen-share arbitration.

Each room is either Idle (screen_sharer_id is None) or Sharing(owner).
A start request while someone else is sharing is rejected; the active
sharer is never preempted. Only the owner can move the room back to Idle.
"""

import logging
from typing import Optional

from pinch.utils.errors import ErrorCode, PresenceError, ScreenShareActiveError

log = logging.getLogger(__name__)


class ScreenShareArbiter:
    def current(self, room) -> Optional[str]:
        return room.screen_sharer_id

    def start(self, room, participant_id: str) -> bool:
        """Returns True when the room moved from Idle to Sharing(participant_id)."""
        if participant_id not in room.participants:
            raise PresenceError(ErrorCode.NOT_IN_ROOM, event="start-screen-share")
        owner = room.screen_sharer_id
        if owner == participant_id:
            return False
        if owner is not None:
            holder = room.participants[owner]
            log.info(f"[SHARE] rejected room={room.room_id} peer={participant_id} owner={owner}")
            raise ScreenShareActiveError(owner, holder.display_name)
        room.screen_sharer_id = participant_id
        log.info(f"[SHARE] start room={room.room_id} peer={participant_id}")
        return True

    def stop(self, room, participant_id: str) -> bool:
        """Returns True when the room moved from Sharing(participant_id) to Idle."""
        if room.screen_sharer_id != participant_id:
            return False
        room.screen_sharer_id = None
        log.info(f"[SHARE] stop room={room.room_id} peer={participant_id}")
        return True
