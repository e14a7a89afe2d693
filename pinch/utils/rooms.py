import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, List

from pinch.utils.errors import RoomFullError
from pinch.utils.identity import IdentityAllocator
from pinch.utils.screenshare import ScreenShareArbiter

log = logging.getLogger(__name__)


@dataclass
class Participant:
    id: str
    room_id: str
    display_name: str
    emotion: str
    animal: str

    def brief(self) -> dict:
        return {"id": self.id, "name": self.display_name}


@dataclass
class RoomState:
    room_id: str
    participants: Dict[str, Participant] = field(default_factory=dict)
    used_emotions: set = field(default_factory=set)
    used_animals: set = field(default_factory=set)
    screen_sharer_id: Optional[str] = None

    def list_peers_except(self, pid: str) -> List[Participant]:
        return [p for k, p in self.participants.items() if k != pid]

    @property
    def sharer(self) -> Optional[Participant]:
        if self.screen_sharer_id is None:
            return None
        return self.participants.get(self.screen_sharer_id)


@dataclass
class LeaveResult:
    participant: Participant
    stopped_share: bool
    room_empty: bool


@dataclass
class JoinResult:
    participant: Participant
    others: List[Participant]
    previous: Optional[LeaveResult] = None


class RoomDirectory:
    """
    In-memory room table for one server process.

    None of the methods await, so under a single event loop every call is
    atomic with respect to other events. Rooms are created on first join and
    dropped when the last participant leaves.
    """

    def __init__(self, allocator: IdentityAllocator, arbiter: Optional[ScreenShareArbiter] = None):
        self.allocator = allocator
        self.arbiter = arbiter or ScreenShareArbiter()
        self.rooms: Dict[str, RoomState] = {}

    def __contains__(self, room_id: str) -> bool:
        return room_id in self.rooms

    def __len__(self) -> int:
        return len(self.rooms)

    def get(self, room_id: Optional[str]) -> Optional[RoomState]:
        if room_id is None:
            return None
        return self.rooms.get(room_id)

    def members(self, room_id: str) -> List[Participant]:
        room = self.rooms.get(room_id)
        return list(room.participants.values()) if room else []

    def participant(self, room_id: Optional[str], pid: str) -> Optional[Participant]:
        room = self.get(room_id)
        return room.participants.get(pid) if room else None

    def join(self, room_id: str, pid: str, current_room_id: Optional[str] = None) -> JoinResult:
        room = self.rooms.get(room_id)
        ## Capacity check happens before the old membership is torn down,
        ## a rejected join leaves the participant where it was
        if room is not None and current_room_id != room_id:
            if len(room.participants) >= self.allocator.capacity:
                log.info(f"[ROOMS] full room={room_id} peer={pid}")
                raise RoomFullError(room_id, self.allocator.capacity)

        previous = None
        if current_room_id is not None:
            previous = self.leave(current_room_id, pid)

        room = self.rooms.get(room_id)
        if room is None:
            room = RoomState(room_id=room_id)
            self.rooms[room_id] = room
        identity = self.allocator.allocate(room)
        others = list(room.participants.values())
        participant = Participant(
            id=pid,
            room_id=room_id,
            display_name=identity.display_name,
            emotion=identity.emotion,
            animal=identity.animal,
        )
        room.participants[pid] = participant
        log.info(f"[ROOMS] joined room={room_id} peer={pid} name={participant.display_name} others={len(others)}")
        return JoinResult(participant=participant, others=others, previous=previous)

    def leave(self, room_id: str, pid: str) -> Optional[LeaveResult]:
        room = self.rooms.get(room_id)
        if not room:
            return None
        participant = room.participants.pop(pid, None)
        if participant is None:
            return None
        self.allocator.release(room, participant)
        stopped = self.arbiter.stop(room, pid)
        empty = not room.participants
        if empty:
            self.rooms.pop(room_id, None)
        log.info(f"[ROOMS] left room={room_id} peer={pid} stopped_share={stopped} empty={empty}")
        return LeaveResult(participant=participant, stopped_share=stopped, room_empty=empty)
