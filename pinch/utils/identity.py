"""
Display name allocation.

A name is one emotion word plus one animal word. Within a room no two
present participants share either word, so a room holds at most
min(len(emotions), len(animals)) participants. Allocation draws only
from the words that are free right now and reports a full room instead
of retrying.
"""

import random
from dataclasses import dataclass
from typing import Optional, Sequence

from pinch.utils.errors import RoomFullError


@dataclass(frozen=True)
class Identity:
    display_name: str
    emotion: str
    animal: str


class IdentityAllocator:
    def __init__(self, emotions: Sequence[str], animals: Sequence[str], rng: Optional[random.Random] = None):
        if not emotions or not animals:
            raise ValueError("both vocabularies must be non-empty")
        if len(set(emotions)) != len(emotions) or len(set(animals)) != len(animals):
            raise ValueError("vocabulary words must be unique")
        self.emotions = tuple(emotions)
        self.animals = tuple(animals)
        self.rng = rng or random.Random()

    @property
    def capacity(self) -> int:
        return min(len(self.emotions), len(self.animals))

    def allocate(self, room) -> Identity:
        free_emotions = [w for w in self.emotions if w not in room.used_emotions]
        free_animals = [w for w in self.animals if w not in room.used_animals]
        if not free_emotions or not free_animals:
            raise RoomFullError(room.room_id, self.capacity)
        emotion = self.rng.choice(free_emotions)
        animal = self.rng.choice(free_animals)
        room.used_emotions.add(emotion)
        room.used_animals.add(animal)
        return Identity(display_name=f"{emotion}{animal}", emotion=emotion, animal=animal)

    def release(self, room, participant) -> None:
        room.used_emotions.discard(participant.emotion)
        room.used_animals.discard(participant.animal)
