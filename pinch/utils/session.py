import secrets
from dataclasses import dataclass
from typing import Optional


## Per-connection state: id is issued on connect, room/name change on join
## and are cleared on leave. The record is dropped on disconnect.
@dataclass
class SessionContext:
    id: str
    lang: str = "en"
    room_id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def new(cls, lang: str = "en") -> "SessionContext":
        return cls(id=secrets.token_hex(4), lang=lang or "en")

    def enter(self, room_id: str, name: str):
        self.room_id = room_id
        self.name = name

    def clear(self):
        self.room_id = None
        self.name = None
