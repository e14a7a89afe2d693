## Chat persistence: append-only messages per room, read back by timestamp.
## Callers serialize append() per room (see pinch/utils/chat.py), so the
## MAX(seq)+1 read and the insert never race for the same room.

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

import aiomysql

from pinch.config import (
    CHAT_STORE,
    MYSQL_DB,
    MYSQL_HOST,
    MYSQL_PASSWORD,
    MYSQL_POOL_MAX,
    MYSQL_POOL_MIN,
    MYSQL_PORT,
    MYSQL_USER,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatMessage:
    id: int
    room_id: str
    seq: int
    name: str
    message: str
    timestamp: datetime

    def to_wire(self) -> dict:
        return {
            "id": self.id,
            "roomId": self.room_id,
            "seq": self.seq,
            "name": self.name,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


SCHEMA = """
CREATE TABLE IF NOT EXISTS chat_messages (
    id BIGINT UNSIGNED NOT NULL AUTO_INCREMENT PRIMARY KEY,
    room_id VARCHAR(128) NOT NULL,
    seq BIGINT UNSIGNED NOT NULL,
    name VARCHAR(64) NOT NULL,
    message TEXT NOT NULL,
    ts DATETIME(6) NOT NULL,
    UNIQUE KEY uq_chat_room_seq (room_id, seq),
    KEY ix_chat_room_ts (room_id, ts)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
"""


class MySQLChatStore:
    """Chat history in MariaDB/MySQL; the pool is opened on first use and closed with close()."""

    def __init__(self, pool=None):
        self.pool = pool
        self._pool_lock = asyncio.Lock()
        self._schema_ready = False

    async def _ready_pool(self):
        if self.pool is not None and self._schema_ready:
            return self.pool
        async with self._pool_lock:
            if self.pool is None:
                log.info(f"[DB] opening pool {MYSQL_USER}@{MYSQL_HOST}:{MYSQL_PORT}/{MYSQL_DB}")
                self.pool = await aiomysql.create_pool(
                    host=MYSQL_HOST,
                    port=MYSQL_PORT,
                    user=MYSQL_USER,
                    password=MYSQL_PASSWORD,
                    db=MYSQL_DB,
                    minsize=MYSQL_POOL_MIN,
                    maxsize=MYSQL_POOL_MAX,
                    autocommit=True,
                    charset="utf8mb4",
                )
            if not self._schema_ready:
                async with self.pool.acquire() as conn:
                    async with conn.cursor() as cur:
                        await cur.execute(SCHEMA)
                self._schema_ready = True
        return self.pool

    async def close(self):
        async with self._pool_lock:
            if self.pool is None:
                return
            self.pool.close()
            await self.pool.wait_closed()
            self.pool = None
            self._schema_ready = False

    async def append(self, room_id: str, name: str, message: str, timestamp: datetime) -> ChatMessage:
        pool = await self._ready_pool()
        ## DATETIME has no zone, stored as naive UTC
        ts = timestamp.astimezone(timezone.utc).replace(tzinfo=None)
        async with pool.acquire() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT COALESCE(MAX(seq), 0) + 1 FROM chat_messages WHERE room_id=%s",
                    (room_id,)
                )
                row = await cur.fetchone()
                seq = int(row[0])
                await cur.execute(
                    "INSERT INTO chat_messages (room_id, seq, name, message, ts) "
                    "VALUES (%s, %s, %s, %s, %s)",
                    (room_id, seq, name, message, ts)
                )
                msg_id = cur.lastrowid
        return ChatMessage(
            id=int(msg_id),
            room_id=room_id,
            seq=seq,
            name=name,
            message=message,
            timestamp=ts.replace(tzinfo=timezone.utc),
        )

    async def history(self, room_id: str) -> List[ChatMessage]:
        pool = await self._ready_pool()
        async with pool.acquire() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cur:
                await cur.execute(
                    "SELECT id, room_id, seq, name, message, ts "
                    "FROM chat_messages WHERE room_id=%s "
                    "ORDER BY ts ASC, seq ASC",
                    (room_id,)
                )
                rows = await cur.fetchall()
        return [
            ChatMessage(
                id=int(r["id"]),
                room_id=r["room_id"],
                seq=int(r["seq"]),
                name=r["name"],
                message=r["message"],
                timestamp=r["ts"].replace(tzinfo=timezone.utc),
            )
            for r in rows
        ]


class MemoryChatStore:
    """Process-local store with the same interface, for CHAT_STORE=memory and tests."""

    def __init__(self):
        self._rows: Dict[str, List[ChatMessage]] = {}
        self._next_id = 1

    async def append(self, room_id: str, name: str, message: str, timestamp: datetime) -> ChatMessage:
        rows = self._rows.setdefault(room_id, [])
        msg = ChatMessage(
            id=self._next_id,
            room_id=room_id,
            seq=len(rows) + 1,
            name=name,
            message=message,
            timestamp=timestamp.astimezone(timezone.utc),
        )
        self._next_id += 1
        rows.append(msg)
        return msg

    async def history(self, room_id: str) -> List[ChatMessage]:
        return sorted(self._rows.get(room_id, []), key=lambda m: (m.timestamp, m.seq))

    async def close(self):
        pass


def make_chat_store(kind: Optional[str] = None):
    kind = (kind or CHAT_STORE).lower()
    if kind == "memory":
        return MemoryChatStore()
    if kind == "mysql":
        return MySQLChatStore()
    raise ValueError(f"unknown CHAT_STORE: {kind}")
