import logging
from typing import Any, Dict, Iterable

log = logging.getLogger(__name__)


class ConnectionHub:
    """
    Private channel per connected participant. A channel is anything with an
    async send_json(dict), a FastAPI WebSocket in production.
    Every frame is {"type": event, "data": payload}.
    """

    def __init__(self):
        self.channels: Dict[str, Any] = {}

    def register(self, pid: str, channel):
        self.channels[pid] = channel

    def unregister(self, pid: str):
        self.channels.pop(pid, None)

    def is_connected(self, pid: str) -> bool:
        return pid in self.channels

    async def send(self, pid: str, event: str, data=None) -> bool:
        channel = self.channels.get(pid)
        if channel is None:
            return False
        try:
            await channel.send_json({"type": event, "data": data})
            return True
        except Exception as e:
            log.warning(f"[WS] failed {event} to={pid}: {e}")
            return False

    async def broadcast(self, pids: Iterable[str], event: str, data=None):
        for pid in list(pids):
            await self.send(pid, event, data)
