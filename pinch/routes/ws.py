## WebSocket presence/signaling route
## Frames are JSON {"type": <event>, "data": <payload>} in both directions
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from pinch.config import WS_PATH
from pinch.utils.errors import ErrorCode, PresenceError

log = logging.getLogger(__name__)

router = APIRouter()


def parse_frame(raw):
    if raw is None:
        raise PresenceError(ErrorCode.INVALID_PAYLOAD, reason="binary frames are not supported")
    try:
        msg = json.loads(raw)
    except ValueError:
        raise PresenceError(ErrorCode.INVALID_PAYLOAD, reason="frame is not valid JSON")
    if not isinstance(msg, dict) or not isinstance(msg.get("type"), str):
        raise PresenceError(ErrorCode.INVALID_PAYLOAD, reason="frame must be an object with a string type")
    return msg["type"], msg.get("data")


@router.websocket(WS_PATH)
async def ws_presence(websocket: WebSocket, lang: str = "en"):
    presence = websocket.app.state.presence
    await websocket.accept()
    session = presence.connect(websocket, lang)
    try:
        await presence.hub.send(session.id, "connected", {"id": session.id})
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            try:
                event, data = parse_frame(raw)
            except PresenceError as e:
                log.info(f"[WS] bad frame peer={session.id}: {e}")
                await presence.report_error(session, None, e)
                continue
            await presence.handle(session, event, data)
    except WebSocketDisconnect:
        log.info(f"[WS] socket closed peer={session.id} room={session.room_id}")
    finally:
        await presence.disconnect(session)
