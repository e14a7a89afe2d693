## Targeted relay of WebRTC negotiation payloads. The server never looks
## inside sdp/candidate, it only checks they are present and forwards them
## to one participant of the sender's room.

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from pinch.utils.errors import ErrorCode, PresenceError

log = logging.getLogger(__name__)


class SdpPayload(BaseModel):
    target: str = Field(..., min_length=1)
    sdp: Any

    @field_validator("sdp")
    @classmethod
    def _sdp_present(cls, v):
        if v is None:
            raise ValueError("sdp is required")
        return v


class CandidatePayload(BaseModel):
    target: str = Field(..., min_length=1)
    candidate: Any

    @field_validator("candidate")
    @classmethod
    def _candidate_present(cls, v):
        if v is None:
            raise ValueError("candidate is required")
        return v


## event -> (payload model, forwarded field)
RELAY_KINDS = {
    "offer": (SdpPayload, "sdp"),
    "answer": (SdpPayload, "sdp"),
    "ice-candidate": (CandidatePayload, "candidate"),
    "screen-offer": (SdpPayload, "sdp"),
    "screen-answer": (SdpPayload, "sdp"),
    "screen-ice-candidate": (CandidatePayload, "candidate"),
}


def _reason(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(x) for x in e.get("loc", ())) or "payload"
        parts.append(f"{loc}: {e.get('msg', 'invalid')}")
    return "; ".join(parts)


class RelayRouter:
    def __init__(self, directory, hub):
        self.directory = directory
        self.hub = hub

    def parse(self, kind: str, payload):
        model, field = RELAY_KINDS[kind]
        if not isinstance(payload, dict):
            raise PresenceError(ErrorCode.INVALID_PAYLOAD, event=kind, reason="expected an object")
        try:
            msg = model.model_validate(payload)
        except ValidationError as e:
            raise PresenceError(ErrorCode.INVALID_PAYLOAD, event=kind, reason=_reason(e)) from e
        return msg.target, getattr(msg, field), field

    async def relay(self, kind: str, session, payload) -> bool:
        """
        Forward payload to its target as {<sdp|candidate>, from}.
        Returns False and tells the sender with delivery-failed when the
        target is not a connected member of the sender's room.
        """
        target, value, field = self.parse(kind, payload)
        if session.room_id is None:
            raise PresenceError(ErrorCode.NOT_IN_ROOM, event=kind)

        delivered = False
        if self.directory.participant(session.room_id, target) is not None:
            delivered = await self.hub.send(target, kind, {field: value, "from": session.id})

        if delivered:
            log.debug(f"[WS] relay {kind} room={session.room_id} from={session.id} to={target}")
            return True
        log.info(f"[WS] relay skip unknown target {kind} room={session.room_id} from={session.id} to={target}")
        await self.hub.send(session.id, "delivery-failed", {"event": kind, "target": target})
        return False
