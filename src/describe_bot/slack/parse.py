import json
from typing import Any, Dict
from pydantic import ValidationError
from ..errors import MalformedEvent
from ..schemas.events import HandshakeChallenge, IgnoredEvent, InboundEvent, Mention

def parse_event(body: bytes) -> InboundEvent:
    """
    Parse a raw Slack Events API body.
    Returns HandshakeChallenge, Mention (app_mention) or IgnoredEvent for anything else.
    Raises MalformedEvent if the body is not usable.
    """
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedEvent(f"invalid JSON body: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedEvent("event body must be a JSON object")

    # 1. URL Verification (Handshake)
    if payload.get("type") == "url_verification" or "challenge" in payload:
        challenge = payload.get("challenge")
        if not isinstance(challenge, str):
            raise MalformedEvent("url_verification payload without a challenge token")
        return HandshakeChallenge(challenge=challenge)

    # 2. Only event callbacks carry content
    if payload.get("type") != "event_callback":
        return IgnoredEvent(event_type=payload.get("type"))

    event = payload.get("event")
    if not isinstance(event, dict):
        raise MalformedEvent("event_callback payload without an event object")

    event_id = payload.get("event_id")
    if event.get("type") != "app_mention":
        return IgnoredEvent(event_type=event.get("type"), event_id=event_id)

    return _parse_mention(event, event_id)

def _parse_mention(event: Dict[str, Any], event_id: Any) -> Mention:
    try:
        return Mention(
            channel=event["channel"],
            ts=event["ts"],
            text=event.get("text") or "",
            user=event.get("user"),
            thread_ts=event.get("thread_ts") or None,
            event_id=event_id,
        )
    except (KeyError, ValidationError) as e:
        raise MalformedEvent(f"app_mention event is missing required fields: {e}") from e
