from __future__ import annotations

import json
from datetime import timezone
from typing import Any
from uuid import uuid4

from orderflow.application.notifications.events import NotificationEvent
from orderflow.application.use_cases.context import TraceContext

ENVELOPE_KEYS = frozenset({"eventId", "eventType", "ts", "requestId", "traceId"})


def serialize_event(event: NotificationEvent, trace_ctx: TraceContext) -> str:
    envelope: dict[str, Any] = {
        "eventId": str(uuid4()),
        "eventType": event.event_type,
        "ts": event.ts.astimezone(timezone.utc).isoformat(),
        "requestId": trace_ctx.request_id,
        "traceId": trace_ctx.trace_id,
    }
    for key, value in event.payload.items():
        if key in ENVELOPE_KEYS:
            raise ValueError(f"payload field {key} collides with the envelope")
        envelope[key] = value
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def parse_event(message: str) -> dict[str, Any]:
    envelope = json.loads(message)
    if not isinstance(envelope, dict):
        raise ValueError("event envelope must be a JSON object")
    return envelope
