from __future__ import annotations

import logging
from collections.abc import Iterable

from orderflow.application.mappers.event_envelope import serialize_event
from orderflow.application.metrics.order_lifecycle import record_publish
from orderflow.application.notifications.events import NotificationEvent
from orderflow.application.ports.publisher import EventPublisher, PublishResult
from orderflow.application.use_cases.context import TraceContext

logger = logging.getLogger(__name__)


def dispatch(
    publisher: EventPublisher,
    events: Iterable[NotificationEvent],
    trace_ctx: TraceContext,
) -> list[PublishResult]:
    """Publish each event in order and log failures. Never raises for a broker error."""
    results: list[PublishResult] = []
    for event in events:
        message = serialize_event(event, trace_ctx)
        try:
            result = publisher.publish(event.topic, message)
        except Exception as exc:
            logger.exception("bus_publish_raised", extra={"topic": event.topic})
            result = PublishResult(topic=event.topic, error=str(exc) or type(exc).__name__)

        record_publish(event.event_type, result.ok)
        if not result.ok:
            logger.warning(
                "bus_publish_failed",
                extra={"topic": event.topic, "event_type": event.event_type, "error": result.error},
            )
        results.append(result)
    return results
