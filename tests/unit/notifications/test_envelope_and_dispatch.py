from __future__ import annotations

import json
import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from orderflow.application.mappers.event_envelope import parse_event, serialize_event
from orderflow.application.notifications.dispatch import dispatch
from orderflow.application.notifications.events import (
    NotificationEvent,
    call_event,
    order_placed_events,
    order_transition_events,
)
from orderflow.application.ports.publisher import PublishResult
from orderflow.application.use_cases.context import TraceContext
from orderflow.domain.common.ids import MenuItemId, OrderId, OrderLineId, StoreId, TableId
from orderflow.domain.common.money import Money
from orderflow.domain.order.entities import OrderLine, OrderStatus, create_placed_order

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _order():
    return create_placed_order(
        order_id=OrderId("ord_1"),
        store_id=StoreId("s1"),
        table_id=TableId("t1"),
        lines=[
            OrderLine(
                line_id=OrderLineId("orl_1"),
                item_id=MenuItemId("itm_tea"),
                name="Milk Tea",
                quantity=1,
                unit_price=Money(250, "USD"),
                line_total=Money(250, "USD"),
            )
        ],
        now=NOW,
        note="extra hot",
    )


class RecordingPublisher:
    def __init__(self, fail_topics: set[str] | None = None, raise_topics: set[str] | None = None):
        self.messages: list[tuple[str, str]] = []
        self._fail_topics = fail_topics or set()
        self._raise_topics = raise_topics or set()

    def publish(self, topic: str, message: str) -> PublishResult:
        if topic in self._raise_topics:
            raise ConnectionError("broker gone")
        if topic in self._fail_topics:
            return PublishResult(topic=topic, error="rejected")
        self.messages.append((topic, message))
        return PublishResult(topic=topic)


def test_envelope_is_flat_and_carries_trace_context() -> None:
    event = NotificationEvent(
        topic="stores/s1/tables/t1/ready",
        event_type="order.ready",
        ts=NOW.astimezone(timezone(timedelta(hours=2))),
        payload={"orderId": "ord_1", "tableId": "t1"},
    )

    envelope = parse_event(serialize_event(event, TraceContext(trace_id="abc", request_id="req-1")))

    assert envelope["eventType"] == "order.ready"
    assert envelope["ts"] == "2026-03-01T12:00:00+00:00"
    assert envelope["traceId"] == "abc"
    assert envelope["requestId"] == "req-1"
    assert envelope["orderId"] == "ord_1"
    assert envelope["eventId"]


def test_payload_may_not_shadow_envelope_fields() -> None:
    event = NotificationEvent(topic="t", event_type="x", ts=NOW, payload={"eventType": "other"})
    with pytest.raises(ValueError, match="collides"):
        serialize_event(event, TraceContext.empty())


def test_parse_event_rejects_non_objects() -> None:
    with pytest.raises(ValueError):
        parse_event("[1, 2]")


def test_placed_order_goes_to_printing_and_table_queue() -> None:
    events = order_placed_events(_order())

    assert [event.topic for event in events] == ["stores/s1/printing", "stores/s1/tables/t1/queue"]
    printing = events[0]
    assert printing.event_type == "order.placed"
    assert printing.payload["note"] == "extra hot"
    assert printing.payload["lines"] == [
        {"itemId": "itm_tea", "name": "Milk Tea", "quantity": 1, "modifiers": []}
    ]


@pytest.mark.parametrize(
    ("from_status", "to_status", "expected_topics"),
    [
        (OrderStatus.PLACED, OrderStatus.PREPARING, ["stores/s1/orders/changed"]),
        (
            OrderStatus.PREPARING,
            OrderStatus.READY,
            ["stores/s1/orders/changed", "stores/s1/tables/t1/ready"],
        ),
        (OrderStatus.READY, OrderStatus.SERVED, ["stores/s1/orders/changed"]),
        (
            OrderStatus.PLACED,
            OrderStatus.CANCELLED,
            ["stores/s1/orders/changed", "stores/s1/tables/t1/cancelled"],
        ),
    ],
)
def test_transition_events_per_target(from_status, to_status, expected_topics) -> None:
    order = replace(_order(), status=to_status)
    events = order_transition_events(order, from_status)

    assert [event.topic for event in events] == expected_topics
    assert events[0].payload["fromStatus"] == from_status.value
    assert events[0].payload["status"] == to_status.value


def test_call_event_rejects_unknown_type() -> None:
    assert call_event("s1", "t1", "call.accepted", NOW).topic == "stores/s1/tables/t1/call/accepted"
    with pytest.raises(ValueError):
        call_event("s1", "t1", "call.ignored", NOW)


def test_dispatch_reports_failures_without_raising() -> None:
    events = order_placed_events(_order())
    publisher = RecordingPublisher(raise_topics={"stores/s1/printing"})

    results = dispatch(publisher, events, TraceContext.empty())

    assert [result.ok for result in results] == [False, True]
    assert "broker gone" in (results[0].error or "")
    assert [topic for topic, _ in publisher.messages] == ["stores/s1/tables/t1/queue"]


def test_dispatch_keeps_failed_results() -> None:
    events = order_placed_events(_order())
    publisher = RecordingPublisher(fail_topics={"stores/s1/tables/t1/queue"})

    results = dispatch(publisher, events, TraceContext(trace_id="t", request_id="r"))

    assert [result.ok for result in results] == [True, False]
    message = json.loads(publisher.messages[0][1])
    assert message["requestId"] == "r"
