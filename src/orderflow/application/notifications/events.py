from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from orderflow.application.notifications import topics
from orderflow.domain.order.entities import Order, OrderStatus


@dataclass(frozen=True)
class NotificationEvent:
    """One bus message, built at transition time and discarded after publish."""

    topic: str
    event_type: str
    ts: datetime
    payload: dict[str, Any] = field(default_factory=dict)


def _order_summary(order: Order) -> dict[str, Any]:
    return {
        "orderId": str(order.order_id),
        "tableId": str(order.table_id),
        "status": order.status.value,
        "totalCents": order.total.amount_cents,
        "currency": order.total.currency,
    }


def order_placed_events(order: Order) -> list[NotificationEvent]:
    store_id = str(order.store_id)
    table_id = str(order.table_id)
    summary = _order_summary(order)
    return [
        NotificationEvent(
            topic=topics.printing(store_id),
            event_type="order.placed",
            ts=order.created_at,
            payload={
                **summary,
                "note": order.note,
                "lines": [
                    {
                        "itemId": str(line.item_id),
                        "name": line.name,
                        "quantity": line.quantity,
                        "modifiers": [option.title for option in line.modifiers],
                    }
                    for line in order.lines
                ],
            },
        ),
        NotificationEvent(
            topic=topics.table_queue(store_id, table_id),
            event_type="queue.changed",
            ts=order.created_at,
            payload={"orderId": str(order.order_id), "tableId": table_id},
        ),
    ]


def order_transition_events(order: Order, from_status: OrderStatus) -> list[NotificationEvent]:
    store_id = str(order.store_id)
    table_id = str(order.table_id)
    events = [
        NotificationEvent(
            topic=topics.orders_changed(store_id),
            event_type="order.status_changed",
            ts=order.updated_at,
            payload={**_order_summary(order), "fromStatus": from_status.value},
        )
    ]
    match order.status:
        case OrderStatus.READY:
            events.append(
                NotificationEvent(
                    topic=topics.table_ready(store_id, table_id),
                    event_type="order.ready",
                    ts=order.updated_at,
                    payload={"orderId": str(order.order_id), "tableId": table_id},
                )
            )
        case OrderStatus.CANCELLED:
            events.append(
                NotificationEvent(
                    topic=topics.table_cancelled(store_id, table_id),
                    event_type="order.cancelled",
                    ts=order.updated_at,
                    payload={
                        "orderId": str(order.order_id),
                        "tableId": table_id,
                        "fromStatus": from_status.value,
                    },
                )
            )
        case OrderStatus.PLACED | OrderStatus.PREPARING | OrderStatus.SERVED:
            pass
    return events


def call_event(store_id: str, table_id: str, event_type: str, ts: datetime) -> NotificationEvent:
    match event_type:
        case "call.requested":
            topic = topics.table_call(store_id, table_id)
        case "call.accepted":
            topic = topics.table_call_accepted(store_id, table_id)
        case "call.cleared":
            topic = topics.table_call_cleared(store_id, table_id)
        case _:
            raise ValueError(f"unknown call event type: {event_type}")
    return NotificationEvent(
        topic=topic,
        event_type=event_type,
        ts=ts,
        payload={"tableId": table_id},
    )


def menu_updated_event(
    store_id: str,
    item_id: str,
    is_available: bool,
    ts: datetime,
) -> NotificationEvent:
    return NotificationEvent(
        topic=topics.menu_updated(store_id),
        event_type="menu.updated",
        ts=ts,
        payload={"itemId": item_id, "isAvailable": is_available},
    )
