from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Histogram

from orderflow.domain.order.entities import Order, OrderStatus

ORDERS_PLACED_TOTAL = Counter(
    "orderflow_orders_placed_total",
    "Total number of orders accepted by the lifecycle engine.",
    ["store_id"],
)

ORDER_REJECTED_TOTAL = Counter(
    "orderflow_order_rejected_total",
    "Total number of order creations rejected before persistence.",
    ["store_id", "reason"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "orderflow_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_TRANSITION_CONFLICT_TOTAL = Counter(
    "orderflow_order_transition_conflict_total",
    "Total number of status compare-and-swap attempts that lost a race.",
    ["outcome"],
)

ORDER_TIME_TO_READY_SECONDS = Histogram(
    "orderflow_order_time_to_ready_seconds",
    "Time between order placement and readiness.",
)

ORDER_TIME_TO_SERVED_SECONDS = Histogram(
    "orderflow_order_time_to_served_seconds",
    "Time between order placement and service.",
)

PUBLISH_TOTAL = Counter(
    "orderflow_bus_publish_total",
    "Total number of bus publishes by outcome.",
    ["event_type", "outcome"],
)

PROJECTION_READS_TOTAL = Counter(
    "orderflow_projection_reads_total",
    "Total number of projection reads by cache outcome.",
    ["projection", "cache"],
)


def record_order_placed(order: Order) -> None:
    ORDERS_PLACED_TOTAL.labels(store_id=str(order.store_id)).inc()


def record_order_rejected(store_id: str, reason: str) -> None:
    ORDER_REJECTED_TOTAL.labels(store_id=store_id, reason=reason).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_transition_conflict(outcome: str) -> None:
    ORDER_TRANSITION_CONFLICT_TOTAL.labels(outcome=outcome).inc()


def record_lifecycle_timing(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    elapsed = max((current - order.created_at).total_seconds(), 0.0)
    if order.status == OrderStatus.READY:
        ORDER_TIME_TO_READY_SECONDS.observe(elapsed)
    elif order.status == OrderStatus.SERVED:
        ORDER_TIME_TO_SERVED_SECONDS.observe(elapsed)


def record_publish(event_type: str, ok: bool) -> None:
    PUBLISH_TOTAL.labels(event_type=event_type, outcome="ok" if ok else "error").inc()


def record_projection_read(projection: str, cache_hit: bool) -> None:
    PROJECTION_READS_TOTAL.labels(
        projection=projection,
        cache="hit" if cache_hit else "miss",
    ).inc()
