from __future__ import annotations

import logging

from orderflow.application.dto.responses import OrderResponse
from orderflow.application.errors import (
    ConcurrentTransitionError,
    ForbiddenError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from orderflow.application.mappers.order_mapper import to_order_response
from orderflow.application.metrics.order_lifecycle import (
    record_lifecycle_timing,
    record_transition,
    record_transition_conflict,
)
from orderflow.application.notifications.dispatch import dispatch
from orderflow.application.notifications.events import order_transition_events
from orderflow.application.ports.publisher import EventPublisher
from orderflow.application.ports.repositories import OrderRepository
from orderflow.application.use_cases.context import Clock, TraceContext, utc_now
from orderflow.domain.common.ids import OrderId
from orderflow.domain.order.entities import (
    Order,
    OrderStatus,
    OrderTransitionError,
    is_allowed_transition,
)
from orderflow.domain.staff.principal import Principal, describe, may_set_status

logger = logging.getLogger(__name__)


def _invalid_transition(
    order_id: OrderId,
    from_status: OrderStatus,
    to_status: OrderStatus,
) -> InvalidTransitionError:
    return InvalidTransitionError(
        f"cannot move order {order_id} from {from_status.value} to {to_status.value}",
        details={"orderId": str(order_id), "from": from_status.value, "to": to_status.value},
    )


class TransitionOrder:
    """Move an order one step along the lifecycle with a status compare-and-swap.

    Repeating a transition to the status the order already has returns the
    order unchanged and emits nothing.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        clock: Clock = utc_now,
    ) -> None:
        self._order_repository = order_repository
        self._publisher = publisher
        self._clock = clock

    def execute(
        self,
        order_id: OrderId,
        to_status: OrderStatus,
        principal: Principal,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        if not may_set_status(principal, to_status):
            raise ForbiddenError(
                f"{describe(principal)} may not set status {to_status.value}",
                details={"status": to_status.value},
            )

        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(
                f"order {order_id} not found",
                details={"orderId": str(order_id)},
            )

        if order.status == to_status:
            return to_order_response(order)
        try:
            target = order.transition_to(to_status, self._clock())
        except OrderTransitionError:
            raise _invalid_transition(order_id, order.status, to_status) from None

        updated = self._order_repository.compare_and_set_status(
            order_id=order_id,
            expected_status=order.status,
            new_status=target.status,
            now=target.updated_at,
        )
        if updated is None:
            return to_order_response(self._resolve_lost_race(order, to_status))

        record_transition(order.status, to_status)
        record_lifecycle_timing(updated, now=updated.updated_at)
        logger.info(
            "order_status_changed",
            extra={
                "order_id": str(order_id),
                "table_id": str(updated.table_id),
                "from_status": order.status.value,
                "to_status": to_status.value,
                "principal": describe(principal),
            },
        )
        dispatch(self._publisher, order_transition_events(updated, order.status), trace_ctx)
        return to_order_response(updated)

    def _resolve_lost_race(self, expected: Order, to_status: OrderStatus) -> Order:
        current = self._order_repository.get(expected.order_id)
        if current is None:
            record_transition_conflict("deleted")
            raise OrderNotFoundError(
                f"order {expected.order_id} not found",
                details={"orderId": str(expected.order_id)},
            )
        if current.status == to_status:
            record_transition_conflict("same_target")
            return current
        if not is_allowed_transition(current.status, to_status):
            record_transition_conflict("foreclosed")
            raise _invalid_transition(expected.order_id, current.status, to_status)

        record_transition_conflict("retryable")
        raise ConcurrentTransitionError(
            f"order {expected.order_id} changed while updating",
            details={
                "orderId": str(expected.order_id),
                "expected": expected.status.value,
                "current": current.status.value,
            },
        )
