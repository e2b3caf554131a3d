from __future__ import annotations

import logging

from orderflow.application.dto.responses import OrderResponse
from orderflow.application.errors import ForbiddenError, OrderNotFoundError
from orderflow.application.ports.repositories import OrderRepository
from orderflow.application.use_cases.context import TraceContext
from orderflow.application.use_cases.transition_order import TransitionOrder
from orderflow.domain.common.ids import OrderId
from orderflow.domain.order.entities import OrderStatus
from orderflow.domain.staff.principal import Principal, describe, may_manage

logger = logging.getLogger(__name__)


def _require_manager(principal: Principal, action: str) -> None:
    if not may_manage(principal):
        raise ForbiddenError(f"{describe(principal)} may not {action}")


class CancelOrder:
    def __init__(self, transition: TransitionOrder) -> None:
        self._transition = transition

    def execute(
        self,
        order_id: OrderId,
        principal: Principal,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        _require_manager(principal, "cancel orders")
        return self._transition.execute(order_id, OrderStatus.CANCELLED, principal, trace_ctx)


class DeleteOrder:
    """Administrative hard delete. Bypasses the lifecycle and publishes nothing."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId, principal: Principal) -> None:
        _require_manager(principal, "delete orders")
        if not self._order_repository.delete(order_id):
            raise OrderNotFoundError(
                f"order {order_id} not found",
                details={"orderId": str(order_id)},
            )
        logger.info(
            "order_deleted",
            extra={"order_id": str(order_id), "principal": describe(principal)},
        )
