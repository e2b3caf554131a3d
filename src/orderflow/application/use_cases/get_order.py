from __future__ import annotations

from orderflow.application.dto.responses import OrderResponse
from orderflow.application.errors import ForbiddenError, OrderNotFoundError
from orderflow.application.mappers.order_mapper import to_order_response
from orderflow.application.ports.repositories import OrderRepository
from orderflow.domain.common.ids import OrderId
from orderflow.domain.staff.principal import Principal, describe, is_staff


class GetOrder:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId, principal: Principal) -> OrderResponse:
        if not is_staff(principal):
            raise ForbiddenError(f"{describe(principal)} may not read orders")
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(
                f"order {order_id} not found",
                details={"orderId": str(order_id)},
            )
        return to_order_response(order)
