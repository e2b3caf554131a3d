from __future__ import annotations

from orderflow.application.dto.responses import OrderListResponse
from orderflow.application.errors import ForbiddenError, InvalidInputError
from orderflow.application.mappers.order_mapper import to_order_response
from orderflow.application.ports.repositories import InvalidCursorError, OrderRepository
from orderflow.domain.common.ids import StoreId
from orderflow.domain.order.entities import OrderStatus
from orderflow.domain.staff.principal import Principal, describe, is_staff

DEFAULT_LIMIT = 30
MAX_LIMIT = 100


class ListOrders:
    """Newest-first page of orders for staff dashboards."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(
        self,
        store_id: StoreId,
        principal: Principal,
        status: str | None = None,
        limit: int = DEFAULT_LIMIT,
        cursor: str | None = None,
    ) -> OrderListResponse:
        if not is_staff(principal):
            raise ForbiddenError(f"{describe(principal)} may not list orders")

        status_filter: OrderStatus | None = None
        if status and status.upper() != "ALL":
            try:
                status_filter = OrderStatus(status.upper())
            except ValueError as exc:
                raise InvalidInputError(
                    f"invalid order status: {status}",
                    details={"status": status},
                ) from exc
        if limit < 1 or limit > MAX_LIMIT:
            raise InvalidInputError(
                f"limit must be between 1 and {MAX_LIMIT}",
                details={"limit": limit},
            )

        try:
            orders, next_cursor = self._order_repository.list_for_store(
                store_id=store_id,
                status=status_filter,
                limit=limit,
                cursor=cursor,
            )
        except InvalidCursorError as exc:
            raise InvalidInputError("invalid cursor", details={"cursor": cursor}) from exc

        return OrderListResponse(
            orders=[to_order_response(order) for order in orders],
            nextCursor=next_cursor,
        )
