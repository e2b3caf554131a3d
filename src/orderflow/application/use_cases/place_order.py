from __future__ import annotations

import logging
from uuid import uuid4

from orderflow.application.dto.requests import CreateOrderRequest
from orderflow.application.dto.responses import OrderResponse
from orderflow.application.errors import (
    InvalidInputError,
    MenuItemNotFoundError,
    MenuItemUnavailableError,
    OrderflowError,
    PriceMismatchError,
    TableInactiveError,
    TableNotFoundError,
)
from orderflow.application.mappers.order_mapper import to_order_response
from orderflow.application.metrics.order_lifecycle import record_order_placed, record_order_rejected
from orderflow.application.notifications.dispatch import dispatch
from orderflow.application.notifications.events import order_placed_events
from orderflow.application.ports.publisher import EventPublisher
from orderflow.application.ports.repositories import (
    MenuRepository,
    OrderRepository,
    TableRepository,
)
from orderflow.application.use_cases.context import Clock, TraceContext, utc_now
from orderflow.domain.common.ids import MenuItemId, OrderId, OrderLineId, StoreId, TableId
from orderflow.domain.order.entities import OrderLine, create_placed_order
from orderflow.domain.order.pricing import ModifierSelectionError, price_line
from orderflow.domain.table.entities import TableInactiveError as TableNotActive

logger = logging.getLogger(__name__)


def new_order_id() -> OrderId:
    return OrderId(f"ord_{uuid4().hex[:12]}")


def new_line_id() -> OrderLineId:
    return OrderLineId(f"orl_{uuid4().hex[:12]}")


class PlaceOrder:
    """Validate a customer basket against the live menu and persist it as PLACED.

    Prices are recomputed server-side. The declared total is only compared,
    never trusted. Notifications go out after the order is committed.
    """

    def __init__(
        self,
        menu_repository: MenuRepository,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        clock: Clock = utc_now,
    ) -> None:
        self._menu_repository = menu_repository
        self._table_repository = table_repository
        self._order_repository = order_repository
        self._publisher = publisher
        self._clock = clock

    def execute(
        self,
        store_id: StoreId,
        request_dto: CreateOrderRequest,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        try:
            order_lines = self._validate(store_id, request_dto)
        except OrderflowError as exc:
            record_order_rejected(str(store_id), exc.code)
            raise

        note = (request_dto.note or "").strip() or None
        order = create_placed_order(
            order_id=new_order_id(),
            store_id=store_id,
            table_id=TableId(request_dto.table_id),
            lines=order_lines,
            now=self._clock(),
            note=note,
        )
        self._order_repository.add(order)
        record_order_placed(order)
        logger.info(
            "order_placed",
            extra={
                "order_id": str(order.order_id),
                "table_id": str(order.table_id),
                "total_cents": order.total.amount_cents,
            },
        )

        dispatch(self._publisher, order_placed_events(order), trace_ctx)
        return to_order_response(order)

    def _validate(self, store_id: StoreId, request_dto: CreateOrderRequest) -> list[OrderLine]:
        table_id = TableId(request_dto.table_id)
        table = self._table_repository.get(store_id, table_id)
        if table is None:
            raise TableNotFoundError(
                f"table {table_id} not found",
                details={"tableId": str(table_id)},
            )
        try:
            table.ensure_active()
        except TableNotActive as exc:
            raise TableInactiveError(str(exc), details={"tableId": str(table_id)}) from exc

        if not request_dto.items:
            raise InvalidInputError("order must contain at least one item")

        for index, item_request in enumerate(request_dto.items):
            if item_request.quantity < 1:
                raise InvalidInputError(
                    "quantity must be a positive integer",
                    details={"index": index, "itemId": item_request.item_id},
                )

        item_ids = list(dict.fromkeys(MenuItemId(item.item_id) for item in request_dto.items))
        menu_items = self._menu_repository.get_items(store_id, item_ids)

        order_lines: list[OrderLine] = []
        for index, item_request in enumerate(request_dto.items):
            menu_item = menu_items.get(item_request.item_id)
            if menu_item is None:
                raise MenuItemNotFoundError(
                    f"menu item {item_request.item_id} does not exist",
                    details={"itemId": item_request.item_id},
                )
            if not menu_item.is_available:
                raise MenuItemUnavailableError(
                    f"menu item {item_request.item_id} is unavailable",
                    details={"itemId": item_request.item_id},
                )
            try:
                line = price_line(
                    line_id=new_line_id(),
                    item=menu_item,
                    quantity=item_request.quantity,
                    selections=item_request.modifiers,
                )
            except ModifierSelectionError as exc:
                raise InvalidInputError(
                    str(exc),
                    details={"index": index, "itemId": item_request.item_id},
                ) from exc
            order_lines.append(line)

        currencies = {line.line_total.currency for line in order_lines}
        if len(currencies) > 1:
            raise InvalidInputError(
                "order items must share one currency",
                details={"currencies": sorted(currencies)},
            )

        computed_total = sum(line.line_total.amount_cents for line in order_lines)
        if computed_total != request_dto.total_cents:
            raise PriceMismatchError(
                "declared total does not match current menu prices",
                details={
                    "declaredTotalCents": request_dto.total_cents,
                    "computedTotalCents": computed_total,
                    "lines": [
                        {
                            "itemId": str(line.item_id),
                            "declaredPriceCents": item_request.price_cents,
                            "unitPriceCents": line.unit_price_with_modifiers_cents,
                            "lineTotalCents": line.line_total.amount_cents,
                        }
                        for line, item_request in zip(order_lines, request_dto.items)
                    ],
                },
            )
        return order_lines
