from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from orderflow.application.dto.requests import CreateOrderRequest
from orderflow.application.errors import (
    InvalidInputError,
    MenuItemNotFoundError,
    MenuItemUnavailableError,
    PriceMismatchError,
    TableInactiveError,
    TableNotFoundError,
)
from orderflow.application.ports.publisher import PublishResult
from orderflow.application.use_cases.context import TraceContext
from orderflow.application.use_cases.place_order import PlaceOrder
from orderflow.domain.common.ids import MenuItemId, ModifierId, ModifierOptionId, StoreId, TableId
from orderflow.domain.common.money import Money
from orderflow.domain.menu.entities import MenuItem, Modifier, ModifierOption
from orderflow.domain.order.entities import Order, OrderStatus
from orderflow.domain.table.entities import Table

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
STORE = StoreId("store_1")


def _tea(is_available: bool = True) -> MenuItem:
    return MenuItem(
        item_id=MenuItemId("itm_tea"),
        name="Milk Tea",
        description=None,
        price_money=Money(250, "USD"),
        is_available=is_available,
        modifiers=[
            Modifier(
                modifier_id=ModifierId("mod_sugar"),
                name="Sugar",
                options=[
                    ModifierOption(ModifierOptionId("opt_none"), "None", 0),
                    ModifierOption(ModifierOptionId("opt_extra"), "Extra", 30),
                ],
            )
        ],
    )


class FakeMenuRepository:
    def __init__(self, items: list[MenuItem]):
        self._items = {str(item.item_id): item for item in items}

    def get_items(self, store_id, item_ids):
        return {
            str(item_id): self._items[str(item_id)]
            for item_id in item_ids
            if str(item_id) in self._items
        }


class FakeTableRepository:
    def __init__(self, tables: list[Table]):
        self._tables = {str(table.table_id): table for table in tables}

    def get(self, store_id, table_id):
        return self._tables.get(str(table_id))


class FakeOrderRepository:
    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}

    def add(self, order: Order) -> None:
        self.orders[str(order.order_id)] = order


class RecordingPublisher:
    def __init__(self, error: str | None = None):
        self.messages: list[tuple[str, str]] = []
        self._error = error

    def publish(self, topic: str, message: str) -> PublishResult:
        self.messages.append((topic, message))
        return PublishResult(topic=topic, error=self._error)


def _use_case(
    items: list[MenuItem] | None = None,
    table_active: bool = True,
    publisher: RecordingPublisher | None = None,
):
    orders = FakeOrderRepository()
    publisher = publisher or RecordingPublisher()
    use_case = PlaceOrder(
        menu_repository=FakeMenuRepository(items if items is not None else [_tea()]),
        table_repository=FakeTableRepository(
            [Table(TableId("tbl_t1"), STORE, "T1", table_active, NOW)]
        ),
        order_repository=orders,
        publisher=publisher,
        clock=lambda: NOW,
    )
    return use_case, orders, publisher


def _request(total_cents: int = 560, **overrides) -> CreateOrderRequest:
    payload = {
        "tableId": "tbl_t1",
        "items": [{"itemId": "itm_tea", "quantity": 2, "modifiers": {"mod_sugar": ["opt_extra"]}}],
        "totalCents": total_cents,
    }
    payload.update(overrides)
    return CreateOrderRequest.model_validate(payload)


def test_place_order_recomputes_total_from_menu() -> None:
    use_case, orders, publisher = _use_case()

    response = use_case.execute(STORE, _request(560), TraceContext.empty())

    assert response.status == OrderStatus.PLACED.value
    assert response.orderId.startswith("ord_")
    assert response.total.amountCents == 560
    assert response.lines[0].lineTotal.amountCents == 560
    assert response.lines[0].modifiers[0].title == "Sugar: Extra"
    assert orders.orders[response.orderId].total == Money(560, "USD")
    assert [topic for topic, _ in publisher.messages] == [
        "stores/store_1/printing",
        "stores/store_1/tables/tbl_t1/queue",
    ]


def test_declared_total_mismatch_is_rejected_and_nothing_is_stored() -> None:
    use_case, orders, publisher = _use_case()

    with pytest.raises(PriceMismatchError) as exc_info:
        use_case.execute(STORE, _request(500), TraceContext.empty())

    assert exc_info.value.code == "PRICE_MISMATCH"
    assert exc_info.value.details["declaredTotalCents"] == 500
    assert exc_info.value.details["computedTotalCents"] == 560
    assert orders.orders == {}
    assert publisher.messages == []


def test_unknown_and_inactive_tables_are_rejected() -> None:
    use_case, _, _ = _use_case()
    with pytest.raises(TableNotFoundError):
        use_case.execute(STORE, _request(tableId="tbl_missing"), TraceContext.empty())

    inactive_use_case, orders, _ = _use_case(table_active=False)
    with pytest.raises(TableInactiveError):
        inactive_use_case.execute(STORE, _request(), TraceContext.empty())
    assert orders.orders == {}


def test_unknown_and_unavailable_items_are_rejected() -> None:
    use_case, _, _ = _use_case(items=[])
    with pytest.raises(MenuItemNotFoundError):
        use_case.execute(STORE, _request(), TraceContext.empty())

    sold_out, _, _ = _use_case(items=[_tea(is_available=False)])
    with pytest.raises(MenuItemUnavailableError):
        sold_out.execute(STORE, _request(), TraceContext.empty())


def test_empty_basket_and_bad_quantity_are_rejected() -> None:
    use_case, _, _ = _use_case()

    with pytest.raises(InvalidInputError, match="at least one item"):
        use_case.execute(STORE, _request(items=[]), TraceContext.empty())
    with pytest.raises(InvalidInputError, match="quantity"):
        use_case.execute(
            STORE,
            _request(items=[{"itemId": "itm_tea", "quantity": 0}]),
            TraceContext.empty(),
        )


def test_invalid_modifier_selection_is_a_validation_error() -> None:
    use_case, _, _ = _use_case()

    with pytest.raises(InvalidInputError) as exc_info:
        use_case.execute(
            STORE,
            _request(
                items=[{"itemId": "itm_tea", "quantity": 1, "modifiers": {"mod_ice": "opt_lots"}}]
            ),
            TraceContext.empty(),
        )
    assert exc_info.value.code == "VALIDATION_ERROR"
    assert exc_info.value.details["itemId"] == "itm_tea"


def test_publish_failure_does_not_fail_the_order() -> None:
    use_case, orders, publisher = _use_case(publisher=RecordingPublisher(error="bus down"))

    response = use_case.execute(STORE, _request(560), TraceContext.empty())

    assert response.orderId in orders.orders
    assert len(publisher.messages) == 2


def test_note_is_trimmed_and_blank_note_dropped() -> None:
    use_case, orders, _ = _use_case()

    noted = use_case.execute(STORE, _request(note="  no ice  "), TraceContext.empty())
    blank = use_case.execute(STORE, _request(note="   "), TraceContext.empty())

    assert orders.orders[noted.orderId].note == "no ice"
    assert orders.orders[blank.orderId].note is None


def test_modifiers_accept_json_text_and_bare_option() -> None:
    request = CreateOrderRequest.model_validate(
        {
            "tableId": "tbl_t1",
            "items": [
                {"itemId": "itm_tea", "quantity": 1, "modifiers": '{"mod_sugar": "opt_extra"}'},
                {"itemId": "itm_tea", "quantity": 1, "modifiers": None},
            ],
            "totalCents": 530,
        }
    )

    assert request.items[0].modifiers == {"mod_sugar": ["opt_extra"]}
    assert request.items[1].modifiers == {}

    use_case, _, _ = _use_case()
    response = use_case.execute(STORE, request, TraceContext.empty())
    assert response.total.amountCents == 530
