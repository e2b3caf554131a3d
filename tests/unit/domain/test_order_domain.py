from __future__ import annotations

import itertools
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from orderflow.domain.common.ids import MenuItemId, OrderId, OrderLineId, StoreId, TableId
from orderflow.domain.common.money import Money
from orderflow.domain.order.entities import (
    ALLOWED_TRANSITIONS,
    Order,
    OrderLine,
    OrderStatus,
    OrderTransitionError,
    create_placed_order,
    is_allowed_transition,
)
from orderflow.domain.table.entities import Table, TableInactiveError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _line(quantity: int = 2, unit_cents: int = 250) -> OrderLine:
    return OrderLine(
        line_id=OrderLineId("orl_1"),
        item_id=MenuItemId("itm_tea"),
        name="Milk Tea",
        quantity=quantity,
        unit_price=Money(unit_cents, "USD"),
        line_total=Money(unit_cents * quantity, "USD"),
    )


def _order(status: OrderStatus = OrderStatus.PLACED) -> Order:
    order = create_placed_order(
        order_id=OrderId("ord_1"),
        store_id=StoreId("store_1"),
        table_id=TableId("tbl_t1"),
        lines=[_line()],
        now=NOW,
    )
    if status == OrderStatus.PLACED:
        return order
    return Order(
        order_id=order.order_id,
        store_id=order.store_id,
        table_id=order.table_id,
        status=status,
        lines=order.lines,
        total=order.total,
        created_at=NOW,
        updated_at=NOW,
    )


def test_money_rejects_negative_and_float_amounts() -> None:
    with pytest.raises(ValueError):
        Money(-1, "USD")
    with pytest.raises(ValueError):
        Money(1.5, "USD")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        Money(100, "usd")


def test_money_addition_requires_same_currency() -> None:
    assert Money(100, "USD") + Money(50, "USD") == Money(150, "USD")
    with pytest.raises(ValueError, match="currency mismatch"):
        Money(100, "USD") + Money(50, "EUR")


def test_placed_order_total_is_sum_of_lines() -> None:
    order = create_placed_order(
        order_id=OrderId("ord_1"),
        store_id=StoreId("store_1"),
        table_id=TableId("tbl_t1"),
        lines=[_line(quantity=2, unit_cents=250), _line(quantity=1, unit_cents=900)],
        now=NOW,
        note="no onions",
    )

    assert order.status == OrderStatus.PLACED
    assert order.total == Money(1400, "USD")
    assert order.created_at == order.updated_at == NOW
    assert order.note == "no onions"


def test_order_requires_at_least_one_line() -> None:
    with pytest.raises(ValueError, match="at least one line"):
        create_placed_order(
            order_id=OrderId("ord_1"),
            store_id=StoreId("store_1"),
            table_id=TableId("tbl_t1"),
            lines=[],
            now=NOW,
        )


def test_line_rejects_zero_quantity_and_wrong_total() -> None:
    with pytest.raises(ValueError, match="quantity"):
        _line(quantity=0)
    with pytest.raises(ValueError, match="line_total"):
        OrderLine(
            line_id=OrderLineId("orl_1"),
            item_id=MenuItemId("itm_tea"),
            name="Milk Tea",
            quantity=2,
            unit_price=Money(250, "USD"),
            line_total=Money(400, "USD"),
        )


def test_note_longer_than_limit_is_rejected() -> None:
    with pytest.raises(ValueError, match="note"):
        create_placed_order(
            order_id=OrderId("ord_1"),
            store_id=StoreId("store_1"),
            table_id=TableId("tbl_t1"),
            lines=[_line()],
            now=NOW,
            note="x" * 501,
        )


def test_transition_whitelist_is_exactly_the_lifecycle_edges() -> None:
    expected = {
        (OrderStatus.PLACED, OrderStatus.PREPARING),
        (OrderStatus.PLACED, OrderStatus.CANCELLED),
        (OrderStatus.PREPARING, OrderStatus.READY),
        (OrderStatus.PREPARING, OrderStatus.CANCELLED),
        (OrderStatus.READY, OrderStatus.SERVED),
        (OrderStatus.READY, OrderStatus.CANCELLED),
    }
    assert set(ALLOWED_TRANSITIONS) == expected

    for from_status, to_status in itertools.product(OrderStatus, OrderStatus):
        assert is_allowed_transition(from_status, to_status) == (
            (from_status, to_status) in expected
        )


def test_terminal_statuses_have_no_outgoing_edges() -> None:
    for terminal in (OrderStatus.SERVED, OrderStatus.CANCELLED):
        assert _order(terminal).is_terminal
        for target in OrderStatus:
            assert not is_allowed_transition(terminal, target)


def test_transition_to_updates_status_and_timestamp() -> None:
    later = NOW + timedelta(minutes=5)
    moved = _order().transition_to(OrderStatus.PREPARING, later)

    assert moved.status == OrderStatus.PREPARING
    assert moved.updated_at == later
    assert moved.created_at == NOW


def test_transition_to_rejects_skipping_a_step() -> None:
    with pytest.raises(OrderTransitionError):
        _order().transition_to(OrderStatus.SERVED, NOW)


def test_table_label_limits_and_activation() -> None:
    with pytest.raises(ValueError):
        Table(TableId("tbl_x"), StoreId("store_1"), " ", True, NOW)
    with pytest.raises(ValueError):
        Table(TableId("tbl_x"), StoreId("store_1"), "x" * 51, True, NOW)

    table = Table(TableId("tbl_x"), StoreId("store_1"), "Patio 1", True, NOW)
    inactive = table.deactivate()
    assert not inactive.is_active
    assert inactive.activate().is_active
    with pytest.raises(TableInactiveError):
        inactive.ensure_active()
