from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from orderflow.application.errors import (
    ConcurrentTransitionError,
    ForbiddenError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from orderflow.application.ports.publisher import PublishResult
from orderflow.application.use_cases.context import TraceContext
from orderflow.application.use_cases.manage_order import CancelOrder, DeleteOrder
from orderflow.application.use_cases.transition_order import TransitionOrder
from orderflow.domain.common.ids import MenuItemId, OrderId, OrderLineId, StaffId, StoreId, TableId
from orderflow.domain.common.money import Money
from orderflow.domain.order.entities import Order, OrderLine, OrderStatus, create_placed_order
from orderflow.domain.staff.principal import Cook, Customer, Manager, Waiter

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
COOK = Cook(StaffId("c1"))
WAITER = Waiter(StaffId("w1"))
MANAGER = Manager(StaffId("m1"))


def _order(status: OrderStatus = OrderStatus.PLACED) -> Order:
    order = create_placed_order(
        order_id=OrderId("ord_1"),
        store_id=StoreId("store_1"),
        table_id=TableId("tbl_t1"),
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
    )
    return replace(order, status=status)


class FakeOrderRepository:
    def __init__(self, *orders: Order) -> None:
        self.orders = {str(order.order_id): order for order in orders}
        self.cas_calls = 0

    def get(self, order_id):
        return self.orders.get(str(order_id))

    def compare_and_set_status(self, order_id, expected_status, new_status, now):
        self.cas_calls += 1
        current = self.orders.get(str(order_id))
        if current is None or current.status != expected_status:
            return None
        updated = replace(current, status=new_status, updated_at=now)
        self.orders[str(order_id)] = updated
        return updated

    def delete(self, order_id) -> bool:
        return self.orders.pop(str(order_id), None) is not None


class RacingOrderRepository(FakeOrderRepository):
    """Another writer wins between the read and the compare-and-set."""

    def __init__(self, order: Order, winner_status: OrderStatus | None) -> None:
        super().__init__(order)
        self._winner_status = winner_status

    def compare_and_set_status(self, order_id, expected_status, new_status, now):
        if self._winner_status is None:
            self.orders.pop(str(order_id), None)
        else:
            self.orders[str(order_id)] = replace(
                self.orders[str(order_id)], status=self._winner_status
            )
        return super().compare_and_set_status(order_id, expected_status, new_status, now)


class RecordingPublisher:
    def __init__(self) -> None:
        self.topics: list[str] = []

    def publish(self, topic: str, message: str) -> PublishResult:
        self.topics.append(topic)
        return PublishResult(topic=topic)


def _transition(repository: FakeOrderRepository, publisher: RecordingPublisher) -> TransitionOrder:
    return TransitionOrder(repository, publisher, clock=lambda: NOW + timedelta(minutes=3))


def test_preparing_emits_one_notification_and_ready_emits_two() -> None:
    repository = FakeOrderRepository(_order())
    publisher = RecordingPublisher()
    use_case = _transition(repository, publisher)

    preparing = use_case.execute(
        OrderId("ord_1"), OrderStatus.PREPARING, COOK, TraceContext.empty()
    )
    assert preparing.status == "PREPARING"
    assert publisher.topics == ["stores/store_1/orders/changed"]

    publisher.topics.clear()
    ready = use_case.execute(OrderId("ord_1"), OrderStatus.READY, COOK, TraceContext.empty())
    assert ready.status == "READY"
    assert ready.updatedAt == NOW + timedelta(minutes=3)
    assert publisher.topics == [
        "stores/store_1/orders/changed",
        "stores/store_1/tables/tbl_t1/ready",
    ]


def test_repeating_a_transition_is_a_silent_no_op() -> None:
    repository = FakeOrderRepository(_order(OrderStatus.PREPARING))
    publisher = RecordingPublisher()

    response = _transition(repository, publisher).execute(
        OrderId("ord_1"), OrderStatus.PREPARING, COOK, TraceContext.empty()
    )

    assert response.status == "PREPARING"
    assert publisher.topics == []
    assert repository.cas_calls == 0


def test_backward_and_skipping_transitions_are_invalid() -> None:
    repository = FakeOrderRepository(_order(OrderStatus.SERVED))
    publisher = RecordingPublisher()

    with pytest.raises(InvalidTransitionError) as exc_info:
        _transition(repository, publisher).execute(
            OrderId("ord_1"), OrderStatus.PREPARING, MANAGER, TraceContext.empty()
        )
    assert exc_info.value.details == {"orderId": "ord_1", "from": "SERVED", "to": "PREPARING"}
    assert repository.cas_calls == 0

    placed = FakeOrderRepository(_order())
    with pytest.raises(InvalidTransitionError):
        _transition(placed, publisher).execute(
            OrderId("ord_1"), OrderStatus.SERVED, WAITER, TraceContext.empty()
        )
    assert placed.cas_calls == 0
    assert publisher.topics == []


def test_roles_are_checked_before_the_order_is_read() -> None:
    repository = FakeOrderRepository()
    use_case = _transition(repository, RecordingPublisher())

    with pytest.raises(ForbiddenError):
        use_case.execute(OrderId("ord_missing"), OrderStatus.READY, WAITER, TraceContext.empty())
    with pytest.raises(ForbiddenError):
        use_case.execute(OrderId("ord_missing"), OrderStatus.SERVED, COOK, TraceContext.empty())
    with pytest.raises(ForbiddenError):
        use_case.execute(
            OrderId("ord_missing"), OrderStatus.PREPARING, Customer(), TraceContext.empty()
        )
    with pytest.raises(OrderNotFoundError):
        use_case.execute(OrderId("ord_missing"), OrderStatus.READY, COOK, TraceContext.empty())


def test_lost_race_to_same_target_returns_current_order() -> None:
    repository = RacingOrderRepository(_order(), winner_status=OrderStatus.PREPARING)
    publisher = RecordingPublisher()

    response = _transition(repository, publisher).execute(
        OrderId("ord_1"), OrderStatus.PREPARING, COOK, TraceContext.empty()
    )

    assert response.status == "PREPARING"
    assert publisher.topics == []


def test_lost_race_to_terminal_status_is_invalid() -> None:
    repository = RacingOrderRepository(
        _order(OrderStatus.READY), winner_status=OrderStatus.CANCELLED
    )

    with pytest.raises(InvalidTransitionError):
        _transition(repository, RecordingPublisher()).execute(
            OrderId("ord_1"), OrderStatus.SERVED, WAITER, TraceContext.empty()
        )


def test_lost_race_with_target_still_reachable_is_a_conflict() -> None:
    repository = RacingOrderRepository(_order(), winner_status=OrderStatus.PREPARING)
    publisher = RecordingPublisher()

    with pytest.raises(ConcurrentTransitionError) as exc_info:
        _transition(repository, publisher).execute(
            OrderId("ord_1"), OrderStatus.CANCELLED, MANAGER, TraceContext.empty()
        )

    assert exc_info.value.details["current"] == "PREPARING"
    assert publisher.topics == []


def test_lost_race_to_a_delete_is_not_found() -> None:
    repository = RacingOrderRepository(_order(), winner_status=None)

    with pytest.raises(OrderNotFoundError):
        _transition(repository, RecordingPublisher()).execute(
            OrderId("ord_1"), OrderStatus.PREPARING, COOK, TraceContext.empty()
        )


def test_manager_cancel_publishes_cancelled_topic() -> None:
    repository = FakeOrderRepository(_order(OrderStatus.READY))
    publisher = RecordingPublisher()
    cancel = CancelOrder(_transition(repository, publisher))

    response = cancel.execute(OrderId("ord_1"), MANAGER, TraceContext.empty())

    assert response.status == "CANCELLED"
    assert publisher.topics == [
        "stores/store_1/orders/changed",
        "stores/store_1/tables/tbl_t1/cancelled",
    ]
    with pytest.raises(ForbiddenError):
        cancel.execute(OrderId("ord_1"), COOK, TraceContext.empty())


def test_delete_is_manager_only_and_reports_missing_orders() -> None:
    repository = FakeOrderRepository(_order(OrderStatus.SERVED))
    delete = DeleteOrder(repository)

    with pytest.raises(ForbiddenError):
        delete.execute(OrderId("ord_1"), WAITER)

    delete.execute(OrderId("ord_1"), MANAGER)
    assert repository.orders == {}
    with pytest.raises(OrderNotFoundError):
        delete.execute(OrderId("ord_1"), MANAGER)
