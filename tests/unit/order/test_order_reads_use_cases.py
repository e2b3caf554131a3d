from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from orderflow.application.errors import ForbiddenError, InvalidInputError, OrderNotFoundError
from orderflow.application.ports.repositories import InvalidCursorError, OrderStatRow
from orderflow.application.use_cases.get_order import GetOrder
from orderflow.application.use_cases.list_orders import ListOrders
from orderflow.application.use_cases.projections import (
    GetOrderSeries,
    GetQueueAhead,
    GetStatusCounts,
    GetTableActivity,
    truncate_to_bucket,
)
from orderflow.domain.common.ids import MenuItemId, OrderId, OrderLineId, StaffId, StoreId, TableId
from orderflow.domain.common.money import Money
from orderflow.domain.order.entities import (
    ACTIVE_STATUSES,
    Order,
    OrderLine,
    OrderStatus,
    create_placed_order,
)
from orderflow.domain.staff.principal import Cook, Customer, Manager, Waiter
from orderflow.domain.table.entities import Table
from orderflow.infrastructure.cache.memory_cache import InMemoryTTLCache

NOW = datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc)
STORE = StoreId("store_1")
MANAGER = Manager(StaffId("m1"))


def _order(
    order_id: str,
    status: OrderStatus = OrderStatus.PLACED,
    minutes_ago: int = 0,
    table_id: str = "tbl_t1",
    total_cents: int = 250,
) -> Order:
    created_at = NOW - timedelta(minutes=minutes_ago)
    order = create_placed_order(
        order_id=OrderId(order_id),
        store_id=STORE,
        table_id=TableId(table_id),
        lines=[
            OrderLine(
                line_id=OrderLineId(f"orl_{order_id}"),
                item_id=MenuItemId("itm_tea"),
                name="Milk Tea",
                quantity=1,
                unit_price=Money(total_cents, "USD"),
                line_total=Money(total_cents, "USD"),
            )
        ],
        now=created_at,
    )
    return replace(order, status=status)


class FakeOrderRepository:
    def __init__(self, *orders: Order) -> None:
        self.orders = {str(order.order_id): order for order in orders}
        self.list_calls: list[tuple] = []
        self.count_calls = 0
        self.series_calls = 0

    def get(self, order_id):
        return self.orders.get(str(order_id))

    def list_for_store(self, store_id, status, limit, cursor):
        self.list_calls.append((status, limit, cursor))
        if cursor == "garbage":
            raise InvalidCursorError("bad cursor")
        rows = [o for o in self.orders.values() if status is None or o.status == status]
        rows.sort(key=lambda o: o.created_at, reverse=True)
        return rows[:limit], None

    def count_by_status(self, store_id):
        counts: dict[OrderStatus, int] = {}
        for order in self.orders.values():
            counts[order.status] = counts.get(order.status, 0) + 1
        return counts

    def count_in_statuses(self, store_id, statuses, created_before=None):
        self.count_calls += 1
        return sum(
            1
            for order in self.orders.values()
            if order.status in statuses
            and (created_before is None or order.created_at < created_before)
        )

    def count_active_by_table(self, store_id):
        counts: dict[str, int] = {}
        for order in self.orders.values():
            if order.status in ACTIVE_STATUSES:
                counts[str(order.table_id)] = counts.get(str(order.table_id), 0) + 1
        return counts

    def list_created_between(self, store_id, start, end):
        self.series_calls += 1
        return [
            OrderStatRow(created_at=o.created_at, status=o.status, total_cents=o.total.amount_cents)
            for o in self.orders.values()
            if start <= o.created_at < end
        ]


class FakeTableRepository:
    def __init__(self, *tables: Table) -> None:
        self._tables = list(tables)

    def list_for_store(self, store_id, *, active_only=False):
        return [t for t in self._tables if t.is_active or not active_only]


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_get_order_is_staff_only() -> None:
    repository = FakeOrderRepository(_order("ord_1"))

    assert GetOrder(repository).execute(OrderId("ord_1"), Cook(StaffId("c1"))).orderId == "ord_1"
    with pytest.raises(ForbiddenError):
        GetOrder(repository).execute(OrderId("ord_1"), Customer())
    with pytest.raises(OrderNotFoundError):
        GetOrder(repository).execute(OrderId("ord_2"), MANAGER)


def test_list_orders_filters_by_status() -> None:
    repository = FakeOrderRepository(
        _order("ord_1", OrderStatus.PLACED, minutes_ago=5),
        _order("ord_2", OrderStatus.READY, minutes_ago=1),
    )
    use_case = ListOrders(repository)

    everything = use_case.execute(STORE, Waiter(StaffId("w1")), status="all")
    ready = use_case.execute(STORE, MANAGER, status="ready", limit=10)

    assert [order.orderId for order in everything.orders] == ["ord_2", "ord_1"]
    assert [order.orderId for order in ready.orders] == ["ord_2"]
    assert repository.list_calls[-1] == (OrderStatus.READY, 10, None)


def test_list_orders_rejects_bad_arguments() -> None:
    use_case = ListOrders(FakeOrderRepository())

    with pytest.raises(InvalidInputError):
        use_case.execute(STORE, MANAGER, status="eaten")
    with pytest.raises(InvalidInputError):
        use_case.execute(STORE, MANAGER, limit=0)
    with pytest.raises(InvalidInputError):
        use_case.execute(STORE, MANAGER, limit=101)
    with pytest.raises(InvalidInputError, match="cursor"):
        use_case.execute(STORE, MANAGER, cursor="garbage")
    with pytest.raises(ForbiddenError):
        use_case.execute(STORE, Customer())


def test_queue_ahead_counts_placed_and_preparing() -> None:
    repository = FakeOrderRepository(
        _order("ord_1", OrderStatus.PREPARING, minutes_ago=20),
        _order("ord_2", OrderStatus.PLACED, minutes_ago=10),
        _order("ord_3", OrderStatus.PLACED, minutes_ago=5),
        _order("ord_4", OrderStatus.READY, minutes_ago=30),
        _order("ord_5", OrderStatus.CANCELLED, minutes_ago=25),
    )
    use_case = GetQueueAhead(repository, InMemoryTTLCache(), ttl_seconds=0)

    assert use_case.execute(STORE).ahead == 3
    assert use_case.execute(STORE, OrderId("ord_3")).ahead == 2
    assert use_case.execute(STORE, OrderId("ord_1")).ahead == 0
    assert use_case.execute(STORE, OrderId("ord_4")).ahead == 0
    with pytest.raises(OrderNotFoundError):
        use_case.execute(STORE, OrderId("ord_missing"))


def test_queue_ahead_is_cached_for_the_ttl() -> None:
    clock = FakeClock()
    repository = FakeOrderRepository(_order("ord_1"))
    use_case = GetQueueAhead(repository, InMemoryTTLCache(clock=clock), ttl_seconds=2.0)

    assert use_case.execute(STORE).ahead == 1
    repository.orders["ord_2"] = _order("ord_2")
    assert use_case.execute(STORE).ahead == 1

    clock.now = 2.5
    assert use_case.execute(STORE).ahead == 2
    assert repository.count_calls == 2


def test_status_counts_are_zero_filled() -> None:
    repository = FakeOrderRepository(
        _order("ord_1", OrderStatus.PLACED),
        _order("ord_2", OrderStatus.PLACED),
        _order("ord_3", OrderStatus.SERVED),
    )

    use_case = GetStatusCounts(repository, InMemoryTTLCache(), ttl_seconds=0)
    response = use_case.execute(STORE, MANAGER)

    assert response.counts == {
        "PLACED": 2,
        "PREPARING": 0,
        "READY": 0,
        "SERVED": 1,
        "CANCELLED": 0,
    }
    assert response.total == 3
    with pytest.raises(ForbiddenError):
        GetStatusCounts(repository, InMemoryTTLCache()).execute(STORE, Waiter(StaffId("w1")))


def test_table_activity_lists_every_active_table() -> None:
    tables = FakeTableRepository(
        Table(TableId("tbl_t1"), STORE, "T1", True, NOW),
        Table(TableId("tbl_t2"), STORE, "T2", True, NOW),
        Table(TableId("tbl_t3"), STORE, "T3", False, NOW),
    )
    repository = FakeOrderRepository(
        _order("ord_1", OrderStatus.PLACED, table_id="tbl_t1"),
        _order("ord_2", OrderStatus.READY, table_id="tbl_t1"),
        _order("ord_3", OrderStatus.SERVED, table_id="tbl_t2"),
    )

    response = GetTableActivity(tables, repository, InMemoryTTLCache(), ttl_seconds=0).execute(
        STORE, MANAGER
    )

    assert [(t.tableId, t.label, t.activeOrders) for t in response.tables] == [
        ("tbl_t1", "T1", 2),
        ("tbl_t2", "T2", 0),
    ]


def test_series_buckets_are_zero_filled_and_skip_cancelled_revenue() -> None:
    repository = FakeOrderRepository(
        _order("ord_1", OrderStatus.SERVED, minutes_ago=10, total_cents=500),
        _order("ord_2", OrderStatus.CANCELLED, minutes_ago=20, total_cents=900),
        _order("ord_3", OrderStatus.PLACED, minutes_ago=130, total_cents=300),
    )
    use_case = GetOrderSeries(
        repository,
        InMemoryTTLCache(),
        currency="USD",
        ttl_seconds=0,
        clock=lambda: NOW,
    )

    response = use_case.execute(
        STORE,
        MANAGER,
        bucket="hour",
        start=NOW - timedelta(hours=3),
        end=NOW,
    )

    summary = [(b.bucketStart.hour, b.orders, b.revenueCents) for b in response.buckets]
    assert summary == [(12, 0, 0), (13, 1, 300), (14, 0, 0), (15, 2, 500)]
    assert response.currency == "USD"


def test_series_defaults_to_last_ten_days() -> None:
    use_case = GetOrderSeries(
        FakeOrderRepository(), InMemoryTTLCache(), "USD", ttl_seconds=0, clock=lambda: NOW
    )

    response = use_case.execute(STORE, MANAGER)

    assert response.end == NOW
    assert response.start == NOW - timedelta(days=10)
    assert len(response.buckets) == 11
    assert response.buckets[0].bucketStart == truncate_to_bucket(NOW - timedelta(days=10), "day")


def test_open_ended_series_is_served_from_cache_within_the_minute() -> None:
    repository = FakeOrderRepository()
    cache = InMemoryTTLCache(clock=FakeClock())
    ticks = iter(NOW + timedelta(seconds=7, milliseconds=5 * step) for step in range(50))
    use_case = GetOrderSeries(
        repository, cache, "USD", ttl_seconds=2.0, clock=lambda: next(ticks)
    )

    responses = [use_case.execute(STORE, MANAGER) for _ in range(50)]

    assert repository.series_calls == 1
    assert len(cache) == 1
    assert {response.end for response in responses} == {NOW + timedelta(minutes=1)}


def test_series_rejects_bad_ranges() -> None:
    use_case = GetOrderSeries(
        FakeOrderRepository(), InMemoryTTLCache(), "USD", ttl_seconds=0, clock=lambda: NOW
    )

    with pytest.raises(InvalidInputError):
        use_case.execute(STORE, MANAGER, bucket="minute")
    with pytest.raises(InvalidInputError):
        use_case.execute(STORE, MANAGER, start=NOW, end=NOW - timedelta(hours=1))
    with pytest.raises(InvalidInputError, match="buckets"):
        use_case.execute(STORE, MANAGER, bucket="hour", start=NOW - timedelta(days=60), end=NOW)
