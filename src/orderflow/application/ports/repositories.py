from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from orderflow.domain.common.ids import MenuItemId, OrderId, StaffId, StoreId, TableId
from orderflow.domain.menu.entities import Menu, MenuItem
from orderflow.domain.order.entities import Order, OrderStatus
from orderflow.domain.staff.entities import StaffMember, WaiterTableAssignment
from orderflow.domain.table.entities import Table


class MenuRepository(Protocol):
    def get_menu(self, store_id: StoreId) -> Menu: ...

    def get_items(self, store_id: StoreId, item_ids: list[MenuItemId]) -> dict[str, MenuItem]: ...

    def set_item_availability(
        self,
        store_id: StoreId,
        item_id: MenuItemId,
        is_available: bool,
    ) -> MenuItem | None: ...


class TableRepository(Protocol):
    def get(self, store_id: StoreId, table_id: TableId) -> Table | None: ...

    def list_for_store(self, store_id: StoreId, *, active_only: bool = False) -> list[Table]: ...

    def add(self, table: Table) -> None: ...

    def set_active(self, store_id: StoreId, table_id: TableId, is_active: bool) -> Table | None: ...


class StaffRepository(Protocol):
    def get(self, store_id: StoreId, staff_id: StaffId) -> StaffMember | None: ...


class OrderRepository(Protocol):
    def add(self, order: Order) -> None: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def compare_and_set_status(
        self,
        order_id: OrderId,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        now: datetime,
    ) -> Order | None: ...

    def delete(self, order_id: OrderId) -> bool: ...

    def list_for_store(
        self,
        store_id: StoreId,
        status: OrderStatus | None,
        limit: int,
        cursor: str | None,
    ) -> tuple[list[Order], str | None]: ...

    def count_by_status(self, store_id: StoreId) -> dict[OrderStatus, int]: ...

    def count_in_statuses(
        self,
        store_id: StoreId,
        statuses: frozenset[OrderStatus],
        created_before: datetime | None = None,
    ) -> int: ...

    def count_active_by_table(self, store_id: StoreId) -> dict[str, int]: ...

    def list_created_between(
        self,
        store_id: StoreId,
        start: datetime,
        end: datetime,
    ) -> list[OrderStatRow]: ...


class AssignmentRepository(Protocol):
    def get(self, waiter_id: StaffId, table_id: TableId) -> WaiterTableAssignment | None: ...

    def add(self, assignment: WaiterTableAssignment) -> bool: ...

    def remove(self, waiter_id: StaffId, table_id: TableId) -> bool: ...

    def list_for_store(self, store_id: StoreId) -> list[WaiterTableAssignment]: ...

    def tables_for_waiter(self, waiter_id: StaffId) -> set[TableId]: ...

    def waiters_for_table(self, table_id: TableId) -> set[StaffId]: ...


class DuplicateKeyError(Exception):
    pass


class InvalidCursorError(Exception):
    pass


@dataclass(frozen=True)
class OrderStatRow:
    created_at: datetime
    status: OrderStatus
    total_cents: int
