from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain.common.ids import StaffId, StoreId, TableId
from orderflow.domain.staff.principal import StaffRole


@dataclass(frozen=True)
class StaffMember:
    staff_id: StaffId
    store_id: StoreId
    display_name: str
    role: StaffRole


@dataclass(frozen=True)
class WaiterTableAssignment:
    """A waiter is responsible for a table. The row's existence is the fact."""

    waiter_id: StaffId
    table_id: TableId
