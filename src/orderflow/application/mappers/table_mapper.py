from __future__ import annotations

from orderflow.application.dto.responses import TableResponse, WaiterTableResponse
from orderflow.domain.staff.entities import WaiterTableAssignment
from orderflow.domain.table.entities import Table


def to_table_response(table: Table) -> TableResponse:
    return TableResponse(
        tableId=str(table.table_id),
        storeId=str(table.store_id),
        label=table.label,
        isActive=table.is_active,
        createdAt=table.created_at,
    )


def to_assignment_response(assignment: WaiterTableAssignment) -> WaiterTableResponse:
    return WaiterTableResponse(
        waiterId=str(assignment.waiter_id),
        tableId=str(assignment.table_id),
    )
