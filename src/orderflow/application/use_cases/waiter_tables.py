from __future__ import annotations

import logging

from orderflow.application.dto.responses import (
    AssignWaiterResponse,
    TableWaitersResponse,
    WaiterTableListResponse,
    WaiterTablesResponse,
)
from orderflow.application.errors import (
    AssignmentNotFoundError,
    ForbiddenError,
    TableNotFoundError,
    WaiterNotFoundError,
)
from orderflow.application.mappers.table_mapper import to_assignment_response
from orderflow.application.ports.repositories import (
    AssignmentRepository,
    StaffRepository,
    TableRepository,
)
from orderflow.domain.common.ids import StaffId, StoreId, TableId
from orderflow.domain.staff.entities import WaiterTableAssignment
from orderflow.domain.staff.principal import (
    Manager,
    Principal,
    StaffRole,
    Waiter,
    describe,
    is_staff,
    may_manage,
    may_view_waiter_tables,
)

logger = logging.getLogger(__name__)


class AssignWaiter:
    """Make a waiter responsible for a table. Assigning an existing pair is a no-op."""

    def __init__(
        self,
        assignment_repository: AssignmentRepository,
        staff_repository: StaffRepository,
        table_repository: TableRepository,
    ) -> None:
        self._assignment_repository = assignment_repository
        self._staff_repository = staff_repository
        self._table_repository = table_repository

    def execute(
        self,
        store_id: StoreId,
        waiter_id: StaffId,
        table_id: TableId,
        principal: Principal,
    ) -> AssignWaiterResponse:
        if not may_manage(principal):
            raise ForbiddenError(f"{describe(principal)} may not assign waiters")

        staff = self._staff_repository.get(store_id, waiter_id)
        if staff is None or staff.role != StaffRole.WAITER:
            raise WaiterNotFoundError(
                f"waiter {waiter_id} not found",
                details={"waiterId": str(waiter_id)},
            )
        if self._table_repository.get(store_id, table_id) is None:
            raise TableNotFoundError(
                f"table {table_id} not found",
                details={"tableId": str(table_id)},
            )

        existing = self._assignment_repository.get(waiter_id, table_id)
        if existing is not None:
            return AssignWaiterResponse(assignment=to_assignment_response(existing), created=False)

        assignment = WaiterTableAssignment(waiter_id=waiter_id, table_id=table_id)
        created = self._assignment_repository.add(assignment)
        if created:
            logger.info(
                "waiter_assigned",
                extra={"waiter_id": str(waiter_id), "table_id": str(table_id)},
            )
        return AssignWaiterResponse(assignment=to_assignment_response(assignment), created=created)


class UnassignWaiter:
    def __init__(self, assignment_repository: AssignmentRepository) -> None:
        self._assignment_repository = assignment_repository

    def execute(self, waiter_id: StaffId, table_id: TableId, principal: Principal) -> None:
        if not may_manage(principal):
            raise ForbiddenError(f"{describe(principal)} may not unassign waiters")
        if not self._assignment_repository.remove(waiter_id, table_id):
            raise AssignmentNotFoundError(
                f"waiter {waiter_id} is not assigned to table {table_id}",
                details={"waiterId": str(waiter_id), "tableId": str(table_id)},
            )
        logger.info(
            "waiter_unassigned",
            extra={"waiter_id": str(waiter_id), "table_id": str(table_id)},
        )


class ListAssignments:
    """Managers see every pair; a waiter sees only their own."""

    def __init__(self, assignment_repository: AssignmentRepository) -> None:
        self._assignment_repository = assignment_repository

    def execute(self, store_id: StoreId, principal: Principal) -> WaiterTableListResponse:
        assignments = self._assignment_repository.list_for_store(store_id)
        match principal:
            case Manager():
                visible = assignments
            case Waiter(staff_id=staff_id):
                visible = [item for item in assignments if item.waiter_id == staff_id]
            case _:
                raise ForbiddenError(f"{describe(principal)} may not read waiter assignments")
        return WaiterTableListResponse(
            assignments=[to_assignment_response(item) for item in visible]
        )


class GetWaiterTables:
    def __init__(self, assignment_repository: AssignmentRepository) -> None:
        self._assignment_repository = assignment_repository

    def execute(self, waiter_id: StaffId, principal: Principal) -> WaiterTablesResponse:
        if not may_view_waiter_tables(principal, waiter_id):
            raise ForbiddenError(f"{describe(principal)} may not read tables of waiter {waiter_id}")
        table_ids = self._assignment_repository.tables_for_waiter(waiter_id)
        return WaiterTablesResponse(
            waiterId=str(waiter_id),
            tableIds=sorted(str(table_id) for table_id in table_ids),
        )


class GetTableWaiters:
    def __init__(
        self,
        assignment_repository: AssignmentRepository,
        table_repository: TableRepository,
    ) -> None:
        self._assignment_repository = assignment_repository
        self._table_repository = table_repository

    def execute(
        self,
        store_id: StoreId,
        table_id: TableId,
        principal: Principal,
    ) -> TableWaitersResponse:
        if not is_staff(principal):
            raise ForbiddenError(f"{describe(principal)} may not read table waiters")
        if self._table_repository.get(store_id, table_id) is None:
            raise TableNotFoundError(
                f"table {table_id} not found",
                details={"tableId": str(table_id)},
            )
        waiter_ids = self._assignment_repository.waiters_for_table(table_id)
        return TableWaitersResponse(
            tableId=str(table_id),
            waiterIds=sorted(str(waiter_id) for waiter_id in waiter_ids),
        )
