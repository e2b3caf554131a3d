from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from orderflow.api.container import Container
from orderflow.api.dependencies import current_principal, get_container
from orderflow.application.dto.requests import WaiterTableRequest
from orderflow.application.dto.responses import (
    AssignWaiterResponse,
    TableWaitersResponse,
    WaiterTableListResponse,
    WaiterTablesResponse,
)
from orderflow.application.use_cases.waiter_tables import (
    AssignWaiter,
    GetTableWaiters,
    GetWaiterTables,
    ListAssignments,
    UnassignWaiter,
)
from orderflow.domain.common.ids import StaffId, TableId
from orderflow.domain.staff.principal import Principal

router = APIRouter()


@router.get("/v1/waiter-tables", response_model=WaiterTableListResponse)
def list_assignments(
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> WaiterTableListResponse:
    return ListAssignments(container.assignment_repository).execute(container.store_id, principal)


@router.post("/v1/waiter-tables", response_model=AssignWaiterResponse)
def assign_waiter(
    request_dto: WaiterTableRequest,
    response: Response,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> AssignWaiterResponse:
    use_case = AssignWaiter(
        assignment_repository=container.assignment_repository,
        staff_repository=container.staff_repository,
        table_repository=container.table_repository,
    )
    result = use_case.execute(
        container.store_id,
        StaffId(request_dto.waiter_id),
        TableId(request_dto.table_id),
        principal,
    )
    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return result


@router.delete("/v1/waiter-tables", status_code=status.HTTP_204_NO_CONTENT)
def unassign_waiter(
    waiter_id: str = Query(alias="waiterId", min_length=1),
    table_id: str = Query(alias="tableId", min_length=1),
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> Response:
    UnassignWaiter(container.assignment_repository).execute(
        StaffId(waiter_id),
        TableId(table_id),
        principal,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/v1/waiters/{waiter_id}/tables", response_model=WaiterTablesResponse)
def waiter_tables(
    waiter_id: str,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> WaiterTablesResponse:
    return GetWaiterTables(container.assignment_repository).execute(StaffId(waiter_id), principal)


@router.get("/v1/tables/{table_id}/waiters", response_model=TableWaitersResponse)
def table_waiters(
    table_id: str,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> TableWaitersResponse:
    use_case = GetTableWaiters(container.assignment_repository, container.table_repository)
    return use_case.execute(container.store_id, TableId(table_id), principal)
