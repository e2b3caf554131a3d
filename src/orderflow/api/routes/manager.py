from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from orderflow.api.container import Container
from orderflow.api.dependencies import current_principal, get_container, trace_context
from orderflow.application.dto.requests import (
    CreateTableRequest,
    ItemAvailabilityRequest,
    UpdateTableRequest,
)
from orderflow.application.dto.responses import (
    MenuItemResponse,
    OrderResponse,
    TableListResponse,
    TableResponse,
)
from orderflow.application.use_cases.context import TraceContext
from orderflow.application.use_cases.manage_order import CancelOrder, DeleteOrder
from orderflow.application.use_cases.manage_tables import CreateTable, ListTables, SetTableActive
from orderflow.application.use_cases.menu_availability import SetItemAvailability
from orderflow.application.use_cases.transition_order import TransitionOrder
from orderflow.domain.common.ids import MenuItemId, OrderId, TableId
from orderflow.domain.staff.principal import Principal

router = APIRouter(prefix="/v1/manager")


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: str,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
    trace_ctx: TraceContext = Depends(trace_context),
) -> OrderResponse:
    use_case = CancelOrder(TransitionOrder(container.order_repository, container.publisher))
    return use_case.execute(OrderId(order_id), principal, trace_ctx)


@router.delete("/orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(
    order_id: str,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> Response:
    DeleteOrder(container.order_repository).execute(OrderId(order_id), principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/tables", response_model=TableListResponse)
def list_tables(
    active_only: bool = Query(default=False, alias="activeOnly"),
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> TableListResponse:
    return ListTables(container.table_repository).execute(
        container.store_id,
        principal,
        active_only=active_only,
    )


@router.post("/tables", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
def create_table(
    request_dto: CreateTableRequest,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> TableResponse:
    return CreateTable(container.table_repository).execute(
        container.store_id,
        request_dto,
        principal,
    )


@router.patch("/tables/{table_id}", response_model=TableResponse)
def update_table(
    table_id: str,
    request_dto: UpdateTableRequest,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> TableResponse:
    return SetTableActive(container.table_repository).execute(
        container.store_id,
        TableId(table_id),
        request_dto.is_active,
        principal,
    )


@router.patch("/items/{item_id}/availability", response_model=MenuItemResponse)
def set_item_availability(
    item_id: str,
    request_dto: ItemAvailabilityRequest,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
    trace_ctx: TraceContext = Depends(trace_context),
) -> MenuItemResponse:
    use_case = SetItemAvailability(
        repository=container.menu_repository,
        cache=container.cache,
        publisher=container.publisher,
    )
    return use_case.execute(
        container.store_id,
        MenuItemId(item_id),
        request_dto.is_available,
        principal,
        trace_ctx,
    )
