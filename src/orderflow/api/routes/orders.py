from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from orderflow.api.container import Container
from orderflow.api.dependencies import current_principal, get_container, trace_context
from orderflow.application.dto.requests import CreateOrderRequest, UpdateOrderStatusRequest
from orderflow.application.dto.responses import (
    OrderListResponse,
    OrderResponse,
    QueueAheadResponse,
)
from orderflow.application.use_cases.context import TraceContext
from orderflow.application.use_cases.get_order import GetOrder
from orderflow.application.use_cases.list_orders import DEFAULT_LIMIT, ListOrders
from orderflow.application.use_cases.place_order import PlaceOrder
from orderflow.application.use_cases.projections import GetQueueAhead
from orderflow.application.use_cases.transition_order import TransitionOrder
from orderflow.domain.common.ids import OrderId
from orderflow.domain.staff.principal import Principal

router = APIRouter()


def _place_order_use_case(container: Container) -> PlaceOrder:
    return PlaceOrder(
        menu_repository=container.menu_repository,
        table_repository=container.table_repository,
        order_repository=container.order_repository,
        publisher=container.publisher,
    )


def _transition_use_case(container: Container) -> TransitionOrder:
    return TransitionOrder(
        order_repository=container.order_repository,
        publisher=container.publisher,
    )


def _queue_ahead_use_case(container: Container) -> GetQueueAhead:
    return GetQueueAhead(
        order_repository=container.order_repository,
        cache=container.cache,
        ttl_seconds=container.projection_ttl_seconds,
    )


@router.post("/v1/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    request_dto: CreateOrderRequest,
    container: Container = Depends(get_container),
    trace_ctx: TraceContext = Depends(trace_context),
) -> OrderResponse:
    return _place_order_use_case(container).execute(
        store_id=container.store_id,
        request_dto=request_dto,
        trace_ctx=trace_ctx,
    )


@router.get("/v1/orders", response_model=OrderListResponse)
def list_orders(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Query(default=DEFAULT_LIMIT),
    cursor: str | None = Query(default=None),
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> OrderListResponse:
    return ListOrders(container.order_repository).execute(
        store_id=container.store_id,
        principal=principal,
        status=status_filter,
        limit=limit,
        cursor=cursor,
    )


@router.get("/v1/orders/queue", response_model=QueueAheadResponse)
def queue_ahead(
    order_id: str | None = Query(default=None, alias="orderId"),
    container: Container = Depends(get_container),
) -> QueueAheadResponse:
    return _queue_ahead_use_case(container).execute(
        store_id=container.store_id,
        order_id=OrderId(order_id) if order_id else None,
    )


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> OrderResponse:
    return GetOrder(container.order_repository).execute(OrderId(order_id), principal)


@router.patch("/v1/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    request_dto: UpdateOrderStatusRequest,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
    trace_ctx: TraceContext = Depends(trace_context),
) -> OrderResponse:
    return _transition_use_case(container).execute(
        order_id=OrderId(order_id),
        to_status=request_dto.status,
        principal=principal,
        trace_ctx=trace_ctx,
    )
