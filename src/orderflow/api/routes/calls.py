from __future__ import annotations

from fastapi import APIRouter, Depends

from orderflow.api.container import Container
from orderflow.api.dependencies import current_principal, get_container, trace_context
from orderflow.application.dto.requests import CallWaiterRequest
from orderflow.application.dto.responses import CallWaiterResponse
from orderflow.application.use_cases.call_waiter import AcknowledgeCall, CallWaiter, ClearCall
from orderflow.application.use_cases.context import TraceContext
from orderflow.domain.common.ids import TableId
from orderflow.domain.staff.principal import Principal

router = APIRouter()


@router.post("/v1/call-waiter", response_model=CallWaiterResponse)
def call_waiter(
    request_dto: CallWaiterRequest,
    container: Container = Depends(get_container),
    trace_ctx: TraceContext = Depends(trace_context),
) -> CallWaiterResponse:
    use_case = CallWaiter(container.table_repository, container.publisher)
    return use_case.execute(container.store_id, TableId(request_dto.table_id), trace_ctx)


@router.post("/v1/tables/{table_id}/call/accept", response_model=CallWaiterResponse)
def accept_call(
    table_id: str,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
    trace_ctx: TraceContext = Depends(trace_context),
) -> CallWaiterResponse:
    use_case = AcknowledgeCall(container.table_repository, container.publisher)
    return use_case.execute(container.store_id, TableId(table_id), principal, trace_ctx)


@router.post("/v1/tables/{table_id}/call/clear", response_model=CallWaiterResponse)
def clear_call(
    table_id: str,
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
    trace_ctx: TraceContext = Depends(trace_context),
) -> CallWaiterResponse:
    use_case = ClearCall(container.table_repository, container.publisher)
    return use_case.execute(container.store_id, TableId(table_id), principal, trace_ctx)
