from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from orderflow.api.dependencies import PRINCIPAL_ID_HEADER, PRINCIPAL_ROLE_HEADER, resolve_principal
from orderflow.api.ws.manager import ConnectionManager
from orderflow.application.errors import UnauthorizedError
from orderflow.application.realtime.waiter_filter import WaiterEventFilter
from orderflow.domain.staff.principal import Waiter, describe

router = APIRouter()
logger = logging.getLogger(__name__)

REFRESH_ASSIGNMENTS_COMMAND = "refresh-assignments"


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    try:
        principal = resolve_principal(
            websocket.headers.get(PRINCIPAL_ROLE_HEADER),
            websocket.headers.get(PRINCIPAL_ID_HEADER),
        )
    except UnauthorizedError as exc:
        await websocket.close(code=1008, reason=str(exc))
        return

    container = websocket.app.state.container
    waiter_filter: WaiterEventFilter | None = None
    if isinstance(principal, Waiter) and _truthy(websocket.query_params.get("assignedOnly")):
        waiter_filter = await run_in_threadpool(
            WaiterEventFilter.for_waiter,
            container.assignment_repository,
            principal.staff_id,
        )

    manager: ConnectionManager = websocket.app.state.ws_manager
    await manager.register(
        websocket=websocket,
        role=describe(principal),
        waiter_filter=waiter_filter,
    )
    try:
        while True:
            command = await websocket.receive_text()
            if command.strip() == REFRESH_ASSIGNMENTS_COMMAND and waiter_filter is not None:
                table_ids = await run_in_threadpool(
                    container.assignment_repository.tables_for_waiter,
                    waiter_filter.waiter_id,
                )
                waiter_filter.update(table_ids)
    except WebSocketDisconnect:
        await manager.unregister(websocket)
    except Exception:
        logger.exception("ws_connection_error", extra={"principal": describe(principal)})
        await manager.unregister(websocket)
