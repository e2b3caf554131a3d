from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass

from fastapi import WebSocket

from orderflow.application.mappers.event_envelope import parse_event
from orderflow.application.realtime.waiter_filter import WaiterEventFilter

logger = logging.getLogger(__name__)


@dataclass
class _Connection:
    websocket: WebSocket
    role: str
    waiter_filter: WaiterEventFilter | None = None


class ConnectionManager:
    """Fans bus messages out to every socket of the store.

    Waiter sockets registered with a filter only receive store-wide topics
    and topics of their assigned tables.
    """

    def __init__(self) -> None:
        self._connections: dict[WebSocket, _Connection] = {}
        self._lock = asyncio.Lock()

    async def register(
        self,
        websocket: WebSocket,
        role: str,
        waiter_filter: WaiterEventFilter | None = None,
    ) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[websocket] = _Connection(
                websocket=websocket,
                role=role,
                waiter_filter=waiter_filter,
            )
        logger.info(
            "ws_client_connected",
            extra={"role": role, "assigned_only": waiter_filter is not None},
        )

    async def unregister(self, websocket: WebSocket) -> None:
        async with self._lock:
            connection = self._connections.pop(websocket, None)
        if connection is None:
            return
        logger.info("ws_client_disconnected", extra={"role": connection.role})

    async def connection_count(self) -> int:
        async with self._lock:
            return len(self._connections)

    async def broadcast(self, topic: str, message: str) -> None:
        async with self._lock:
            targets = list(self._connections.values())

        frame = _frame(topic, message)
        stale: list[WebSocket] = []
        for connection in targets:
            waiter_filter = connection.waiter_filter
            if waiter_filter is not None and not waiter_filter.is_actionable(topic):
                continue
            try:
                await connection.websocket.send_text(frame)
            except Exception:
                stale.append(connection.websocket)

        for websocket in stale:
            await self.unregister(websocket)


def _frame(topic: str, message: str) -> str:
    try:
        event = parse_event(message)
    except ValueError:
        logger.warning("ws_invalid_event", extra={"topic": topic})
        return json.dumps({"topic": topic, "event": None, "raw": message})
    return json.dumps({"topic": topic, "event": event}, separators=(",", ":"))
