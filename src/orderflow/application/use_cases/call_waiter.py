from __future__ import annotations

from orderflow.application.dto.responses import CallWaiterResponse
from orderflow.application.errors import ForbiddenError, TableNotFoundError
from orderflow.application.notifications.dispatch import dispatch
from orderflow.application.notifications.events import call_event
from orderflow.application.ports.publisher import EventPublisher
from orderflow.application.ports.repositories import TableRepository
from orderflow.application.use_cases.context import Clock, TraceContext, utc_now
from orderflow.domain.call.signal import CallSignalKind, CallState, next_call_state
from orderflow.domain.common.ids import StoreId, TableId
from orderflow.domain.staff.principal import Principal, describe, may_answer_calls

_EVENT_TYPES = {
    CallSignalKind.CALL: "call.requested",
    CallSignalKind.ACCEPTED: "call.accepted",
    CallSignalKind.CLEARED: "call.cleared",
}


class _CallSignal:
    """Publish one call-channel signal for a table. Nothing is stored."""

    signal: CallSignalKind

    def __init__(
        self,
        table_repository: TableRepository,
        publisher: EventPublisher,
        clock: Clock = utc_now,
    ) -> None:
        self._table_repository = table_repository
        self._publisher = publisher
        self._clock = clock

    def _send(
        self,
        store_id: StoreId,
        table_id: TableId,
        trace_ctx: TraceContext,
    ) -> CallWaiterResponse:
        if self._table_repository.get(store_id, table_id) is None:
            raise TableNotFoundError(
                f"table {table_id} not found",
                details={"tableId": str(table_id)},
            )

        event = call_event(str(store_id), str(table_id), _EVENT_TYPES[self.signal], self._clock())
        results = dispatch(self._publisher, [event], trace_ctx)
        delivered = all(result.ok for result in results)
        state = next_call_state(CallState.IDLE, self.signal) if delivered else CallState.IDLE
        return CallWaiterResponse(success=delivered, state=state.value, tableId=str(table_id))


class CallWaiter(_CallSignal):
    signal = CallSignalKind.CALL

    def execute(
        self,
        store_id: StoreId,
        table_id: TableId,
        trace_ctx: TraceContext,
    ) -> CallWaiterResponse:
        return self._send(store_id, table_id, trace_ctx)


class _StaffCallSignal(_CallSignal):
    def execute(
        self,
        store_id: StoreId,
        table_id: TableId,
        principal: Principal,
        trace_ctx: TraceContext,
    ) -> CallWaiterResponse:
        if not may_answer_calls(principal):
            raise ForbiddenError(f"{describe(principal)} may not answer table calls")
        return self._send(store_id, table_id, trace_ctx)


class AcknowledgeCall(_StaffCallSignal):
    signal = CallSignalKind.ACCEPTED


class ClearCall(_StaffCallSignal):
    signal = CallSignalKind.CLEARED
