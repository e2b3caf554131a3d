"""Client-side view of per-table call-waiter state built from bus signals.

Meant for waiter dashboard clients subscribed to ``stores/{s}/tables/+/call/#``.
The API publishes the signals but keeps no call state.
"""

from __future__ import annotations

from orderflow.domain.call.signal import CallSignalKind, CallState, next_call_state


def signal_from_topic(topic: str) -> tuple[str, CallSignalKind] | None:
    """Parse ``stores/{s}/tables/{t}/call[/accepted|/cleared]``."""
    levels = topic.split("/")
    if len(levels) < 5 or levels[0] != "stores" or levels[2] != "tables" or levels[4] != "call":
        return None
    table_id = levels[3]
    if len(levels) == 5:
        return table_id, CallSignalKind.CALL
    if len(levels) == 6 and levels[5] == "accepted":
        return table_id, CallSignalKind.ACCEPTED
    if len(levels) == 6 and levels[5] == "cleared":
        return table_id, CallSignalKind.CLEARED
    return None


class CallSignalTracker:
    """Per-table call state folded from bus messages.

    State lives only in this object; a new tracker starts every table at idle.
    """

    def __init__(self) -> None:
        self._states: dict[str, CallState] = {}

    def state(self, table_id: str) -> CallState:
        return self._states.get(table_id, CallState.IDLE)

    def apply(self, topic: str) -> CallState | None:
        parsed = signal_from_topic(topic)
        if parsed is None:
            return None
        table_id, signal = parsed
        state = next_call_state(self.state(table_id), signal)
        if state == CallState.IDLE:
            self._states.pop(table_id, None)
        else:
            self._states[table_id] = state
        return state

    def handle(self, topic: str, message: str) -> None:
        self.apply(topic)

    def pending_tables(self) -> list[str]:
        return sorted(
            table_id for table_id, state in self._states.items() if state == CallState.PENDING
        )
