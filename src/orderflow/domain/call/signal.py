from __future__ import annotations

from enum import Enum


class CallState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    ACCEPTED = "accepted"


class CallSignalKind(str, Enum):
    CALL = "call"
    ACCEPTED = "accepted"
    CLEARED = "cleared"


def next_call_state(current: CallState, signal: CallSignalKind) -> CallState:
    """Fold one bus signal into the per-table call state.

    The channel has no durable backing, so a signal that arrives out of
    order is applied as-is rather than rejected: the latest message wins.
    """
    if signal == CallSignalKind.CALL:
        # A repeated call while accepted is a new request from the table.
        return CallState.PENDING
    if signal == CallSignalKind.ACCEPTED:
        return CallState.ACCEPTED
    return CallState.IDLE
