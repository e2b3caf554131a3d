from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class TraceContext:
    trace_id: str | None
    request_id: str | None

    @classmethod
    def empty(cls) -> TraceContext:
        return cls(trace_id=None, request_id=None)


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
