from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol

# Receives (topic, raw JSON message). May return an awaitable.
MessageHandler = Callable[[str, str], Any]


@dataclass(frozen=True)
class PublishResult:
    topic: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class EventPublisher(Protocol):
    def publish(self, topic: str, message: str) -> PublishResult: ...


class TopicSubscriber(Protocol):
    def subscribe(self, pattern: str, handler: MessageHandler) -> None: ...
