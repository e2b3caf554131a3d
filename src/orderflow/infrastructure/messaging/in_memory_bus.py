from __future__ import annotations

import inspect
import logging
import threading
from collections import deque
from dataclasses import dataclass

from orderflow.application.notifications.topics import topic_matches, validate_pattern
from orderflow.application.ports.publisher import (
    EventPublisher,
    MessageHandler,
    PublishResult,
    TopicSubscriber,
)

DEFAULT_HISTORY_LIMIT = 256

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Subscription:
    pattern: str
    handler: MessageHandler


class InMemoryBus(EventPublisher, TopicSubscriber):
    """Synchronous in-process broker for demo mode and tests.

    Handlers run on the publishing thread and must not block. While
    disconnected, publishes are dropped and reported as failed. Only the
    last ``history_limit`` delivered messages are kept in ``published``.
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self._subscriptions: list[_Subscription] = []
        self._lock = threading.Lock()
        self.connected = True
        self.published: deque[tuple[str, str]] = deque(maxlen=history_limit)

    def subscribe(self, pattern: str, handler: MessageHandler) -> None:
        validate_pattern(pattern)
        with self._lock:
            self._subscriptions.append(_Subscription(pattern=pattern, handler=handler))

    def unsubscribe(self, handler: MessageHandler) -> None:
        with self._lock:
            self._subscriptions = [
                subscription
                for subscription in self._subscriptions
                if subscription.handler != handler
            ]

    def disconnect(self) -> None:
        self.connected = False

    def connect(self) -> None:
        self.connected = True

    def publish(self, topic: str, message: str) -> PublishResult:
        if not self.connected:
            return PublishResult(topic=topic, error="bus disconnected")

        with self._lock:
            self.published.append((topic, message))
            targets = [
                subscription
                for subscription in self._subscriptions
                if topic_matches(subscription.pattern, topic)
            ]

        for subscription in targets:
            try:
                result = subscription.handler(topic, message)
            except Exception:
                logger.exception(
                    "bus_handler_failed",
                    extra={"topic": topic, "pattern": subscription.pattern},
                )
                continue
            if inspect.iscoroutine(result):
                result.close()
                logger.warning(
                    "bus_handler_async_unsupported",
                    extra={"topic": topic, "pattern": subscription.pattern},
                )
        return PublishResult(topic=topic)

    def topics(self) -> list[str]:
        with self._lock:
            return [topic for topic, _ in self.published]
