from __future__ import annotations

from collections.abc import Callable

import redis

from orderflow.application.ports.publisher import EventPublisher, PublishResult
from orderflow.infrastructure.cache.redis_client import get_redis_client


class RedisBusPublisher(EventPublisher):
    """Fire-and-forget PUBLISH. Broker errors come back as a failed result."""

    def __init__(
        self,
        timeout_seconds: float = 1.0,
        client_factory: Callable[[float], redis.Redis] = get_redis_client,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    def publish(self, topic: str, message: str) -> PublishResult:
        try:
            self._client_factory(self._timeout_seconds).publish(topic, message)
        except redis.RedisError as exc:
            return PublishResult(topic=topic, error=f"{type(exc).__name__}: {exc}")
        return PublishResult(topic=topic)
