from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from orderflow.application.notifications.topics import to_redis_glob, topic_matches
from orderflow.application.ports.publisher import MessageHandler, TopicSubscriber
from orderflow.infrastructure.cache.redis_client import connect_listener

logger = logging.getLogger(__name__)

DEFAULT_RECONNECT_SECONDS = 2.0
DEFAULT_MAX_RECONNECT_ATTEMPTS = 10


def _decode_value(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


@dataclass(frozen=True)
class _Subscription:
    pattern: str
    glob: str
    handler: MessageHandler


class RedisTopicListener(TopicSubscriber):
    """PSUBSCRIBE-based subscriber with MQTT-style patterns.

    Each pattern is widened to a Redis glob and every delivered message is
    re-checked with the MQTT matcher before reaching its handler. The loop
    reconnects after a fixed delay and gives up after ``max_attempts``
    consecutive failures. Register subscriptions before calling ``run``;
    later ones take effect on the next reconnect.
    """

    def __init__(
        self,
        redis_url: str,
        reconnect_seconds: float = DEFAULT_RECONNECT_SECONDS,
        max_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS,
        client_factory: Callable[[str], Any] = connect_listener,
    ) -> None:
        self._redis_url = redis_url
        self._reconnect_seconds = reconnect_seconds
        self._max_attempts = max_attempts
        self._client_factory = client_factory
        self._subscriptions: list[_Subscription] = []
        self.connected = False

    def subscribe(self, pattern: str, handler: MessageHandler) -> None:
        self._subscriptions.append(
            _Subscription(pattern=pattern, glob=to_redis_glob(pattern), handler=handler)
        )

    async def run(self) -> None:
        failures = 0
        while True:
            client: Any = None
            pubsub: Any = None
            try:
                client = self._client_factory(self._redis_url)
                pubsub = client.pubsub()
                globs = sorted({subscription.glob for subscription in self._subscriptions})
                if globs:
                    await pubsub.psubscribe(*globs)
                self.connected = True
                failures = 0
                logger.info("bus_listener_subscribed", extra={"patterns": globs})

                while True:
                    message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                    if message is None:
                        await asyncio.sleep(0.05)
                        continue
                    await self._deliver(message)
            except asyncio.CancelledError:
                logger.info("bus_listener_cancelled")
                raise
            except Exception:
                self.connected = False
                failures += 1
                if failures > self._max_attempts:
                    logger.error(
                        "bus_listener_gave_up",
                        extra={"attempts": failures - 1},
                    )
                    return
                logger.exception(
                    "bus_listener_error",
                    extra={"attempt": failures, "backoff_seconds": self._reconnect_seconds},
                )
                await asyncio.sleep(self._reconnect_seconds)
            finally:
                self.connected = False
                if pubsub is not None:
                    await pubsub.aclose()
                if client is not None:
                    await client.aclose()

    async def _deliver(self, message: dict[str, Any]) -> None:
        topic = _decode_value(message.get("channel"))
        payload = _decode_value(message.get("data"))
        glob = _decode_value(message.get("pattern"))
        if not topic or payload is None:
            return

        for subscription in self._subscriptions:
            if glob is not None and subscription.glob != glob:
                continue
            if not topic_matches(subscription.pattern, topic):
                continue
            try:
                result = subscription.handler(topic, payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "bus_handler_failed",
                    extra={"topic": topic, "pattern": subscription.pattern},
                )
