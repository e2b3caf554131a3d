from __future__ import annotations

from orderflow.application.ports.cache import CacheStore
from orderflow.infrastructure.cache.redis_client import get_redis_client


class RedisCacheStore(CacheStore):
    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def get(self, key: str) -> str | None:
        value = get_redis_client(timeout_seconds=self._timeout_seconds).get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def set(self, key: str, value: str, ttl_seconds: float) -> None:
        # Projection TTLs are sub-second to a few seconds, so use millisecond expiry.
        get_redis_client(timeout_seconds=self._timeout_seconds).set(
            name=key,
            value=value,
            px=max(1, int(ttl_seconds * 1000)),
        )

    def delete(self, key: str) -> None:
        get_redis_client(timeout_seconds=self._timeout_seconds).delete(key)
