"""Redis connections shared by the bus publisher, the bus listener and the cache."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

import redis
from redis import asyncio as redis_asyncio

REDIS_URL_ENV = "REDIS_URL"
HEALTH_CHECK_INTERVAL_SECONDS = 15
LISTENER_CONNECT_TIMEOUT_SECONDS = 5.0

logger = logging.getLogger(__name__)


def configured_redis_url() -> str | None:
    url = os.getenv(REDIS_URL_ENV, "").strip()
    return url or None


def _require_redis_url() -> str:
    url = configured_redis_url()
    if url is None:
        raise RuntimeError(f"{REDIS_URL_ENV} is not set")
    return url


@lru_cache(maxsize=8)
def _build_client(redis_url: str, timeout_seconds: float) -> redis.Redis:
    return redis.Redis.from_url(
        redis_url,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        health_check_interval=HEALTH_CHECK_INTERVAL_SECONDS,
    )


def get_redis_client(timeout_seconds: float = 1.0) -> redis.Redis:
    """Pooled synchronous client for publishes and cache reads."""
    return _build_client(_require_redis_url(), timeout_seconds)


def connect_listener(redis_url: str) -> redis_asyncio.Redis:
    # No socket read timeout: the subscriber idles between messages.
    return redis_asyncio.from_url(
        redis_url,
        socket_connect_timeout=LISTENER_CONNECT_TIMEOUT_SECONDS,
        health_check_interval=HEALTH_CHECK_INTERVAL_SECONDS,
    )


def ping_redis(timeout_seconds: float = 1.0) -> bool:
    try:
        return bool(get_redis_client(timeout_seconds).ping())
    except (redis.RedisError, RuntimeError) as exc:
        logger.warning("redis_ping_failed", extra={"error": type(exc).__name__})
        return False
