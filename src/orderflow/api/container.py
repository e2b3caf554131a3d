from __future__ import annotations

import os
from dataclasses import dataclass, field

from sqlalchemy import Engine

from orderflow.application.ports.cache import CacheStore
from orderflow.application.ports.publisher import EventPublisher
from orderflow.application.use_cases.projections import DEFAULT_TTL_SECONDS
from orderflow.domain.common.ids import StoreId
from orderflow.infrastructure.cache.cache_store import RedisCacheStore
from orderflow.infrastructure.cache.memory_cache import InMemoryTTLCache
from orderflow.infrastructure.cache.redis_client import configured_redis_url
from orderflow.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from orderflow.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from orderflow.infrastructure.db.repositories.staff_repo import (
    SqlAlchemyAssignmentRepository,
    SqlAlchemyStaffRepository,
)
from orderflow.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from orderflow.infrastructure.db.session import get_engine
from orderflow.infrastructure.messaging.in_memory_bus import InMemoryBus
from orderflow.infrastructure.messaging.redis_event_listener import (
    DEFAULT_MAX_RECONNECT_ATTEMPTS,
    DEFAULT_RECONNECT_SECONDS,
)
from orderflow.infrastructure.messaging.redis_publisher import RedisBusPublisher

BUS_BACKEND_REDIS = "redis"
BUS_BACKEND_MEMORY = "memory"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def _bus_backend() -> str:
    backend = os.getenv("BUS_BACKEND", BUS_BACKEND_REDIS).strip().lower()
    if backend not in {BUS_BACKEND_REDIS, BUS_BACKEND_MEMORY}:
        raise RuntimeError(f"BUS_BACKEND must be 'redis' or 'memory', got {backend!r}")
    return backend


@dataclass
class Container:
    """Clients and repositories built once per app and shared by every request."""

    store_id: StoreId
    currency: str
    engine: Engine
    publisher: EventPublisher
    cache: CacheStore
    bus_backend: str = BUS_BACKEND_REDIS
    redis_url: str | None = None
    memory_bus: InMemoryBus | None = None
    projection_ttl_seconds: float = DEFAULT_TTL_SECONDS
    menu_ttl_seconds: float = 300.0
    reconnect_seconds: float = DEFAULT_RECONNECT_SECONDS
    max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS

    menu_repository: SqlAlchemyMenuRepository = field(init=False)
    table_repository: SqlAlchemyTableRepository = field(init=False)
    order_repository: SqlAlchemyOrderRepository = field(init=False)
    staff_repository: SqlAlchemyStaffRepository = field(init=False)
    assignment_repository: SqlAlchemyAssignmentRepository = field(init=False)

    def __post_init__(self) -> None:
        self.menu_repository = SqlAlchemyMenuRepository(self.engine)
        self.table_repository = SqlAlchemyTableRepository(self.engine)
        self.order_repository = SqlAlchemyOrderRepository(self.engine)
        self.staff_repository = SqlAlchemyStaffRepository(self.engine)
        self.assignment_repository = SqlAlchemyAssignmentRepository(self.engine)

    @classmethod
    def in_memory(
        cls,
        engine: Engine,
        store_id: str = "store_1",
        currency: str = "USD",
        projection_ttl_seconds: float = 0.0,
    ) -> Container:
        bus = InMemoryBus()
        return cls(
            store_id=StoreId(store_id),
            currency=currency,
            engine=engine,
            publisher=bus,
            cache=InMemoryTTLCache(),
            bus_backend=BUS_BACKEND_MEMORY,
            memory_bus=bus,
            projection_ttl_seconds=projection_ttl_seconds,
        )


def build_container_from_env() -> Container:
    store_id = StoreId(os.getenv("STORE_ID", "store_1"))
    currency = os.getenv("STORE_CURRENCY", "USD").upper()
    backend = _bus_backend()
    settings = {
        "projection_ttl_seconds": _env_float("PROJECTION_CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS),
        "menu_ttl_seconds": _env_float("MENU_CACHE_TTL_SECONDS", 300.0),
        "reconnect_seconds": _env_float("BUS_RECONNECT_SECONDS", DEFAULT_RECONNECT_SECONDS),
        "max_reconnect_attempts": _env_int(
            "BUS_MAX_RECONNECT_ATTEMPTS",
            DEFAULT_MAX_RECONNECT_ATTEMPTS,
        ),
    }

    if backend == BUS_BACKEND_MEMORY:
        bus = InMemoryBus()
        return Container(
            store_id=store_id,
            currency=currency,
            engine=get_engine(),
            publisher=bus,
            cache=InMemoryTTLCache(),
            bus_backend=backend,
            memory_bus=bus,
            **settings,
        )

    redis_url = configured_redis_url()
    if redis_url is None:
        raise RuntimeError("REDIS_URL is not set")
    return Container(
        store_id=store_id,
        currency=currency,
        engine=get_engine(),
        publisher=RedisBusPublisher(),
        cache=RedisCacheStore(),
        bus_backend=backend,
        redis_url=redis_url,
        **settings,
    )
