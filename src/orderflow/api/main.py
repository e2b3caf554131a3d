from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from orderflow.api.container import BUS_BACKEND_MEMORY, Container, build_container_from_env
from orderflow.api.error_handling import register_exception_handlers
from orderflow.api.middleware.request_id import RequestIDMiddleware
from orderflow.api.routes.analytics import router as analytics_router
from orderflow.api.routes.calls import router as calls_router
from orderflow.api.routes.health import router as health_router
from orderflow.api.routes.manager import router as manager_router
from orderflow.api.routes.menu import router as menu_router
from orderflow.api.routes.metrics import router as metrics_router
from orderflow.api.routes.orders import router as orders_router
from orderflow.api.routes.waiter_tables import router as waiter_tables_router
from orderflow.api.ws.manager import ConnectionManager
from orderflow.api.ws.routes import router as ws_router
from orderflow.application.notifications.topics import store_wildcard
from orderflow.infrastructure.messaging.redis_event_listener import RedisTopicListener
from orderflow.infrastructure.observability.logging_config import configure_logging
from orderflow.infrastructure.observability.otel import configure_otel

logger = logging.getLogger("orderflow.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()

    # Dev/test: unblock everything (no credentials allowed)
    if env in {"dev", "test"}:
        return ["*"]

    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _route_path(request: Request) -> str:
    # Route template, not the raw path.
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - started) * 1000
            path = _route_path(request)
            REQUEST_COUNT.labels(method=method, path=path, status_code="500").inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
            logger.exception(
                "request_error",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": 500,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        path = _route_path(request)
        REQUEST_COUNT.labels(method=method, path=path, status_code=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
        logger.info(
            "request_complete",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response


def _start_fanout(app: FastAPI, container: Container, manager: ConnectionManager):
    """Subscribe the WebSocket fan-out to every topic of the store.

    Returns a callable that stops it.
    """
    pattern = store_wildcard(str(container.store_id))

    if container.bus_backend == BUS_BACKEND_MEMORY and container.memory_bus is not None:
        loop = asyncio.get_running_loop()
        bus = container.memory_bus

        def forward(topic: str, message: str) -> None:
            asyncio.run_coroutine_threadsafe(manager.broadcast(topic, message), loop)

        bus.subscribe(pattern, forward)

        async def stop_memory() -> None:
            bus.unsubscribe(forward)

        return stop_memory

    if not container.redis_url:
        logger.warning("bus_fanout_not_started", extra={"reason": "REDIS_URL missing"})

        async def noop() -> None:
            return None

        return noop

    listener = RedisTopicListener(
        container.redis_url,
        reconnect_seconds=container.reconnect_seconds,
        max_attempts=container.max_reconnect_attempts,
    )
    listener.subscribe(pattern, manager.broadcast)
    task = asyncio.create_task(listener.run())
    app.state.bus_listener = listener

    async def stop_redis() -> None:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    return stop_redis


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "container", None) is None:
        app.state.container = build_container_from_env()
    manager = ConnectionManager()
    app.state.ws_manager = manager
    stop_fanout = _start_fanout(app, app.state.container, manager)
    try:
        yield
    finally:
        await stop_fanout()


def create_app(container: Container | None = None) -> FastAPI:
    configure_logging()

    app = FastAPI(title="Orderflow API", version="0.1.0", lifespan=lifespan)
    app.state.container = container
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(menu_router)
    app.include_router(orders_router)
    app.include_router(manager_router)
    app.include_router(waiter_tables_router)
    app.include_router(calls_router)
    app.include_router(analytics_router)
    app.include_router(ws_router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag", "X-Request-Id"],
    )

    configure_otel(app)
    return app


app = create_app()
