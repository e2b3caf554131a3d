from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from orderflow.api.container import BUS_BACKEND_REDIS, Container
from orderflow.api.dependencies import get_container
from orderflow.infrastructure.cache.redis_client import ping_redis
from orderflow.infrastructure.db.session import ping_database

router = APIRouter()


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response, container: Container = Depends(get_container)) -> dict[str, object]:
    checks = {"database": ping_database(container.engine, timeout_seconds=1.0)}
    if container.bus_backend == BUS_BACKEND_REDIS:
        checks["redis"] = ping_redis(timeout_seconds=1.0)

    if all(checks.values()):
        return {"status": "ok"}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}
