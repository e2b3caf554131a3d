from __future__ import annotations

import sys
from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

import orderflow.api.routes.health as health_route
from orderflow.api.container import BUS_BACKEND_REDIS, Container
from orderflow.api.main import create_app


def _container() -> Container:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return Container.in_memory(engine)


def test_live_health_endpoint() -> None:
    client = TestClient(create_app(_container()))
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_checks_only_the_database_in_memory_mode() -> None:
    client = TestClient(create_app(_container()))
    response = client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_reports_redis_outage_in_redis_mode(monkeypatch) -> None:
    container = _container()
    container.bus_backend = BUS_BACKEND_REDIS
    monkeypatch.setattr(health_route, "ping_redis", lambda timeout_seconds=1.0: False)

    client = TestClient(create_app(container))
    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.json() == {
        "status": "unavailable",
        "checks": {"database": True, "redis": False},
    }


def test_ready_healthy_with_redis_mocked(monkeypatch) -> None:
    container = _container()
    container.bus_backend = BUS_BACKEND_REDIS
    monkeypatch.setattr(health_route, "ping_redis", lambda timeout_seconds=1.0: True)

    client = TestClient(create_app(container))
    assert client.get("/health/ready").json() == {"status": "ok"}
