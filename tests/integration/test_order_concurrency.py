from __future__ import annotations

import concurrent.futures
import sys
import threading
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from orderflow.api.container import Container
from orderflow.api.main import create_app
from orderflow.application.errors import ConcurrentTransitionError, InvalidTransitionError
from orderflow.application.use_cases.context import TraceContext
from orderflow.application.use_cases.transition_order import TransitionOrder
from orderflow.domain.common.ids import OrderId, StaffId
from orderflow.domain.order.entities import OrderStatus
from orderflow.domain.staff.principal import Cook, Manager
from orderflow.infrastructure.db.schema import create_schema
from orderflow.infrastructure.messaging.in_memory_bus import InMemoryBus
from orderflow.tools.seed import seed_store

ROUNDS = 10

# (cook asking for PREPARING, manager asking for CANCELLED, final status)
ALLOWED_OUTCOMES = {
    ("PREPARING", "CONFLICT", "PREPARING"),
    ("INVALID", "CANCELLED", "CANCELLED"),
    ("PREPARING", "CANCELLED", "CANCELLED"),
}


@pytest.fixture
def file_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'orderflow.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    create_schema(engine)
    seed_store(engine)
    yield engine
    engine.dispose()


def _place_orders(container: Container, payload: dict, count: int) -> list[OrderId]:
    order_ids: list[OrderId] = []
    with TestClient(create_app(container)) as client:
        for _ in range(count):
            response = client.post("/v1/orders", json=payload)
            assert response.status_code == 201, response.text
            order_ids.append(OrderId(response.json()["orderId"]))
    return order_ids


def test_racing_prepare_and_cancel_settle_on_one_allowed_outcome(
    file_engine: Engine, tea_order_payload: dict
) -> None:
    container = Container.in_memory(file_engine)
    order_ids = _place_orders(container, tea_order_payload, ROUNDS)
    bus = InMemoryBus()
    use_case = TransitionOrder(container.order_repository, bus)
    requests = [
        (OrderStatus.PREPARING, Cook(StaffId("stf_cook_1"))),
        (OrderStatus.CANCELLED, Manager(StaffId("stf_manager_1"))),
    ]

    for order_id in order_ids:
        barrier = threading.Barrier(len(requests))

        def _attempt(request) -> str:
            to_status, principal = request
            barrier.wait()
            try:
                return use_case.execute(
                    order_id, to_status, principal, TraceContext.empty()
                ).status
            except ConcurrentTransitionError:
                return "CONFLICT"
            except InvalidTransitionError:
                return "INVALID"

        with concurrent.futures.ThreadPoolExecutor(max_workers=len(requests)) as executor:
            prepare_result, cancel_result = executor.map(_attempt, requests)

        current = container.order_repository.get(order_id)
        assert current is not None
        outcome = (prepare_result, cancel_result, current.status.value)
        assert outcome in ALLOWED_OUTCOMES

    changed = [topic for topic in bus.topics() if topic.endswith("/orders/changed")]
    cancelled = [topic for topic in bus.topics() if topic.endswith("/cancelled")]
    final_statuses = [container.order_repository.get(order_id).status for order_id in order_ids]
    assert len(cancelled) == final_statuses.count(OrderStatus.CANCELLED)
    assert len(changed) >= ROUNDS
