from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from orderflow.api.container import Container
from orderflow.api.main import create_app
from orderflow.infrastructure.db.schema import create_schema
from orderflow.tools.seed import seed_store


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    seed_store(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def container(engine: Engine) -> Container:
    return Container.in_memory(engine)


@pytest.fixture
def client(container: Container) -> Iterator[TestClient]:
    with TestClient(create_app(container)) as test_client:
        yield test_client


@pytest.fixture
def tea_order_payload() -> dict:
    return {
        "tableId": "tbl_t1",
        "items": [
            {"itemId": "itm_tea", "quantity": 2, "modifiers": {"mod_sugar": ["opt_sugar_extra"]}}
        ],
        "totalCents": 560,
    }
