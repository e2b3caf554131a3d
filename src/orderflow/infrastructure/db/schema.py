from __future__ import annotations

from sqlalchemy import Engine

from orderflow.infrastructure.db.models import order, staff, table  # noqa: F401
from orderflow.infrastructure.db.models.menu import Base

metadata = Base.metadata


def create_schema(engine: Engine) -> None:
    """Create every table directly. Production databases use the Alembic migrations."""
    metadata.create_all(engine)
