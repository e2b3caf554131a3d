from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orderflow.application.ports.repositories import DuplicateKeyError, TableRepository
from orderflow.domain.common.ids import StoreId, TableId
from orderflow.domain.table.entities import Table
from orderflow.infrastructure.db.models.table import TableModel
from orderflow.infrastructure.db.repositories.order_repo import as_utc
from orderflow.infrastructure.db.session import get_engine


class SqlAlchemyTableRepository(TableRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, store_id: StoreId, table_id: TableId) -> Table | None:
        statement = select(TableModel).where(
            TableModel.id == str(table_id),
            TableModel.store_id == str(store_id),
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()

        if model is None:
            return None

        return self._to_domain(model)

    def list_for_store(self, store_id: StoreId, *, active_only: bool = False) -> list[Table]:
        statement = select(TableModel).where(TableModel.store_id == str(store_id))
        if active_only:
            statement = statement.where(TableModel.is_active.is_(True))
        statement = statement.order_by(TableModel.label, TableModel.id)
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
        return [self._to_domain(model) for model in models]

    def add(self, table: Table) -> None:
        model = TableModel(
            id=str(table.table_id),
            store_id=str(table.store_id),
            label=table.label,
            is_active=table.is_active,
            created_at=table.created_at,
        )
        with Session(self._engine) as session:
            session.add(model)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(f"table label {table.label!r} already exists") from exc

    def set_active(self, store_id: StoreId, table_id: TableId, is_active: bool) -> Table | None:
        statement = select(TableModel).where(
            TableModel.id == str(table_id),
            TableModel.store_id == str(store_id),
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            model.is_active = is_active
            session.commit()
            return self._to_domain(model)

    def _to_domain(self, model: TableModel) -> Table:
        return Table(
            table_id=TableId(model.id),
            store_id=StoreId(model.store_id),
            label=model.label,
            is_active=model.is_active,
            created_at=as_utc(model.created_at),
        )
