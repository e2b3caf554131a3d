from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orderflow.application.ports.repositories import AssignmentRepository, StaffRepository
from orderflow.domain.common.ids import StaffId, StoreId, TableId
from orderflow.domain.staff.entities import StaffMember, WaiterTableAssignment
from orderflow.domain.staff.principal import StaffRole
from orderflow.infrastructure.db.models.staff import StaffModel, WaiterTableModel
from orderflow.infrastructure.db.models.table import TableModel
from orderflow.infrastructure.db.session import get_engine


class SqlAlchemyStaffRepository(StaffRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, store_id: StoreId, staff_id: StaffId) -> StaffMember | None:
        statement = select(StaffModel).where(
            StaffModel.id == str(staff_id),
            StaffModel.store_id == str(store_id),
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
        if model is None:
            return None
        return StaffMember(
            staff_id=StaffId(model.id),
            store_id=StoreId(model.store_id),
            display_name=model.display_name,
            role=StaffRole(model.role),
        )


class SqlAlchemyAssignmentRepository(AssignmentRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, waiter_id: StaffId, table_id: TableId) -> WaiterTableAssignment | None:
        with Session(self._engine) as session:
            model = session.get(WaiterTableModel, (str(waiter_id), str(table_id)))
        if model is None:
            return None
        return WaiterTableAssignment(waiter_id=waiter_id, table_id=table_id)

    def add(self, assignment: WaiterTableAssignment) -> bool:
        with Session(self._engine) as session:
            existing = session.get(
                WaiterTableModel,
                (str(assignment.waiter_id), str(assignment.table_id)),
            )
            if existing is not None:
                return False
            session.add(
                WaiterTableModel(
                    waiter_id=str(assignment.waiter_id),
                    table_id=str(assignment.table_id),
                )
            )
            try:
                session.commit()
            except IntegrityError:
                # Lost a race with a concurrent assign of the same pair.
                session.rollback()
                return False
        return True

    def remove(self, waiter_id: StaffId, table_id: TableId) -> bool:
        with Session(self._engine) as session:
            model = session.get(WaiterTableModel, (str(waiter_id), str(table_id)))
            if model is None:
                return False
            session.delete(model)
            session.commit()
        return True

    def list_for_store(self, store_id: StoreId) -> list[WaiterTableAssignment]:
        statement = (
            select(WaiterTableModel.waiter_id, WaiterTableModel.table_id)
            .join(TableModel, TableModel.id == WaiterTableModel.table_id)
            .where(TableModel.store_id == str(store_id))
            .order_by(WaiterTableModel.waiter_id, WaiterTableModel.table_id)
        )
        with Session(self._engine) as session:
            rows = session.execute(statement).all()
        return [
            WaiterTableAssignment(waiter_id=StaffId(waiter_id), table_id=TableId(table_id))
            for waiter_id, table_id in rows
        ]

    def tables_for_waiter(self, waiter_id: StaffId) -> set[TableId]:
        statement = select(WaiterTableModel.table_id).where(
            WaiterTableModel.waiter_id == str(waiter_id)
        )
        with Session(self._engine) as session:
            return {TableId(table_id) for table_id in session.execute(statement).scalars()}

    def waiters_for_table(self, table_id: TableId) -> set[StaffId]:
        statement = select(WaiterTableModel.waiter_id).where(
            WaiterTableModel.table_id == str(table_id)
        )
        with Session(self._engine) as session:
            return {StaffId(waiter_id) for waiter_id in session.execute(statement).scalars()}
