from __future__ import annotations

import base64
from datetime import datetime, timezone

from sqlalchemy import Engine, and_, func, or_, select, update
from sqlalchemy.orm import Session, joinedload

from orderflow.application.ports.repositories import (
    InvalidCursorError,
    OrderRepository,
    OrderStatRow,
)
from orderflow.domain.common.ids import (
    MenuItemId,
    ModifierId,
    ModifierOptionId,
    OrderId,
    OrderLineId,
    StoreId,
    TableId,
)
from orderflow.domain.common.money import Money
from orderflow.domain.order.entities import (
    ACTIVE_STATUSES,
    Order,
    OrderLine,
    OrderStatus,
    SelectedOption,
)
from orderflow.infrastructure.db.models.order import OrderLineModel, OrderModel
from orderflow.infrastructure.db.session import get_engine


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, order: Order) -> None:
        order_model = self._to_model(order)
        with Session(self._engine) as session:
            session.add(order_model)
            session.commit()

    def get(self, order_id: OrderId) -> Order | None:
        statement = (
            select(OrderModel)
            .options(joinedload(OrderModel.lines))
            .where(OrderModel.id == str(order_id))
            .limit(1)
        )
        with Session(self._engine) as session:
            model = session.execute(statement).unique().scalar_one_or_none()

        if model is None:
            return None

        return self._to_domain(model)

    def compare_and_set_status(
        self,
        order_id: OrderId,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        now: datetime,
    ) -> Order | None:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order_id),
                OrderModel.status == expected_status.value,
            )
            .values(status=new_status.value, updated_at=now)
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                return None
            session.commit()

        updated = self.get(order_id)
        if updated is None:
            raise RuntimeError(f"order {order_id} not found after status update")
        return updated

    def delete(self, order_id: OrderId) -> bool:
        with Session(self._engine) as session:
            model = session.get(OrderModel, str(order_id))
            if model is None:
                return False
            session.delete(model)
            session.commit()
        return True

    def list_for_store(
        self,
        store_id: StoreId,
        status: OrderStatus | None,
        limit: int,
        cursor: str | None,
    ) -> tuple[list[Order], str | None]:
        statement = (
            select(OrderModel)
            .options(joinedload(OrderModel.lines))
            .where(OrderModel.store_id == str(store_id))
        )
        if status is not None:
            statement = statement.where(OrderModel.status == status.value)

        cursor_parts = _decode_cursor(cursor) if cursor else None
        if cursor_parts is not None:
            cursor_created_at, cursor_order_id = cursor_parts
            statement = statement.where(
                or_(
                    OrderModel.created_at < cursor_created_at,
                    and_(
                        OrderModel.created_at == cursor_created_at,
                        OrderModel.id < cursor_order_id,
                    ),
                )
            )

        statement = statement.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).limit(
            limit + 1
        )

        with Session(self._engine) as session:
            models = list(session.execute(statement).unique().scalars().all())

        has_more = len(models) > limit
        page_models = models[:limit]
        orders = [self._to_domain(model) for model in page_models]
        next_cursor: str | None = None
        if has_more and page_models:
            last = page_models[-1]
            next_cursor = _encode_cursor(as_utc(last.created_at), last.id)
        return orders, next_cursor

    def count_by_status(self, store_id: StoreId) -> dict[OrderStatus, int]:
        statement = (
            select(OrderModel.status, func.count())
            .where(OrderModel.store_id == str(store_id))
            .group_by(OrderModel.status)
        )
        with Session(self._engine) as session:
            rows = session.execute(statement).all()
        return {OrderStatus(status): int(count) for status, count in rows}

    def count_in_statuses(
        self,
        store_id: StoreId,
        statuses: frozenset[OrderStatus],
        created_before: datetime | None = None,
    ) -> int:
        statement = (
            select(func.count())
            .select_from(OrderModel)
            .where(
                OrderModel.store_id == str(store_id),
                OrderModel.status.in_([status.value for status in statuses]),
            )
        )
        if created_before is not None:
            statement = statement.where(OrderModel.created_at < created_before)
        with Session(self._engine) as session:
            return int(session.execute(statement).scalar_one())

    def count_active_by_table(self, store_id: StoreId) -> dict[str, int]:
        statement = (
            select(OrderModel.table_id, func.count())
            .where(
                OrderModel.store_id == str(store_id),
                OrderModel.status.in_([status.value for status in ACTIVE_STATUSES]),
            )
            .group_by(OrderModel.table_id)
        )
        with Session(self._engine) as session:
            rows = session.execute(statement).all()
        return {table_id: int(count) for table_id, count in rows}

    def list_created_between(
        self,
        store_id: StoreId,
        start: datetime,
        end: datetime,
    ) -> list[OrderStatRow]:
        statement = select(
            OrderModel.created_at,
            OrderModel.status,
            OrderModel.total_cents,
        ).where(
            OrderModel.store_id == str(store_id),
            OrderModel.created_at >= start,
            OrderModel.created_at < end,
        )
        with Session(self._engine) as session:
            rows = session.execute(statement).all()
        return [
            OrderStatRow(
                created_at=as_utc(created_at),
                status=OrderStatus(status),
                total_cents=total_cents,
            )
            for created_at, status, total_cents in rows
        ]

    def _to_model(self, order: Order) -> OrderModel:
        order_model = OrderModel(
            id=str(order.order_id),
            store_id=str(order.store_id),
            table_id=str(order.table_id),
            status=order.status.value,
            note=order.note,
            created_at=order.created_at,
            updated_at=order.updated_at,
            total_cents=order.total.amount_cents,
            currency=order.total.currency,
        )
        order_model.lines = [
            OrderLineModel(
                id=str(line.line_id),
                order_id=str(order.order_id),
                position=position,
                item_id=str(line.item_id),
                name=line.name,
                quantity=line.quantity,
                unit_price_cents=line.unit_price.amount_cents,
                currency=line.unit_price.currency,
                line_total_cents=line.line_total.amount_cents,
                modifiers=[
                    {
                        "modifierId": str(option.modifier_id),
                        "optionId": str(option.option_id),
                        "title": option.title,
                        "priceDeltaCents": option.price_delta_cents,
                    }
                    for option in line.modifiers
                ],
            )
            for position, line in enumerate(order.lines)
        ]
        return order_model

    def _to_domain(self, model: OrderModel) -> Order:
        lines = [
            OrderLine(
                line_id=OrderLineId(line.id),
                item_id=MenuItemId(line.item_id),
                name=line.name,
                quantity=line.quantity,
                unit_price=Money(amount_cents=line.unit_price_cents, currency=line.currency),
                line_total=Money(amount_cents=line.line_total_cents, currency=line.currency),
                modifiers=tuple(
                    SelectedOption(
                        modifier_id=ModifierId(option["modifierId"]),
                        option_id=ModifierOptionId(option["optionId"]),
                        title=option["title"],
                        price_delta_cents=int(option["priceDeltaCents"]),
                    )
                    for option in (line.modifiers or [])
                ),
            )
            for line in model.lines
        ]
        return Order(
            order_id=OrderId(model.id),
            store_id=StoreId(model.store_id),
            table_id=TableId(model.table_id),
            status=OrderStatus(model.status),
            lines=lines,
            total=Money(amount_cents=model.total_cents, currency=model.currency),
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
            note=model.note,
        )


def _encode_cursor(created_at: datetime, order_id: str) -> str:
    payload = f"{created_at.isoformat()}|{order_id}"
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def _decode_cursor(cursor: str) -> tuple[datetime, str]:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
        created_at_raw, order_id = raw.split("|", 1)
        created_at = datetime.fromisoformat(created_at_raw)
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return created_at, order_id
    except Exception as exc:
        raise InvalidCursorError("invalid cursor") from exc
