from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session, selectinload

from orderflow.application.ports.repositories import MenuRepository
from orderflow.domain.common.ids import MenuItemId, ModifierId, ModifierOptionId, StoreId
from orderflow.domain.common.money import Money
from orderflow.domain.menu.entities import Menu, MenuItem, Modifier, ModifierOption
from orderflow.infrastructure.db.models.menu import (
    ItemModifierModel,
    MenuItemModel,
    ModifierModel,
)
from orderflow.infrastructure.db.repositories.order_repo import as_utc
from orderflow.infrastructure.db.session import get_engine


def _items_statement(store_id: StoreId):
    return (
        select(MenuItemModel)
        .options(
            selectinload(MenuItemModel.modifier_links)
            .selectinload(ItemModifierModel.modifier)
            .selectinload(ModifierModel.options)
        )
        .where(MenuItemModel.store_id == str(store_id))
    )


class SqlAlchemyMenuRepository(MenuRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_menu(self, store_id: StoreId) -> Menu:
        statement = _items_statement(store_id).order_by(
            MenuItemModel.category_id,
            MenuItemModel.name,
            MenuItemModel.id,
        )
        with Session(self._engine) as session:
            models = list(session.execute(statement).scalars().all())
            items = [self._to_domain(model) for model in models]

        updated_at = max(
            (as_utc(model.updated_at) for model in models),
            default=datetime.now(timezone.utc),
        )
        return Menu(store_id=store_id, items=items, updated_at=updated_at)

    def get_items(self, store_id: StoreId, item_ids: list[MenuItemId]) -> dict[str, MenuItem]:
        if not item_ids:
            return {}
        statement = _items_statement(store_id).where(
            MenuItemModel.id.in_([str(item_id) for item_id in item_ids])
        )
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return {model.id: self._to_domain(model) for model in models}

    def set_item_availability(
        self,
        store_id: StoreId,
        item_id: MenuItemId,
        is_available: bool,
    ) -> MenuItem | None:
        statement = _items_statement(store_id).where(MenuItemModel.id == str(item_id))
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            model.is_available = is_available
            model.updated_at = datetime.now(timezone.utc)
            session.commit()
            session.refresh(model)
            return self._to_domain(model)

    def _to_domain(self, model: MenuItemModel) -> MenuItem:
        return MenuItem(
            item_id=MenuItemId(model.id),
            name=model.name,
            description=model.description,
            price_money=Money(amount_cents=model.price_cents, currency=model.currency),
            is_available=model.is_available,
            category_id=model.category_id,
            modifiers=[self._modifier_to_domain(link.modifier) for link in model.modifier_links],
        )

    def _modifier_to_domain(self, model: ModifierModel) -> Modifier:
        return Modifier(
            modifier_id=ModifierId(model.id),
            name=model.name,
            options=[
                ModifierOption(
                    option_id=ModifierOptionId(option.id),
                    label=option.label,
                    price_delta_cents=option.price_delta_cents,
                )
                for option in model.options
            ],
            is_required=model.is_required,
            min_select=model.min_select,
            max_select=model.max_select,
        )
