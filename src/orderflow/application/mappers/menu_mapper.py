from __future__ import annotations

from orderflow.application.dto.responses import (
    MenuItemResponse,
    MenuResponse,
    ModifierOptionResponse,
    ModifierResponse,
)
from orderflow.application.mappers.order_mapper import to_money_response
from orderflow.domain.menu.entities import Menu, MenuItem, Modifier


def _to_modifier_response(modifier: Modifier) -> ModifierResponse:
    return ModifierResponse(
        modifierId=str(modifier.modifier_id),
        name=modifier.name,
        isRequired=modifier.is_required,
        minSelect=modifier.min_select,
        maxSelect=modifier.max_select,
        options=[
            ModifierOptionResponse(
                optionId=str(option.option_id),
                label=option.label,
                priceDeltaCents=option.price_delta_cents,
            )
            for option in modifier.options
        ],
    )


def to_menu_item_response(item: MenuItem) -> MenuItemResponse:
    return MenuItemResponse(
        itemId=str(item.item_id),
        name=item.name,
        description=item.description,
        priceMoney=to_money_response(item.price_money),
        isAvailable=item.is_available,
        categoryId=item.category_id,
        modifiers=[_to_modifier_response(modifier) for modifier in item.modifiers],
    )


def to_menu_response(menu: Menu) -> MenuResponse:
    return MenuResponse(
        storeId=str(menu.store_id),
        items=[to_menu_item_response(item) for item in menu.items],
        updatedAt=menu.updated_at,
    )
