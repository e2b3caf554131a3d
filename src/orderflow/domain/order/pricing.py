from __future__ import annotations

from orderflow.domain.common.ids import OrderLineId
from orderflow.domain.common.money import Money
from orderflow.domain.menu.entities import MenuItem
from orderflow.domain.order.entities import OrderLine, SelectedOption


class ModifierSelectionError(ValueError):
    pass


def price_line(
    line_id: OrderLineId,
    item: MenuItem,
    quantity: int,
    selections: dict[str, list[str]],
) -> OrderLine:
    """Build an order line from the live menu, snapshotting prices and modifiers.

    ``selections`` maps a modifier id to the chosen option ids. The resulting
    line no longer references the menu: later price changes do not affect it.
    """
    chosen: list[SelectedOption] = []
    for modifier_id, option_ids in selections.items():
        modifier = item.modifier(modifier_id)
        if modifier is None:
            raise ModifierSelectionError(
                f"modifier {modifier_id} is not allowed for item {item.item_id}"
            )
        if not option_ids:
            continue
        if len(set(option_ids)) != len(option_ids):
            raise ModifierSelectionError(f"duplicate options selected for modifier {modifier_id}")
        if len(option_ids) > modifier.max_select:
            raise ModifierSelectionError(
                f"modifier {modifier_id} allows at most {modifier.max_select} option(s)"
            )
        for option_id in option_ids:
            option = modifier.option(option_id)
            if option is None:
                raise ModifierSelectionError(
                    f"option {option_id} not found for modifier {modifier_id}"
                )
            chosen.append(
                SelectedOption(
                    modifier_id=modifier.modifier_id,
                    option_id=option.option_id,
                    title=f"{modifier.name}: {option.label}",
                    price_delta_cents=option.price_delta_cents,
                )
            )

    for modifier in item.modifiers:
        selected = selections.get(str(modifier.modifier_id)) or []
        required = max(modifier.min_select, 1 if modifier.selection_required else 0)
        if len(selected) < required:
            raise ModifierSelectionError(
                f"modifier {modifier.modifier_id} requires at least {required} option(s)"
            )

    unit_price = item.price_money
    unit_with_modifiers = unit_price.amount_cents + sum(
        option.price_delta_cents for option in chosen
    )
    if unit_with_modifiers < 0:
        raise ModifierSelectionError(f"item {item.item_id} price with modifiers is negative")

    return OrderLine(
        line_id=line_id,
        item_id=item.item_id,
        name=item.name,
        quantity=quantity,
        unit_price=unit_price,
        line_total=Money(amount_cents=unit_with_modifiers * quantity, currency=unit_price.currency),
        modifiers=tuple(chosen),
    )
