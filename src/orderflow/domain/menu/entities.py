from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from orderflow.domain.common.ids import MenuItemId, ModifierId, ModifierOptionId, StoreId
from orderflow.domain.common.money import Money


@dataclass(frozen=True)
class ModifierOption:
    option_id: ModifierOptionId
    label: str
    price_delta_cents: int = 0


@dataclass(frozen=True)
class Modifier:
    modifier_id: ModifierId
    name: str
    options: list[ModifierOption] = field(default_factory=list)
    is_required: bool = False
    min_select: int = 0
    max_select: int = 1

    def __post_init__(self) -> None:
        if self.min_select < 0:
            raise ValueError("min_select must be >= 0")
        if self.max_select < 1:
            raise ValueError("max_select must be >= 1")
        if self.min_select > self.max_select:
            raise ValueError("min_select must be <= max_select")

    @property
    def selection_required(self) -> bool:
        return self.is_required or self.min_select > 0

    def option(self, option_id: str) -> ModifierOption | None:
        for option in self.options:
            if str(option.option_id) == option_id:
                return option
        return None


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    name: str
    description: str | None
    price_money: Money
    is_available: bool
    category_id: str | None = None
    modifiers: list[Modifier] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")

    def modifier(self, modifier_id: str) -> Modifier | None:
        for modifier in self.modifiers:
            if str(modifier.modifier_id) == modifier_id:
                return modifier
        return None


@dataclass(frozen=True)
class Menu:
    store_id: StoreId
    items: list[MenuItem] = field(default_factory=list)
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
