from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

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

NOTE_MAX_LENGTH = 500


class OrderStatus(str, Enum):
    PLACED = "PLACED"
    PREPARING = "PREPARING"
    READY = "READY"
    SERVED = "SERVED"
    CANCELLED = "CANCELLED"


# Every legal edge is listed; anything absent is an invalid transition.
ALLOWED_TRANSITIONS: frozenset[tuple[OrderStatus, OrderStatus]] = frozenset(
    {
        (OrderStatus.PLACED, OrderStatus.PREPARING),
        (OrderStatus.PLACED, OrderStatus.CANCELLED),
        (OrderStatus.PREPARING, OrderStatus.READY),
        (OrderStatus.PREPARING, OrderStatus.CANCELLED),
        (OrderStatus.READY, OrderStatus.SERVED),
        (OrderStatus.READY, OrderStatus.CANCELLED),
    }
)

TERMINAL_STATUSES = frozenset({OrderStatus.SERVED, OrderStatus.CANCELLED})
ACTIVE_STATUSES = frozenset({OrderStatus.PLACED, OrderStatus.PREPARING, OrderStatus.READY})
QUEUE_STATUSES = frozenset({OrderStatus.PLACED, OrderStatus.PREPARING})


def is_allowed_transition(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    return (from_status, to_status) in ALLOWED_TRANSITIONS


@dataclass(frozen=True)
class SelectedOption:
    """Snapshot of one chosen modifier option, detached from the live menu."""

    modifier_id: ModifierId
    option_id: ModifierOptionId
    title: str
    price_delta_cents: int


@dataclass(frozen=True)
class OrderLine:
    line_id: OrderLineId
    item_id: MenuItemId
    name: str
    quantity: int
    unit_price: Money
    line_total: Money
    modifiers: tuple[SelectedOption, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError("quantity must be an integer")
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.unit_price.currency != self.line_total.currency:
            raise ValueError("line_total currency must match unit_price currency")
        if self.unit_price_with_modifiers_cents < 0:
            raise ValueError("unit price including modifiers must be >= 0")
        expected_total = self.unit_price_with_modifiers_cents * self.quantity
        if self.line_total.amount_cents != expected_total:
            raise ValueError("line_total must equal (unit_price + modifier deltas) * quantity")

    @property
    def unit_price_with_modifiers_cents(self) -> int:
        return self.unit_price.amount_cents + sum(
            option.price_delta_cents for option in self.modifiers
        )


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    store_id: StoreId
    table_id: TableId
    status: OrderStatus
    lines: list[OrderLine]
    total: Money
    created_at: datetime
    updated_at: datetime
    note: str | None = None

    def __post_init__(self) -> None:
        if not self.lines:
            raise ValueError("order must contain at least one line")
        line_currency = self.lines[0].line_total.currency
        if self.total.currency != line_currency:
            raise ValueError("order total currency must match line currency")
        expected_total = sum(line.line_total.amount_cents for line in self.lines)
        if self.total.amount_cents != expected_total:
            raise ValueError("order total must equal sum of line totals")
        if self.note is not None and len(self.note) > NOTE_MAX_LENGTH:
            raise ValueError(f"note must be at most {NOTE_MAX_LENGTH} characters")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition_to(self, to_status: OrderStatus, now: datetime) -> Order:
        if not is_allowed_transition(self.status, to_status):
            raise OrderTransitionError(
                f"cannot move order from status={self.status.value} to status={to_status.value}"
            )
        return replace(self, status=to_status, updated_at=now)


def create_placed_order(
    order_id: OrderId,
    store_id: StoreId,
    table_id: TableId,
    lines: list[OrderLine],
    now: datetime,
    note: str | None = None,
) -> Order:
    if not lines:
        raise ValueError("order must contain at least one line")

    currency = lines[0].line_total.currency
    total = Money(
        amount_cents=sum(line.line_total.amount_cents for line in lines),
        currency=currency,
    )
    return Order(
        order_id=order_id,
        store_id=store_id,
        table_id=table_id,
        status=OrderStatus.PLACED,
        lines=lines,
        total=total,
        created_at=now,
        updated_at=now,
        note=note,
    )


class OrderTransitionError(Exception):
    pass
