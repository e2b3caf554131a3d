from __future__ import annotations

from orderflow.application.dto.responses import (
    MoneyResponse,
    OrderLineResponse,
    OrderResponse,
    SelectedOptionResponse,
)
from orderflow.domain.common.money import Money
from orderflow.domain.order.entities import Order


def to_money_response(money: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=money.amount_cents, currency=money.currency)


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        storeId=str(order.store_id),
        tableId=str(order.table_id),
        status=order.status.value,
        lines=[
            OrderLineResponse(
                lineId=str(line.line_id),
                itemId=str(line.item_id),
                name=line.name,
                quantity=line.quantity,
                unitPrice=to_money_response(line.unit_price),
                lineTotal=to_money_response(line.line_total),
                modifiers=[
                    SelectedOptionResponse(
                        modifierId=str(option.modifier_id),
                        optionId=str(option.option_id),
                        title=option.title,
                        priceDeltaCents=option.price_delta_cents,
                    )
                    for option in line.modifiers
                ],
            )
            for line in order.lines
        ],
        total=to_money_response(order.total),
        note=order.note,
        createdAt=order.created_at,
        updatedAt=order.updated_at,
    )
