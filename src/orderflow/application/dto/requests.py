from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from orderflow.domain.order.entities import NOTE_MAX_LENGTH, OrderStatus
from orderflow.domain.table.entities import LABEL_MAX_LENGTH


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class CreateOrderItemRequest(CamelBaseModel):
    item_id: str = Field(min_length=1)
    quantity: int = Field(strict=True)
    price_cents: int | None = None
    modifiers: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("modifiers", mode="before")
    @classmethod
    def _normalize_modifiers(cls, value: Any) -> Any:
        # Clients send either an object or its JSON text; a single option id
        # may be given bare instead of in a list.
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("modifiers must be a JSON object") from exc
        if not isinstance(value, dict):
            raise ValueError("modifiers must map modifier ids to option ids")
        normalized: dict[str, list[str]] = {}
        for modifier_id, options in value.items():
            if isinstance(options, str):
                normalized[str(modifier_id)] = [options]
            elif isinstance(options, list):
                normalized[str(modifier_id)] = [str(option) for option in options]
            else:
                raise ValueError(f"options for modifier {modifier_id} must be a string or list")
        return normalized


class CreateOrderRequest(CamelBaseModel):
    table_id: str = Field(min_length=1)
    items: list[CreateOrderItemRequest]
    total_cents: int
    note: str | None = Field(default=None, max_length=NOTE_MAX_LENGTH)


class UpdateOrderStatusRequest(CamelBaseModel):
    status: OrderStatus


class CallWaiterRequest(CamelBaseModel):
    table_id: str = Field(min_length=1)


class WaiterTableRequest(CamelBaseModel):
    waiter_id: str = Field(min_length=1)
    table_id: str = Field(min_length=1)


class CreateTableRequest(CamelBaseModel):
    label: str = Field(min_length=1, max_length=LABEL_MAX_LENGTH)
    is_active: bool = True


class UpdateTableRequest(CamelBaseModel):
    is_active: bool


class ItemAvailabilityRequest(CamelBaseModel):
    is_available: bool
