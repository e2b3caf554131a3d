from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class ModifierOptionResponse(BaseModel):
    optionId: str
    label: str
    priceDeltaCents: int


class ModifierResponse(BaseModel):
    modifierId: str
    name: str
    isRequired: bool
    minSelect: int
    maxSelect: int
    options: list[ModifierOptionResponse] = Field(default_factory=list)


class MenuItemResponse(BaseModel):
    itemId: str
    name: str
    description: str | None = None
    priceMoney: MoneyResponse
    isAvailable: bool
    categoryId: str | None = None
    modifiers: list[ModifierResponse] = Field(default_factory=list)


class MenuResponse(BaseModel):
    storeId: str
    items: list[MenuItemResponse] = Field(default_factory=list)
    updatedAt: datetime


class SelectedOptionResponse(BaseModel):
    modifierId: str
    optionId: str
    title: str
    priceDeltaCents: int


class OrderLineResponse(BaseModel):
    lineId: str
    itemId: str
    name: str
    quantity: int
    unitPrice: MoneyResponse
    lineTotal: MoneyResponse
    modifiers: list[SelectedOptionResponse] = Field(default_factory=list)


class OrderResponse(BaseModel):
    orderId: str
    storeId: str
    tableId: str
    status: str
    lines: list[OrderLineResponse] = Field(default_factory=list)
    total: MoneyResponse
    note: str | None = None
    createdAt: datetime
    updatedAt: datetime


class OrderListResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)
    nextCursor: str | None = None


class QueueAheadResponse(BaseModel):
    ahead: int


class StatusCountsResponse(BaseModel):
    counts: dict[str, int]
    total: int


class TableActivityResponse(BaseModel):
    tableId: str
    label: str
    activeOrders: int


class TableActivityListResponse(BaseModel):
    tables: list[TableActivityResponse] = Field(default_factory=list)


class SeriesBucketResponse(BaseModel):
    bucketStart: datetime
    orders: int
    revenueCents: int


class OrderSeriesResponse(BaseModel):
    bucket: str
    start: datetime
    end: datetime
    currency: str
    buckets: list[SeriesBucketResponse] = Field(default_factory=list)


class TableResponse(BaseModel):
    tableId: str
    storeId: str
    label: str
    isActive: bool
    createdAt: datetime


class TableListResponse(BaseModel):
    tables: list[TableResponse] = Field(default_factory=list)


class WaiterTableResponse(BaseModel):
    waiterId: str
    tableId: str


class AssignWaiterResponse(BaseModel):
    assignment: WaiterTableResponse
    created: bool


class WaiterTableListResponse(BaseModel):
    assignments: list[WaiterTableResponse] = Field(default_factory=list)


class WaiterTablesResponse(BaseModel):
    waiterId: str
    tableIds: list[str] = Field(default_factory=list)


class TableWaitersResponse(BaseModel):
    tableId: str
    waiterIds: list[str] = Field(default_factory=list)


class CallWaiterResponse(BaseModel):
    success: bool
    state: str
    tableId: str
