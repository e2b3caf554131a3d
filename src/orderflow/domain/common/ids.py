from __future__ import annotations

from typing import NewType

StoreId = NewType("StoreId", str)
TableId = NewType("TableId", str)
MenuItemId = NewType("MenuItemId", str)
ModifierId = NewType("ModifierId", str)
ModifierOptionId = NewType("ModifierOptionId", str)
OrderId = NewType("OrderId", str)
OrderLineId = NewType("OrderLineId", str)
StaffId = NewType("StaffId", str)
