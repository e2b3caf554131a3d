from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from orderflow.domain.common.ids import StoreId, TableId

LABEL_MAX_LENGTH = 50


@dataclass(frozen=True)
class Table:
    table_id: TableId
    store_id: StoreId
    label: str
    is_active: bool
    created_at: datetime

    def __post_init__(self) -> None:
        if not self.label.strip():
            raise ValueError("label must be non-empty")
        if len(self.label) > LABEL_MAX_LENGTH:
            raise ValueError(f"label must be at most {LABEL_MAX_LENGTH} characters")

    # Tables are never deleted: historical orders keep pointing at them.
    def deactivate(self) -> Table:
        if not self.is_active:
            return self
        return replace(self, is_active=False)

    def activate(self) -> Table:
        if self.is_active:
            return self
        return replace(self, is_active=True)

    def ensure_active(self) -> None:
        if not self.is_active:
            raise TableInactiveError(f"table {self.table_id} is not active")


class TableInactiveError(Exception):
    pass
