from __future__ import annotations

from collections.abc import Iterable

from orderflow.application.notifications.topics import table_id_from_topic
from orderflow.application.ports.repositories import AssignmentRepository
from orderflow.domain.common.ids import StaffId


class WaiterEventFilter:
    """Decide whether a bus topic is actionable for one waiter.

    Store-wide topics always pass. Table-scoped topics pass only for tables
    in the waiter's current assignment set.
    """

    def __init__(self, waiter_id: StaffId, table_ids: Iterable[str] = ()) -> None:
        self.waiter_id = waiter_id
        self._table_ids = frozenset(str(table_id) for table_id in table_ids)

    @classmethod
    def for_waiter(cls, repository: AssignmentRepository, waiter_id: StaffId) -> WaiterEventFilter:
        return cls(waiter_id, repository.tables_for_waiter(waiter_id))

    @property
    def table_ids(self) -> frozenset[str]:
        return self._table_ids

    def update(self, table_ids: Iterable[str]) -> None:
        self._table_ids = frozenset(str(table_id) for table_id in table_ids)

    def is_actionable(self, topic: str) -> bool:
        table_id = table_id_from_topic(topic)
        if table_id is None:
            return True
        return table_id in self._table_ids
