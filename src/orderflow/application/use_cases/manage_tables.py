from __future__ import annotations

import logging
from uuid import uuid4

from orderflow.application.dto.requests import CreateTableRequest
from orderflow.application.dto.responses import TableListResponse, TableResponse
from orderflow.application.errors import (
    ForbiddenError,
    InvalidInputError,
    TableLabelConflictError,
    TableNotFoundError,
)
from orderflow.application.mappers.table_mapper import to_table_response
from orderflow.application.ports.repositories import DuplicateKeyError, TableRepository
from orderflow.application.use_cases.context import Clock, utc_now
from orderflow.domain.common.ids import StoreId, TableId
from orderflow.domain.staff.principal import Principal, describe, is_staff, may_manage
from orderflow.domain.table.entities import Table

logger = logging.getLogger(__name__)


def new_table_id() -> TableId:
    return TableId(f"tbl_{uuid4().hex[:12]}")


class CreateTable:
    def __init__(self, table_repository: TableRepository, clock: Clock = utc_now) -> None:
        self._table_repository = table_repository
        self._clock = clock

    def execute(
        self,
        store_id: StoreId,
        request_dto: CreateTableRequest,
        principal: Principal,
    ) -> TableResponse:
        if not may_manage(principal):
            raise ForbiddenError(f"{describe(principal)} may not create tables")

        label = request_dto.label.strip()
        try:
            table = Table(
                table_id=new_table_id(),
                store_id=store_id,
                label=label,
                is_active=request_dto.is_active,
                created_at=self._clock(),
            )
        except ValueError as exc:
            raise InvalidInputError(str(exc), details={"label": request_dto.label}) from exc

        existing = self._table_repository.list_for_store(store_id)
        if any(other.label == label for other in existing):
            raise TableLabelConflictError(
                f"table label {label!r} already exists",
                details={"label": label},
            )
        try:
            self._table_repository.add(table)
        except DuplicateKeyError as exc:
            raise TableLabelConflictError(
                f"table label {label!r} already exists",
                details={"label": label},
            ) from exc

        logger.info("table_created", extra={"table_id": str(table.table_id), "label": label})
        return to_table_response(table)


class SetTableActive:
    """Activate or deactivate a table. Tables are never physically removed."""

    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(
        self,
        store_id: StoreId,
        table_id: TableId,
        is_active: bool,
        principal: Principal,
    ) -> TableResponse:
        if not may_manage(principal):
            raise ForbiddenError(f"{describe(principal)} may not change tables")

        table = self._table_repository.set_active(store_id, table_id, is_active)
        if table is None:
            raise TableNotFoundError(
                f"table {table_id} not found",
                details={"tableId": str(table_id)},
            )
        logger.info(
            "table_activity_changed",
            extra={"table_id": str(table_id), "is_active": is_active},
        )
        return to_table_response(table)


class ListTables:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(
        self,
        store_id: StoreId,
        principal: Principal,
        *,
        active_only: bool = False,
    ) -> TableListResponse:
        if not is_staff(principal):
            raise ForbiddenError(f"{describe(principal)} may not list tables")
        tables = self._table_repository.list_for_store(store_id, active_only=active_only)
        return TableListResponse(tables=[to_table_response(table) for table in tables])
