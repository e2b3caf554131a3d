from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from orderflow.application.dto.responses import (
    OrderSeriesResponse,
    QueueAheadResponse,
    SeriesBucketResponse,
    StatusCountsResponse,
    TableActivityListResponse,
    TableActivityResponse,
)
from orderflow.application.errors import ForbiddenError, InvalidInputError, OrderNotFoundError
from orderflow.application.metrics.order_lifecycle import record_projection_read
from orderflow.application.ports.cache import CacheStore
from orderflow.application.ports.repositories import OrderRepository, TableRepository
from orderflow.application.use_cases.context import Clock, utc_now
from orderflow.domain.common.ids import OrderId, StoreId
from orderflow.domain.order.entities import QUEUE_STATUSES, OrderStatus
from orderflow.domain.staff.principal import Principal, describe, may_manage

DEFAULT_TTL_SECONDS = 2.0
DEFAULT_SERIES_DAYS = 10
MAX_SERIES_BUCKETS = 1000

_BUCKET_STEPS = {
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
}

ResponseT = TypeVar("ResponseT", bound=BaseModel)


def projection_cache_key(store_id: StoreId, projection: str, *parts: str) -> str:
    return ":".join(["projection", str(store_id), projection, *parts])


def _require_manager(principal: Principal) -> None:
    if not may_manage(principal):
        raise ForbiddenError(f"{describe(principal)} may not read analytics")


class _CachedProjection:
    """Read-through cache around a recompute. Cache failures fall back to the store."""

    name = "projection"

    def __init__(self, cache: CacheStore, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> None:
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    def _cache_get(self, key: str) -> str | None:
        try:
            return self._cache.get(key)
        except Exception:
            return None

    def _cache_set(self, key: str, value: str) -> None:
        try:
            self._cache.set(key, value, ttl_seconds=self._ttl_seconds)
        except Exception:
            return

    def _read(
        self,
        key: str,
        model: type[ResponseT],
        compute: Callable[[], ResponseT],
    ) -> ResponseT:
        if self._ttl_seconds > 0:
            payload = self._cache_get(key)
            if payload:
                try:
                    response = model.model_validate_json(payload)
                except ValidationError:
                    pass
                else:
                    record_projection_read(self.name, cache_hit=True)
                    return response

        response = compute()
        record_projection_read(self.name, cache_hit=False)
        if self._ttl_seconds > 0:
            self._cache_set(key, response.model_dump_json())
        return response


class GetQueueAhead(_CachedProjection):
    """Number of orders still waiting for the kitchen (PLACED or PREPARING).

    With ``order_id`` only orders created before that order count, and an
    order that already left the queue has nothing ahead of it.
    """

    name = "queue_ahead"

    def __init__(
        self,
        order_repository: OrderRepository,
        cache: CacheStore,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
    ) -> None:
        super().__init__(cache, ttl_seconds)
        self._order_repository = order_repository

    def execute(self, store_id: StoreId, order_id: OrderId | None = None) -> QueueAheadResponse:
        key = projection_cache_key(store_id, self.name, str(order_id or "*"))
        return self._read(key, QueueAheadResponse, lambda: self._compute(store_id, order_id))

    def _compute(self, store_id: StoreId, order_id: OrderId | None) -> QueueAheadResponse:
        if order_id is None:
            ahead = self._order_repository.count_in_statuses(store_id, QUEUE_STATUSES)
            return QueueAheadResponse(ahead=ahead)

        order = self._order_repository.get(order_id)
        if order is None or order.store_id != store_id:
            raise OrderNotFoundError(
                f"order {order_id} not found",
                details={"orderId": str(order_id)},
            )
        if order.status not in QUEUE_STATUSES:
            return QueueAheadResponse(ahead=0)
        ahead = self._order_repository.count_in_statuses(
            store_id,
            QUEUE_STATUSES,
            created_before=order.created_at,
        )
        return QueueAheadResponse(ahead=ahead)


class GetStatusCounts(_CachedProjection):
    name = "status_counts"

    def __init__(
        self,
        order_repository: OrderRepository,
        cache: CacheStore,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
    ) -> None:
        super().__init__(cache, ttl_seconds)
        self._order_repository = order_repository

    def execute(self, store_id: StoreId, principal: Principal) -> StatusCountsResponse:
        _require_manager(principal)
        key = projection_cache_key(store_id, self.name)
        return self._read(key, StatusCountsResponse, lambda: self._compute(store_id))

    def _compute(self, store_id: StoreId) -> StatusCountsResponse:
        raw = self._order_repository.count_by_status(store_id)
        counts = {status.value: raw.get(status, 0) for status in OrderStatus}
        return StatusCountsResponse(counts=counts, total=sum(counts.values()))


class GetTableActivity(_CachedProjection):
    """Active-order count for every active table, including tables with none."""

    name = "table_activity"

    def __init__(
        self,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        cache: CacheStore,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
    ) -> None:
        super().__init__(cache, ttl_seconds)
        self._table_repository = table_repository
        self._order_repository = order_repository

    def execute(self, store_id: StoreId, principal: Principal) -> TableActivityListResponse:
        _require_manager(principal)
        key = projection_cache_key(store_id, self.name)
        return self._read(key, TableActivityListResponse, lambda: self._compute(store_id))

    def _compute(self, store_id: StoreId) -> TableActivityListResponse:
        tables = self._table_repository.list_for_store(store_id, active_only=True)
        active_counts = self._order_repository.count_active_by_table(store_id)
        return TableActivityListResponse(
            tables=[
                TableActivityResponse(
                    tableId=str(table.table_id),
                    label=table.label,
                    activeOrders=active_counts.get(str(table.table_id), 0),
                )
                for table in tables
            ]
        )


def truncate_to_bucket(value: datetime, bucket: str) -> datetime:
    value = value.astimezone(timezone.utc)
    if bucket == "hour":
        return value.replace(minute=0, second=0, microsecond=0)
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


class GetOrderSeries(_CachedProjection):
    """Order count and revenue per hour or day. Revenue leaves out CANCELLED orders."""

    name = "order_series"

    def __init__(
        self,
        order_repository: OrderRepository,
        cache: CacheStore,
        currency: str,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(cache, ttl_seconds)
        self._order_repository = order_repository
        self._currency = currency
        self._clock = clock

    def execute(
        self,
        store_id: StoreId,
        principal: Principal,
        bucket: str = "day",
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> OrderSeriesResponse:
        _require_manager(principal)
        if bucket not in _BUCKET_STEPS:
            raise InvalidInputError(
                "bucket must be 'hour' or 'day'",
                details={"bucket": bucket},
            )

        range_end = _as_utc(end) if end is not None else _minute_ceiling(self._clock())
        range_start = (
            _as_utc(start)
            if start is not None
            else range_end - timedelta(days=DEFAULT_SERIES_DAYS)
        )
        if range_start >= range_end:
            raise InvalidInputError(
                "start must be before end",
                details={"start": range_start.isoformat(), "end": range_end.isoformat()},
            )

        step = _BUCKET_STEPS[bucket]
        first_bucket = truncate_to_bucket(range_start, bucket)
        bucket_count = -(-(range_end - first_bucket) // step)
        if bucket_count > MAX_SERIES_BUCKETS:
            raise InvalidInputError(
                f"range spans more than {MAX_SERIES_BUCKETS} buckets",
                details={"buckets": bucket_count},
            )

        key = projection_cache_key(
            store_id,
            self.name,
            bucket,
            range_start.isoformat(),
            range_end.isoformat(),
        )
        return self._read(
            key,
            OrderSeriesResponse,
            lambda: self._compute(
                store_id, bucket, range_start, range_end, first_bucket, bucket_count
            ),
        )

    def _compute(
        self,
        store_id: StoreId,
        bucket: str,
        range_start: datetime,
        range_end: datetime,
        first_bucket: datetime,
        bucket_count: int,
    ) -> OrderSeriesResponse:
        step = _BUCKET_STEPS[bucket]
        starts = [first_bucket + step * index for index in range(bucket_count)]
        orders = {bucket_start: 0 for bucket_start in starts}
        revenue = {bucket_start: 0 for bucket_start in starts}

        rows = self._order_repository.list_created_between(store_id, range_start, range_end)
        for row in rows:
            bucket_start = truncate_to_bucket(row.created_at, bucket)
            if bucket_start not in orders:
                continue
            orders[bucket_start] += 1
            if row.status != OrderStatus.CANCELLED:
                revenue[bucket_start] += row.total_cents

        return OrderSeriesResponse(
            bucket=bucket,
            start=range_start,
            end=range_end,
            currency=self._currency,
            buckets=[
                SeriesBucketResponse(
                    bucketStart=bucket_start,
                    orders=orders[bucket_start],
                    revenueCents=revenue[bucket_start],
                )
                for bucket_start in starts
            ],
        )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _minute_ceiling(value: datetime) -> datetime:
    # Open-ended ranges share one cache key per minute.
    value = _as_utc(value)
    floor = value.replace(second=0, microsecond=0)
    return floor if floor == value else floor + timedelta(minutes=1)
