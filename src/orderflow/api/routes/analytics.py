from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from orderflow.api.container import Container
from orderflow.api.dependencies import current_principal, get_container
from orderflow.application.dto.responses import (
    OrderSeriesResponse,
    StatusCountsResponse,
    TableActivityListResponse,
)
from orderflow.application.use_cases.projections import (
    GetOrderSeries,
    GetStatusCounts,
    GetTableActivity,
)
from orderflow.domain.staff.principal import Principal

router = APIRouter(prefix="/v1/analytics")


@router.get("/status-counts", response_model=StatusCountsResponse)
def status_counts(
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> StatusCountsResponse:
    use_case = GetStatusCounts(
        order_repository=container.order_repository,
        cache=container.cache,
        ttl_seconds=container.projection_ttl_seconds,
    )
    return use_case.execute(container.store_id, principal)


@router.get("/tables", response_model=TableActivityListResponse)
def table_activity(
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> TableActivityListResponse:
    use_case = GetTableActivity(
        table_repository=container.table_repository,
        order_repository=container.order_repository,
        cache=container.cache,
        ttl_seconds=container.projection_ttl_seconds,
    )
    return use_case.execute(container.store_id, principal)


@router.get("/series", response_model=OrderSeriesResponse)
def order_series(
    bucket: str = Query(default="day"),
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    container: Container = Depends(get_container),
    principal: Principal = Depends(current_principal),
) -> OrderSeriesResponse:
    use_case = GetOrderSeries(
        order_repository=container.order_repository,
        cache=container.cache,
        currency=container.currency,
        ttl_seconds=container.projection_ttl_seconds,
    )
    return use_case.execute(container.store_id, principal, bucket=bucket, start=start, end=end)
