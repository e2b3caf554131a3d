from __future__ import annotations

import hashlib

from fastapi import APIRouter, Depends, Header, Response

from orderflow.api.container import Container
from orderflow.api.dependencies import get_container
from orderflow.application.dto.responses import MenuResponse
from orderflow.application.use_cases.get_menu import GetMenu

router = APIRouter()


def _get_menu_use_case(container: Container) -> GetMenu:
    return GetMenu(
        repository=container.menu_repository,
        cache=container.cache,
        ttl_seconds=container.menu_ttl_seconds,
    )


def menu_etag(payload: MenuResponse) -> str:
    digest = hashlib.sha256(payload.model_dump_json().encode("utf-8")).hexdigest()[:16]
    return f'"menu-{digest}"'


@router.get("/v1/menu", response_model=MenuResponse)
def get_menu(
    response: Response,
    if_none_match: str | None = Header(default=None, alias="If-None-Match"),
    container: Container = Depends(get_container),
) -> MenuResponse | Response:
    payload = _get_menu_use_case(container).execute(container.store_id)

    etag = menu_etag(payload)
    if if_none_match == etag:
        return Response(status_code=304, headers={"ETag": etag})

    response.headers["ETag"] = etag
    return payload
