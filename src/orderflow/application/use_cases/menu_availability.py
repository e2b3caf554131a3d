from __future__ import annotations

import logging

from orderflow.application.dto.responses import MenuItemResponse
from orderflow.application.errors import ForbiddenError, MenuItemNotFoundError
from orderflow.application.mappers.menu_mapper import to_menu_item_response
from orderflow.application.notifications.dispatch import dispatch
from orderflow.application.notifications.events import menu_updated_event
from orderflow.application.ports.cache import CacheStore
from orderflow.application.ports.publisher import EventPublisher
from orderflow.application.ports.repositories import MenuRepository
from orderflow.application.use_cases.context import Clock, TraceContext, utc_now
from orderflow.application.use_cases.get_menu import menu_cache_key
from orderflow.domain.common.ids import MenuItemId, StoreId
from orderflow.domain.staff.principal import Principal, describe, may_manage

logger = logging.getLogger(__name__)


class SetItemAvailability:
    """Toggle an item, drop the cached menu and tell clients to refresh."""

    def __init__(
        self,
        repository: MenuRepository,
        cache: CacheStore,
        publisher: EventPublisher,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._publisher = publisher
        self._clock = clock

    def execute(
        self,
        store_id: StoreId,
        item_id: MenuItemId,
        is_available: bool,
        principal: Principal,
        trace_ctx: TraceContext,
    ) -> MenuItemResponse:
        if not may_manage(principal):
            raise ForbiddenError(f"{describe(principal)} may not change the menu")

        item = self._repository.set_item_availability(store_id, item_id, is_available)
        if item is None:
            raise MenuItemNotFoundError(
                f"menu item {item_id} does not exist",
                details={"itemId": str(item_id)},
            )

        try:
            self._cache.delete(menu_cache_key(store_id))
        except Exception:
            logger.warning("menu_cache_invalidation_failed", extra={"item_id": str(item_id)})

        logger.info(
            "menu_item_availability_changed",
            extra={"item_id": str(item_id), "is_available": is_available},
        )
        event = menu_updated_event(str(store_id), str(item_id), is_available, self._clock())
        dispatch(self._publisher, [event], trace_ctx)
        return to_menu_item_response(item)
