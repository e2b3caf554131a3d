from __future__ import annotations

from pydantic import ValidationError

from orderflow.application.dto.responses import MenuResponse
from orderflow.application.mappers.menu_mapper import to_menu_response
from orderflow.application.ports.cache import CacheStore
from orderflow.application.ports.repositories import MenuRepository
from orderflow.domain.common.ids import StoreId


def menu_cache_key(store_id: StoreId) -> str:
    return f"menu:{store_id}"


class GetMenu:
    def __init__(
        self,
        repository: MenuRepository,
        cache: CacheStore,
        ttl_seconds: float = 300,
    ) -> None:
        self._repository = repository
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

    def execute(self, store_id: StoreId) -> MenuResponse:
        key = menu_cache_key(store_id)
        payload = self._cache_get(key)
        if payload:
            try:
                return MenuResponse.model_validate_json(payload)
            except ValidationError:
                pass

        response = to_menu_response(self._repository.get_menu(store_id))
        self._cache_set(key, response.model_dump_json())
        return response
