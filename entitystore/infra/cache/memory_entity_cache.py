from __future__ import annotations

import copy

from entitystore.domain.models import Entity, EntityId, normalize_id
from entitystore.domain.ports.cache import EntityCacheProtocol, UpsertResult


class MemoryEntityCache(EntityCacheProtocol):
    """
    Назначение/ответственность:
        Кэш сущностей в памяти процесса: resource -> id -> entity.
    Инварианты:
        - get возвращает ссылку на хранимую сущность (как DS.get), а не копию.
        - inject хранит собственную копию переданного словаря; повторный inject
          обновляет уже хранимый dict на месте, ранее выданные ссылки остаются актуальными.
    """

    def __init__(self) -> None:
        self._items: dict[str, dict[str, Entity]] = {}

    def get(self, resource_name: str, entity_id: EntityId) -> Entity | None:
        return self._items.get(resource_name, {}).get(normalize_id(entity_id))

    def inject(self, resource_name: str, entity_id: EntityId, entity: Entity) -> UpsertResult:
        bucket = self._items.setdefault(resource_name, {})
        key = normalize_id(entity_id)
        fresh = copy.deepcopy(dict(entity))
        current = bucket.get(key)
        if current is None:
            bucket[key] = fresh
            return UpsertResult.INSERTED
        # ссылки, полученные через get, видят новое состояние
        current.clear()
        current.update(fresh)
        return UpsertResult.UPDATED

    def eject(self, resource_name: str, entity_id: EntityId) -> Entity | None:
        return self._items.get(resource_name, {}).pop(normalize_id(entity_id), None)

    def count(self, resource_name: str) -> int:
        return len(self._items.get(resource_name, {}))

    def clear(self, resource_name: str | None = None) -> int:
        if resource_name is None:
            removed = sum(len(bucket) for bucket in self._items.values())
            self._items.clear()
            return removed
        return len(self._items.pop(resource_name, {}))

    def list_resources(self) -> list[str]:
        return [name for name, bucket in self._items.items() if bucket]
