from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from entitystore.domain.models import Entity, EntityId


class UpsertResult(str, Enum):
    """
    Назначение:
        Результат операции inject в кэше.
    """

    INSERTED = "inserted"
    UPDATED = "updated"


@dataclass(frozen=True)
class CacheMeta:
    """
    Назначение:
        Контейнер метаданных кэша.
    """

    values: dict[str, str | None]


class EntityCacheProtocol(Protocol):
    """
    Назначение/ответственность:
        Порт доступа к локальному кэшу сущностей (resource-agnostic).
    Взаимодействия:
        - get используется refresh/find для проверки наличия.
        - inject/eject выполняются только fetch pipeline и явными командами.
    """

    def get(self, resource_name: str, entity_id: EntityId) -> Entity | None: ...
    def inject(self, resource_name: str, entity_id: EntityId, entity: Entity) -> UpsertResult: ...
    def eject(self, resource_name: str, entity_id: EntityId) -> Entity | None: ...
    def count(self, resource_name: str) -> int: ...
    def clear(self, resource_name: str | None = None) -> int: ...
    def list_resources(self) -> list[str]: ...


__all__ = ["CacheMeta", "EntityCacheProtocol", "UpsertResult"]
