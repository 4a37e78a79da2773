from __future__ import annotations

from concurrent.futures import Future
from typing import Any, Mapping, Protocol

from entitystore.domain.models import Entity, EntityId, ResourceDefinition


class FetchPipelineProtocol(Protocol):
    """
    Назначение:
        Авторитетная загрузка сущности с повторным заполнением кэша.

    Контракт:
        - options["bypassCache"] истинно -> чтение из кэша пропускается.
        - Ошибки источника приходят через исключение future.
    """

    def find(
        self,
        resource_name: str,
        entity_id: EntityId,
        options: Mapping[str, Any] | None = None,
    ) -> Future: ...


class ResourceAdapterProtocol(Protocol):
    """
    Назначение:
        Адаптер к источнику истины (HTTP и т.п.).
    """

    def find(
        self,
        definition: ResourceDefinition,
        entity_id: EntityId,
        params: Mapping[str, Any] | None = None,
    ) -> Entity: ...


__all__ = ["FetchPipelineProtocol", "ResourceAdapterProtocol"]
