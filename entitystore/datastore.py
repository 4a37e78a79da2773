from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import Executor, Future
from typing import Any

from entitystore.common.futures import FutureFactory
from entitystore.common.type_checks import DefaultTypeClassifier
from entitystore.domain.exceptions import StoreErrorFactory
from entitystore.domain.models import Entity, EntityId
from entitystore.domain.ports.cache import EntityCacheProtocol, UpsertResult
from entitystore.domain.ports.fetch import ResourceAdapterProtocol
from entitystore.infra.cache.memory_entity_cache import MemoryEntityCache
from entitystore.infra.logging.setup import getLibraryLogger
from entitystore.resources.registry import ResourceRegistry
from entitystore.usecases.find_usecase import FindUseCase
from entitystore.usecases.refresh_usecase import RefreshUseCase


class DataStore:
    """
    Назначение/ответственность:
        Фасад клиентского хранилища сущностей: get/inject/eject/find/refresh.
    Взаимодействия:
        Все коллабораторы передаются явно; общий реестр, кэш и фабрики
        разделяются между FindUseCase и RefreshUseCase.
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        adapter: ResourceAdapterProtocol,
        cache: EntityCacheProtocol | None = None,
        *,
        executor: Executor | None = None,
        logger: logging.Logger | None = None,
        run_id: str = "-",
    ):
        self.registry = registry
        self.cache = cache if cache is not None else MemoryEntityCache()
        self.logger = logger or getLibraryLogger()
        futures = FutureFactory()
        classifier = DefaultTypeClassifier()
        errors = StoreErrorFactory()
        self.finder = FindUseCase(
            registry,
            self.cache,
            adapter,
            futures=futures,
            classifier=classifier,
            errors=errors,
            executor=executor,
            logger=self.logger,
            run_id=run_id,
        )
        self.refresher = RefreshUseCase(
            registry,
            self.cache,
            self.finder,
            futures=futures,
            classifier=classifier,
            errors=errors,
            logger=self.logger,
            run_id=run_id,
        )

    def get(self, resource_name: str, entity_id: EntityId) -> Entity | None:
        return self.cache.get(resource_name, entity_id)

    def inject(self, resource_name: str, entity: Entity) -> UpsertResult:
        """
        Кладёт сущность в кэш, первичный ключ берётся из id_attribute определения.
        """
        definition = self.registry.get(resource_name)
        if definition.id_attribute not in entity:
            raise ValueError(
                f"inject({resource_name}): entity has no '{definition.id_attribute}' attribute"
            )
        return self.cache.inject(resource_name, entity[definition.id_attribute], entity)

    def eject(self, resource_name: str, entity_id: EntityId) -> Entity | None:
        return self.cache.eject(resource_name, entity_id)

    def find(self, resource_name: str, entity_id: EntityId, options: Mapping[str, Any] | None = None) -> Future:
        return self.finder.find(resource_name, entity_id, options)

    def refresh(self, resource_name: str, entity_id: EntityId, options: Mapping[str, Any] | None = None) -> Future:
        return self.refresher.refresh(resource_name, entity_id, options)
