from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import Executor, Future
from typing import Any

from entitystore.common.futures import FutureFactory
from entitystore.common.type_checks import DefaultTypeClassifier
from entitystore.domain.exceptions import StoreErrorFactory
from entitystore.domain.models import BYPASS_CACHE, CACHE_RESPONSE, PARAMS, Entity, EntityId
from entitystore.domain.ports.cache import EntityCacheProtocol
from entitystore.domain.ports.fetch import FetchPipelineProtocol, ResourceAdapterProtocol
from entitystore.domain.ports.futures import FutureFactoryProtocol
from entitystore.domain.ports.registry import ResourceRegistryProtocol
from entitystore.domain.ports.validation import ErrorFactoryProtocol, TypeClassifierProtocol
from entitystore.infra.logging.setup import getLibraryLogger, logEvent
from entitystore.usecases.arguments import check_store_arguments


class FindUseCase(FetchPipelineProtocol):
    """
    Назначение/ответственность:
        Загрузка сущности по первичному ключу с заполнением кэша.
    Взаимодействия:
        - ResourceRegistryProtocol для определения ресурса.
        - EntityCacheProtocol для чтения (если не bypassCache) и inject результата.
        - ResourceAdapterProtocol для обращения к источнику истины.
    Контракт:
        - Ошибки валидации бросаются синхронно.
        - Ошибки адаптера/кэша приходят через исключение возвращённого future.
        - Без executor загрузка выполняется в том же вызове, future уже завершён.
    """

    def __init__(
        self,
        registry: ResourceRegistryProtocol,
        cache: EntityCacheProtocol,
        adapter: ResourceAdapterProtocol,
        *,
        futures: FutureFactoryProtocol | None = None,
        classifier: TypeClassifierProtocol | None = None,
        errors: ErrorFactoryProtocol | None = None,
        executor: Executor | None = None,
        logger: logging.Logger | None = None,
        run_id: str = "-",
    ):
        self.registry = registry
        self.cache = cache
        self.adapter = adapter
        self.futures = futures or FutureFactory()
        self.classifier = classifier or DefaultTypeClassifier()
        self.errors = errors or StoreErrorFactory()
        self.executor = executor
        self.logger = logger or getLibraryLogger()
        self.run_id = run_id

    def find(
        self,
        resource_name: str,
        entity_id: EntityId,
        options: Mapping[str, Any] | None = None,
    ) -> Future:
        options = check_store_arguments(
            "find",
            resource_name,
            entity_id,
            options,
            registry=self.registry,
            classifier=self.classifier,
            errors=self.errors,
        )
        options.setdefault(CACHE_RESPONSE, True)

        if not options.get(BYPASS_CACHE):
            cached = self.cache.get(resource_name, entity_id)
            if cached is not None:
                logEvent(self.logger, logging.DEBUG, self.run_id, "find", f"cache hit {resource_name}:{entity_id}")
                return self.futures.resolved(cached)

        if self.executor is not None:
            return self.executor.submit(self._load, resource_name, entity_id, options)

        try:
            return self.futures.resolved(self._load(resource_name, entity_id, options))
        except Exception as exc:
            return self.futures.rejected(exc)

    def _load(self, resource_name: str, entity_id: EntityId, options: dict[str, Any]) -> Entity:
        definition = self.registry.get(resource_name)
        logEvent(
            self.logger,
            logging.DEBUG,
            self.run_id,
            "api",
            f"load {resource_name}:{entity_id} bypass_cache={bool(options.get(BYPASS_CACHE))}",
        )
        try:
            data = self.adapter.find(definition, entity_id, options.get(PARAMS))
            if not options.get(CACHE_RESPONSE):
                return data
            self.cache.inject(resource_name, entity_id, data)
            stored = self.cache.get(resource_name, entity_id)
        except Exception as exc:
            logEvent(
                self.logger,
                logging.ERROR,
                self.run_id,
                "find",
                f"find {resource_name}:{entity_id} failed: {exc}",
            )
            raise
        return stored if stored is not None else data
