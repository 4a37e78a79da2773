from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import Future
from typing import Any

from entitystore.common.futures import FutureFactory
from entitystore.common.type_checks import DefaultTypeClassifier
from entitystore.domain.exceptions import StoreErrorFactory
from entitystore.domain.models import BYPASS_CACHE, EntityId
from entitystore.domain.ports.cache import EntityCacheProtocol
from entitystore.domain.ports.fetch import FetchPipelineProtocol
from entitystore.domain.ports.futures import FutureFactoryProtocol
from entitystore.domain.ports.registry import ResourceRegistryProtocol
from entitystore.domain.ports.validation import ErrorFactoryProtocol, TypeClassifierProtocol
from entitystore.infra.logging.setup import getLibraryLogger, logEvent
from entitystore.usecases.arguments import check_store_arguments


class RefreshUseCase:
    """
    Назначение/ответственность:
        Повторная загрузка сущности из источника истины, только если она уже в кэше.

    Взаимодействия:
        - ResourceRegistryProtocol: проверка типа ресурса.
        - EntityCacheProtocol: только чтение (get), запись делает fetch pipeline.
        - FetchPipelineProtocol: find(resource, id, options) с bypassCache=True.
        - FutureFactoryProtocol: future для ветки "нет в кэше".

    Контракт:
        - Ошибки валидации (ресурс -> id -> options) бросаются синхронно,
          первое нарушение определяет ошибку.
        - options копируются, bypassCache всегда принудительно True.
        - Сущность в кэше (get вернул не None, включая пустой dict) -> future
          из find() возвращается как есть
          (успех и ошибка не изменяются).
        - Сущности нет -> future уже завершён с None, find() не вызывается.

    Ограничения:
        Проверка наличия и вызов find() не атомарны: если сущность вытеснена
        из кэша между ними, refresh всё равно выполняется, как будто она в кэше.
    """

    def __init__(
        self,
        registry: ResourceRegistryProtocol,
        cache: EntityCacheProtocol,
        fetch_pipeline: FetchPipelineProtocol,
        *,
        futures: FutureFactoryProtocol | None = None,
        classifier: TypeClassifierProtocol | None = None,
        errors: ErrorFactoryProtocol | None = None,
        logger: logging.Logger | None = None,
        run_id: str = "-",
    ):
        self.registry = registry
        self.cache = cache
        self.fetch_pipeline = fetch_pipeline
        self.futures = futures or FutureFactory()
        self.classifier = classifier or DefaultTypeClassifier()
        self.errors = errors or StoreErrorFactory()
        self.logger = logger or getLibraryLogger()
        self.run_id = run_id

    def refresh(
        self,
        resource_name: str,
        entity_id: EntityId,
        options: Mapping[str, Any] | None = None,
    ) -> Future:
        options = check_store_arguments(
            "refresh",
            resource_name,
            entity_id,
            options,
            registry=self.registry,
            classifier=self.classifier,
            errors=self.errors,
        )
        options[BYPASS_CACHE] = True

        if self.cache.get(resource_name, entity_id) is not None:
            logEvent(self.logger, logging.DEBUG, self.run_id, "refresh", f"refresh {resource_name}:{entity_id}")
            return self.fetch_pipeline.find(resource_name, entity_id, options)

        logEvent(
            self.logger,
            logging.DEBUG,
            self.run_id,
            "refresh",
            f"skip {resource_name}:{entity_id}: not cached",
        )
        future = self.futures.deferred()
        future.set_result(None)
        return future
