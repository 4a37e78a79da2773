from __future__ import annotations

from typing import Any, Iterable, Mapping

from entitystore.domain.models import ResourceDefinition


class ResourceRegistry:
    """
    Назначение/ответственность:
        Реестр типов ресурсов (definitions), известных хранилищу.
    Взаимодействия:
        - has() используется refresh/find как первая проверка валидации.
        - get() отдаёт ResourceDefinition HTTP-адаптеру.
    """

    def __init__(self, definitions: Iterable[ResourceDefinition] | None = None):
        self._definitions: dict[str, ResourceDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: ResourceDefinition) -> ResourceDefinition:
        if definition.name in self._definitions:
            raise ValueError(f"Resource already defined: {definition.name}")
        self._definitions[definition.name] = definition
        return definition

    def define(self, name: str, endpoint: str | None = None, id_attribute: str = "id") -> ResourceDefinition:
        return self.register(ResourceDefinition(name=name, endpoint=endpoint, id_attribute=id_attribute))

    def has(self, resource_name: object) -> bool:
        if not isinstance(resource_name, str):
            return False
        return resource_name in self._definitions

    def get(self, resource_name: str) -> ResourceDefinition:
        try:
            return self._definitions[resource_name]
        except KeyError as exc:
            raise KeyError(f"Unknown resource: {resource_name}") from exc

    def list_names(self) -> list[str]:
        return list(self._definitions.keys())


def build_registry(resources: Mapping[str, Any] | None) -> ResourceRegistry:
    """
    Назначение:
        Построить реестр из секции `resources` настроек.

    Входные данные:
        resources: dict name -> {endpoint, id_attribute} | None
            None/пустой dict в значении означает определение по умолчанию.
    """
    registry = ResourceRegistry()
    for name, raw in (resources or {}).items():
        raw = raw or {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"Invalid resource definition for {name}: expected mapping")
        registry.define(
            str(name),
            endpoint=raw.get("endpoint"),
            id_attribute=raw.get("id_attribute", "id"),
        )
    return registry


__all__ = ["ResourceRegistry", "build_registry"]
