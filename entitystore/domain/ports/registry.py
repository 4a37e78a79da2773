from __future__ import annotations

from typing import Protocol, runtime_checkable

from entitystore.domain.models import ResourceDefinition


@runtime_checkable
class ResourceRegistryProtocol(Protocol):
    """
    Назначение:
        Реестр определений ресурсов.

    Контракт:
        - has(name) -> bool без исключений.
        - get(name) -> ResourceDefinition или KeyError.
    """

    def has(self, resource_name: object) -> bool: ...
    def get(self, resource_name: str) -> ResourceDefinition: ...
    def list_names(self) -> list[str]: ...


__all__ = ["ResourceRegistryProtocol"]
