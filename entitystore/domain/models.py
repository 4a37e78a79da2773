from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union
from urllib.parse import quote

EntityId = Union[str, int, float]
Entity = dict[str, Any]

# Ключи RefreshOptions/FindOptions
BYPASS_CACHE = "bypassCache"
CACHE_RESPONSE = "cacheResponse"
PARAMS = "params"


@dataclass(frozen=True)
class ResourceDefinition:
    """
    Назначение:
        Описание типа ресурса, которым управляет хранилище.

    Инварианты:
        - name непустой.
        - endpoint начинается с '/', по умолчанию '/<name>'.
    """

    name: str
    endpoint: str | None = None
    id_attribute: str = "id"

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Resource name must be non-empty")
        endpoint = self.endpoint or f"/{self.name}"
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint
        object.__setattr__(self, "endpoint", endpoint.rstrip("/") or "/")

    def item_path(self, entity_id: EntityId) -> str:
        return f"{self.endpoint.rstrip('/')}/{quote(normalize_id(entity_id), safe='')}"


def normalize_id(entity_id: EntityId) -> str:
    """
    Назначение:
        Приводит первичный ключ к строковому ключу кэша.

    Поведение:
        - 5, 5.0 и "5" адресуют одну и ту же запись.
    """
    if isinstance(entity_id, float) and entity_id.is_integer():
        return str(int(entity_id))
    return str(entity_id)


__all__ = [
    "BYPASS_CACHE",
    "CACHE_RESPONSE",
    "PARAMS",
    "Entity",
    "EntityId",
    "ResourceDefinition",
    "normalize_id",
]
