from __future__ import annotations

from typing import Any, Mapping

from entitystore.domain.error_codes import ErrorCode
from entitystore.domain.models import Entity, EntityId, ResourceDefinition
from entitystore.domain.ports.fetch import ResourceAdapterProtocol
from entitystore.infra.http.api_client import ApiError, StoreApiClient


class HttpResourceAdapter(ResourceAdapterProtocol):
    """
    Назначение/ответственность:
        Загрузка одной сущности из REST-источника: GET <endpoint>/<id>.
    Контракт:
        - Возвращает dict; иной JSON -> ApiError(INVALID_PAYLOAD).
        - 404 и прочие HTTP-ошибки пробрасываются как ApiError клиента.
    """

    def __init__(self, client: StoreApiClient):
        self.client = client

    def find(
        self,
        definition: ResourceDefinition,
        entity_id: EntityId,
        params: Mapping[str, Any] | None = None,
    ) -> Entity:
        path = definition.item_path(entity_id)
        data = self.client.getJson(path, dict(params or {}))
        if not isinstance(data, dict):
            raise ApiError(
                f"Unexpected payload for {definition.name} {entity_id}: expected object",
                code=ErrorCode.INVALID_PAYLOAD.value,
                details={"path": path, "type": type(data).__name__},
            )
        return data
