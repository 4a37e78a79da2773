from __future__ import annotations

from typing import Any

from entitystore.domain.ports.registry import ResourceRegistryProtocol
from entitystore.domain.ports.validation import ErrorFactoryProtocol, TypeClassifierProtocol


def errorPrefix(operation: str, resource_name: Any, entity_id: Any) -> str:
    return f"{operation}({resource_name}, {entity_id}[, options]): "


def check_store_arguments(
    operation: str,
    resource_name: Any,
    entity_id: Any,
    options: Any,
    *,
    registry: ResourceRegistryProtocol,
    classifier: TypeClassifierProtocol,
    errors: ErrorFactoryProtocol,
) -> dict[str, Any]:
    """
    Назначение:
        Упорядоченная валидация аргументов refresh/find.

    Порядок (первое нарушение побеждает, дальше не проверяется):
        1. resource_name зарегистрирован -> иначе unregistered_resource.
        2. entity_id текст или число -> иначе invalid_argument(param="id").
        3. options None или mapping -> иначе invalid_argument(param="options").

    Выходные данные:
        dict
            Копия options (или пустой dict); исходный объект не изменяется.
    """
    prefix = errorPrefix(operation, resource_name, entity_id)
    if not registry.has(resource_name):
        raise errors.unregistered_resource(
            prefix + str(resource_name),
            resource_name=resource_name,
            entity_id=entity_id,
        )
    if not classifier.is_text(entity_id) and not classifier.is_numeric(entity_id):
        raise errors.invalid_argument(prefix + "id: Must be a string or a number!", param="id")
    if options is None:
        return {}
    if not classifier.is_structured(options):
        raise errors.invalid_argument(prefix + "options: Must be an object!", param="options")
    return dict(options)
