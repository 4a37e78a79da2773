from __future__ import annotations

from typing import Any

from entitystore.domain.error_codes import ErrorCode
from entitystore.errors import AppError


class UnregisteredResourceError(AppError):
    def __init__(self, message: str, resource_name: Any = None, entity_id: Any = None):
        """
        Назначение:
            Тип ресурса не зарегистрирован в реестре определений.
        Контракт:
            - Бросается синхронно, никогда не приходит через future.
        """
        super().__init__(
            category="store",
            code=ErrorCode.UNREGISTERED_RESOURCE.value,
            message=message,
            retryable=False,
            details={"resource": resource_name, "id": entity_id},
        )
        self.resource_name = resource_name
        self.entity_id = entity_id


class InvalidArgumentError(AppError):
    def __init__(self, message: str, param: str | None = None):
        """
        Назначение:
            Аргумент операции имеет недопустимый тип или форму.
        Контракт:
            - param: имя параметра, не прошедшего проверку (id, options).
        """
        super().__init__(
            category="store",
            code=ErrorCode.INVALID_ARGUMENT.value,
            message=message,
            retryable=False,
            details={"param": param},
        )
        self.param = param


class StoreErrorFactory:
    """
    Назначение/ответственность:
        Конструирует ошибки валидации для use case'ов хранилища.
    """

    def unregistered_resource(
        self,
        message: str,
        resource_name: Any = None,
        entity_id: Any = None,
    ) -> UnregisteredResourceError:
        return UnregisteredResourceError(message, resource_name=resource_name, entity_id=entity_id)

    def invalid_argument(self, message: str, param: str | None = None) -> InvalidArgumentError:
        return InvalidArgumentError(message, param=param)


__all__ = ["InvalidArgumentError", "StoreErrorFactory", "UnregisteredResourceError"]
