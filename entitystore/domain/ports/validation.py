from __future__ import annotations

from typing import Any, Protocol

from entitystore.errors import AppError


class TypeClassifierProtocol(Protocol):
    """
    Назначение:
        Runtime-классификация аргументов для валидации.
    """

    def is_text(self, value: Any) -> bool: ...
    def is_numeric(self, value: Any) -> bool: ...
    def is_structured(self, value: Any) -> bool: ...


class ErrorFactoryProtocol(Protocol):
    """
    Назначение:
        Конструктор ошибок валидации (unregistered resource / invalid argument).
    """

    def unregistered_resource(
        self,
        message: str,
        resource_name: Any = None,
        entity_id: Any = None,
    ) -> AppError: ...

    def invalid_argument(self, message: str, param: str | None = None) -> AppError: ...


__all__ = ["ErrorFactoryProtocol", "TypeClassifierProtocol"]
