from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class AppError(Exception):
    """
    Назначение:
        Базовая ошибка хранилища сущностей.

    Контракт:
        - category: "store" (аргументы/реестр) или "api" (источник истины).
        - code: строковый код из ErrorCode или HTTP_<status>.
        - str(error) == message, чтобы префикс вида "refresh(res, id[, options]): "
          оставался в начале текста ошибки.
    """

    category: str
    code: str
    message: str
    retryable: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def describe(self) -> str:
        """Короткая строка для stderr CLI."""
        return f"[{self.category}/{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "category": self.category,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": dict(self.details or {}),
        }


__all__ = ["AppError"]
