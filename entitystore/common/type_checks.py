from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class DefaultTypeClassifier:
    """
    Назначение/ответственность:
        Классификатор типов аргументов для refresh/find.

    Инварианты:
        - text: только str.
        - numeric: int/float, bool не считается числом.
        - structured: Mapping (dict и т.п.); list/tuple/str/примитивы не проходят.
    """

    def is_text(self, value: Any) -> bool:
        return isinstance(value, str)

    def is_numeric(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        return isinstance(value, (int, float))

    def is_structured(self, value: Any) -> bool:
        return isinstance(value, Mapping)
