from __future__ import annotations

from concurrent.futures import Future
from typing import Any, Protocol


class FutureFactoryProtocol(Protocol):
    """
    Назначение:
        Создание future для синхронно завершаемых веток.
    """

    def deferred(self) -> Future: ...
    def resolved(self, value: Any = None) -> Future: ...
    def rejected(self, exc: BaseException) -> Future: ...


__all__ = ["FutureFactoryProtocol"]
