from __future__ import annotations

from concurrent.futures import Future
from typing import Any


class FutureFactory:
    """
    Назначение/ответственность:
        Фабрика concurrent.futures.Future для веток, завершаемых в том же вызове.

    Контракт:
        - deferred(): pending future; вызывающий сам вызывает set_result/set_exception.
        - resolved()/rejected(): future уже в состоянии done при возврате.
    """

    def deferred(self) -> Future:
        return Future()

    def resolved(self, value: Any = None) -> Future:
        future = self.deferred()
        future.set_result(value)
        return future

    def rejected(self, exc: BaseException) -> Future:
        future = self.deferred()
        future.set_exception(exc)
        return future


__all__ = ["FutureFactory"]
