from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator

Params = tuple | dict | None


class SqliteEngine:
    """
    Назначение/ответственность:
        Единая точка SQL для SqliteEntityCache и schema.

    Контракт:
        - transaction() реентерабельна: внутри открытой транзакции
          вложенный блок не коммитит и не откатывает.
        - scalar() возвращает первую колонку первой строки или default.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def execute(self, sql: str, params: Params = None) -> sqlite3.Cursor:
        return self.conn.execute(sql) if params is None else self.conn.execute(sql, params)

    def fetchone(self, sql: str, params: Params = None) -> sqlite3.Row | None:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = None) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def scalar(self, sql: str, params: Params = None, default: Any = None) -> Any:
        row = self.fetchone(sql, params)
        return default if row is None else row[0]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self.conn.in_transaction:
            yield
            return
        self.conn.execute("BEGIN")
        try:
            yield
        except Exception:
            self.conn.rollback()
            raise
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()
