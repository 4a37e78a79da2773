from __future__ import annotations

import sqlite3
from pathlib import Path

CACHE_DB_FILENAME = "entitystore_cache.sqlite3"

_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA busy_timeout = 5000",
)


def getCacheDbPath(cacheDir: str | Path) -> str:
    return str(Path(cacheDir) / CACHE_DB_FILENAME)


def openCacheDb(dbPath: str, timeoutSeconds: float = 5.0) -> sqlite3.Connection:
    """
    Открывает файл кэша сущностей, создавая каталог при необходимости.
    Строки возвращаются как sqlite3.Row (доступ по имени колонки).
    """
    Path(dbPath).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(dbPath, timeout=timeoutSeconds)
    conn.row_factory = sqlite3.Row
    for pragma in _PRAGMAS:
        conn.execute(pragma)
    return conn
