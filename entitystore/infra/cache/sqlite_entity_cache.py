from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Iterator

from entitystore.common.time import getNowIso
from entitystore.domain.models import Entity, EntityId, normalize_id
from entitystore.domain.ports.cache import CacheMeta, EntityCacheProtocol, UpsertResult
from entitystore.infra.cache.sqlite_engine import SqliteEngine


class SqliteEntityCache(EntityCacheProtocol):
    """
    Назначение/ответственность:
        Персистентный кэш сущностей на SQLite (payload хранится как JSON).
    Взаимодействия:
        - Схема создаётся ensure_cache_ready до первого использования.
        - Используется CLI, чтобы refresh видел сущности, загруженные ранее через find.
    """

    def __init__(self, engine: SqliteEngine):
        self.engine = engine

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self.engine.transaction():
            yield

    def get(self, resource_name: str, entity_id: EntityId) -> Entity | None:
        row = self.engine.fetchone(
            "SELECT payload FROM entities WHERE resource = ? AND entity_id = ?",
            (resource_name, normalize_id(entity_id)),
        )
        if row is None:
            return None
        return json.loads(row[0])

    def inject(self, resource_name: str, entity_id: EntityId, entity: Entity) -> UpsertResult:
        key = normalize_id(entity_id)
        now_iso = getNowIso()
        with self.engine.transaction():
            exists = self.engine.scalar(
                "SELECT 1 FROM entities WHERE resource = ? AND entity_id = ?",
                (resource_name, key),
            )
            self.engine.execute(
                """
                INSERT INTO entities(resource, entity_id, payload, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(resource, entity_id) DO UPDATE SET
                    payload=excluded.payload,
                    updated_at=excluded.updated_at
                """,
                (resource_name, key, json.dumps(entity, ensure_ascii=False), now_iso),
            )
            self.set_meta(resource_name, "last_inject_at", now_iso)
        return UpsertResult.UPDATED if exists else UpsertResult.INSERTED

    def eject(self, resource_name: str, entity_id: EntityId) -> Entity | None:
        current = self.get(resource_name, entity_id)
        if current is None:
            return None
        with self.engine.transaction():
            self.engine.execute(
                "DELETE FROM entities WHERE resource = ? AND entity_id = ?",
                (resource_name, normalize_id(entity_id)),
            )
        return current

    def count(self, resource_name: str) -> int:
        return int(self.engine.scalar("SELECT COUNT(*) FROM entities WHERE resource = ?", (resource_name,), default=0))

    def clear(self, resource_name: str | None = None) -> int:
        with self.engine.transaction():
            if resource_name is None:
                cur = self.engine.execute("DELETE FROM entities")
                self.engine.execute("DELETE FROM meta WHERE key LIKE '%.last_inject_at'")
            else:
                cur = self.engine.execute("DELETE FROM entities WHERE resource = ?", (resource_name,))
                self.set_meta(resource_name, "last_inject_at", None)
        return cur.rowcount

    def list_resources(self) -> list[str]:
        rows = self.engine.fetchall("SELECT DISTINCT resource FROM entities ORDER BY resource")
        return [row[0] for row in rows]

    def get_meta(self, resource_name: str | None = None) -> CacheMeta:
        if resource_name is None:
            rows = self.engine.fetchall("SELECT key, value FROM meta")
            return CacheMeta({row[0]: row[1] for row in rows})
        rows = self.engine.fetchall("SELECT key, value FROM meta WHERE key LIKE ?", (f"{resource_name}.%",))
        values: dict[str, str | None] = {}
        for row in rows:
            key = row[0].split(".", 1)[1] if "." in row[0] else row[0]
            values[key] = row[1]
        return CacheMeta(values)

    def set_meta(self, resource_name: str | None, key: str, value: str | None) -> None:
        full_key = key if resource_name is None else f"{resource_name}.{key}"
        with self.engine.transaction():
            if value is None:
                self.engine.execute("DELETE FROM meta WHERE key = ?", (full_key,))
                return
            self.engine.execute(
                """
                INSERT INTO meta(key, value)
                VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (full_key, value),
            )
