from __future__ import annotations

import logging

from entitystore.infra.cache.schema import SCHEMA_VERSION
from entitystore.infra.cache.sqlite_entity_cache import SqliteEntityCache
from entitystore.infra.logging.setup import logEvent


class CacheCommandService:
    """
    Оркестратор cache-команд (status/clear).
    """

    def __init__(self, cache: SqliteEntityCache, known_resources: list[str]):
        self.cache = cache
        self.known_resources = known_resources

    def status(self, logger, report, run_id: str, resource: str | None = None) -> tuple[int, dict]:
        try:
            status = self._get_cache_status(resource)
        except Exception as exc:
            logEvent(logger, logging.ERROR, run_id, "cache", f"Cache status failed: {exc}")
            return 2, {}
        report.set_context("cache_status", status)
        report.add_op("cache-status", ok=1, count=len(status["resources"]))
        return 0, status

    def clear(self, logger, report, run_id: str, resource: str | None = None) -> tuple[int, dict]:
        try:
            deleted = self.cache.clear(resource)
        except Exception as exc:
            logEvent(logger, logging.ERROR, run_id, "cache", f"Cache clear failed: {exc}")
            return 2, {}
        cleared = {"resource": resource, "deleted": deleted}
        logEvent(logger, logging.INFO, run_id, "cache", f"cache clear: resource={resource or '*'} deleted={deleted}")
        report.add_op("cache-clear", ok=1, count=deleted)
        report.set_context("cache_clear", cleared)
        return 0, cleared

    def _get_cache_status(self, resource: str | None) -> dict:
        """
        Возвращает состояние кэша: schema_version, количество сущностей и время последнего inject.
        """
        if resource is not None:
            names = [resource]
        else:
            names = sorted(set(self.known_resources) | set(self.cache.list_resources()))
        resources: dict[str, dict] = {}
        for name in names:
            meta = self.cache.get_meta(name).values
            resources[name] = {
                "count": self.cache.count(name),
                "last_inject_at": meta.get("last_inject_at"),
                "registered": name in self.known_resources,
            }
        schema_version = self.cache.get_meta(None).values.get("schema_version")
        return {
            "schema_version": int(schema_version) if schema_version else SCHEMA_VERSION,
            "resources": resources,
        }
