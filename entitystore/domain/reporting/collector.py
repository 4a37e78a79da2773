from __future__ import annotations

from dataclasses import asdict
from typing import Any

from entitystore.common.time import getNowIso
from entitystore.domain.reporting.models import ReportEnvelope, ReportItem, ReportMeta, ReportSummary

STATUS_SUCCESS = "SUCCESS"
STATUS_FAILED = "FAILED"


class ReportCollector:
    """
    Назначение/ответственность:
        Накапливает результат одной команды CLI: счётчики операций,
        элементы (по одному на обработанную сущность) и произвольный context.

    Контракт:
        - Элемент с error увеличивает summary.errors_total.
        - Итоговый статус FAILED, если errors_total > 0, иначе SUCCESS.
        - entity_id в отчёте всегда строка (или None).
    """

    def __init__(self, run_id: str, command: str, started_at: str | None = None) -> None:
        self.meta = ReportMeta(run_id=run_id, command=command, started_at=started_at or getNowIso())
        self.summary = ReportSummary()
        self.items: list[ReportItem] = []
        self.context: dict[str, Any] = {}

    def set_context(self, name: str, value: dict[str, Any]) -> None:
        self.context[name] = value

    def add_op(self, name: str, *, ok: int = 0, failed: int = 0, count: int = 0) -> None:
        counters = self.summary.ops.get(name)
        if counters is None:
            counters = self.summary.ops[name] = {"ok": 0, "failed": 0, "count": 0}
        for key, delta in (("ok", ok), ("failed", failed), ("count", count)):
            counters[key] += delta

    def add_item(
        self,
        *,
        status: str,
        resource: str | None = None,
        entity_id: Any = None,
        payload: dict[str, Any] | None = None,
        error: dict[str, Any] | None = None,
    ) -> None:
        item = ReportItem(status=status, resource=resource, payload=payload, error=error)
        if entity_id is not None:
            item.entity_id = str(entity_id)
        self.items.append(item)
        self.summary.errors_total += error is not None

    def finish(self, finished_at: str | None = None, duration_ms: int | None = None) -> None:
        self.meta.finished_at = finished_at or getNowIso()
        self.meta.duration_ms = duration_ms

    @property
    def status(self) -> str:
        return STATUS_FAILED if self.summary.errors_total else STATUS_SUCCESS

    def build(self) -> ReportEnvelope:
        return ReportEnvelope(
            status=self.status,
            meta=self.meta,
            summary=self.summary,
            items=list(self.items),
            context=dict(self.context),
        )


def asdict_report(envelope: ReportEnvelope) -> dict[str, Any]:
    data = asdict(envelope)
    # status первым ключом, чтобы он был виден в начале файла
    return {"status": data.pop("status"), **data}
