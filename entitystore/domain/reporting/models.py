from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ReportMeta:
    """
    Назначение:
        Универсальные метаданные запуска команды.
    """

    run_id: str
    command: str
    started_at: str
    resource: str | None = None
    finished_at: str | None = None
    duration_ms: int | None = None


@dataclass
class ReportSummary:
    """
    Назначение:
        Счётчики операций хранилища.
    """

    ops: dict[str, dict[str, int]] = field(default_factory=dict)
    errors_total: int = 0


@dataclass
class ReportItem:
    status: str
    resource: str | None = None
    entity_id: str | None = None
    payload: dict[str, Any] | None = None
    error: dict[str, Any] | None = None


@dataclass
class ReportEnvelope:
    """
    Назначение:
        Корневой объект отчёта.
    """

    status: str
    meta: ReportMeta
    summary: ReportSummary
    items: list[ReportItem]
    context: dict[str, Any] = field(default_factory=dict)
