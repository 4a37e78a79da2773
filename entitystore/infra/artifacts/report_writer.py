from __future__ import annotations

import json
from pathlib import Path

from entitystore.common.sanitize import maskSecret
from entitystore.config.config import Settings
from entitystore.domain.reporting.collector import ReportCollector, asdict_report


def getReportPath(reportDir: str, command: str, runId: str) -> Path:
    return Path(reportDir) / f"report_{command}_{runId}.json"


def createEmptyReport(runId: str, command: str, configSources: list[str]) -> ReportCollector:
    collector = ReportCollector(run_id=runId, command=command)
    collector.set_context("config", {"sources": list(configSources)})
    return collector


def finalizeReport(report: ReportCollector, durationMs: int, logFile: str | None, settings: Settings) -> None:
    """
    Назначение:
        Закрывает отчёт и кладёт в context.runtime параметры запуска.

    Контракт:
        Токен API в отчёт не попадает, только маска.
    """
    report.set_context(
        "runtime",
        {
            "log_file": logFile,
            "cache_dir": settings.cache_dir,
            "report_dir": settings.report_dir,
            "base_url": settings.base_url,
            "api_token": maskSecret(settings.api_token),
        },
    )
    report.finish(duration_ms=durationMs)


def writeReportJson(report: ReportCollector, reportDir: str) -> str:
    """
    Пишет отчёт в <reportDir>/report_<command>_<runId>.json и возвращает путь.
    """
    reportPath = getReportPath(reportDir, report.meta.command, report.meta.run_id)
    reportPath.parent.mkdir(parents=True, exist_ok=True)
    with open(reportPath, "w", encoding="utf-8") as f:
        json.dump(asdict_report(report.build()), f, ensure_ascii=False, indent=2)
    return str(reportPath)
