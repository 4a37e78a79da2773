from __future__ import annotations

import json
import logging
import sqlite3
import sys
import time
from pathlib import Path

import typer

from entitystore.common.run_id import generate_run_id
from entitystore.common.sanitize import maskSecret
from entitystore.common.time import getDurationMs
from entitystore.config.config import Settings, loadSettings
from entitystore.datastore import DataStore
from entitystore.domain.error_codes import ErrorCode
from entitystore.domain.exceptions import InvalidArgumentError, UnregisteredResourceError
from entitystore.errors import AppError
from entitystore.infra.artifacts.report_writer import createEmptyReport, finalizeReport, writeReportJson
from entitystore.infra.cache.db import getCacheDbPath, openCacheDb
from entitystore.infra.cache.schema import ensure_cache_ready
from entitystore.infra.cache.sqlite_engine import SqliteEngine
from entitystore.infra.cache.sqlite_entity_cache import SqliteEntityCache
from entitystore.infra.http.api_client import StoreApiClient
from entitystore.infra.http.resource_adapter import HttpResourceAdapter
from entitystore.infra.logging.setup import (
    StdStreamToLogger,
    TeeStream,
    closeCommandLogger,
    createCommandLogger,
    logEvent,
    mapLogLevel,
)
from entitystore.resources.registry import ResourceRegistry, build_registry
from entitystore.usecases.cache_command_service import CacheCommandService

app = typer.Typer(no_args_is_help=True, add_completion=False)
cacheApp = typer.Typer(no_args_is_help=True)

def ensureDir(path: str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)

def requireApi(settings: Settings) -> None:
    """
    Назначение:
        Проверяет наличие параметров API для команд, которым нужен источник истины.

    Поведение:
        - Если base_url не задан, exit code 2.
    """
    if not settings.base_url:
        typer.echo("ERROR: missing API settings: base_url", err=True)
        raise typer.Exit(code=2)

def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """
    Назначение:
        Печатает безопасную сводку параметров запуска (без секретов).
    """
    typer.echo(
        f"run_id={runId} command={command} "
        f"base_url={settings.base_url} api_token={maskSecret(settings.api_token)} "
        f"sources={sources} log_level={settings.log_level}",
        err=True,
    )

def echoEntity(entity: dict) -> None:
    typer.echo(json.dumps(entity, ensure_ascii=False, sort_keys=True))

def runWithReport(
    ctx: typer.Context,
    commandName: str,
    requiresApiAccess: bool,
    runner,
) -> None:
    """
    Назначение:
        Запускает runner(logger, report) одной команды хранилища.

    Контракт:
        - Вывод команды дублируется в <command>_<runId>.log.
        - report_<command>_<runId>.json пишется всегда, даже при исключении.
        - Код возврата runner (или 2 при отсутствии base_url) становится exit code.
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    startMonotonic = time.monotonic()

    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )

    report = createEmptyReport(runId=runId, command=commandName, configSources=sources)

    originalStdout = sys.stdout
    originalStderr = sys.stderr

    sys.stdout = TeeStream(originalStdout, StdStreamToLogger(logger, logging.INFO, runId, "stdout"))
    sys.stderr = TeeStream(originalStderr, StdStreamToLogger(logger, logging.ERROR, runId, "stderr"))

    exitCode: int | None = None

    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")
        printRunHeader(runId, commandName, settings, sources)

        if requiresApiAccess:
            try:
                requireApi(settings)
            except typer.Exit:
                logEvent(logger, logging.ERROR, runId, "config", "Missing API settings")
                exitCode = 2
                return

        exitCode = runner(logger, report)

    finally:
        durationMs = getDurationMs(startMonotonic, time.monotonic())
        finalizeReport(report=report, durationMs=durationMs, logFile=logFilePath, settings=settings)
        reportPath = writeReportJson(report, settings.report_dir)
        logEvent(logger, logging.INFO, runId, "report", f"Report written: {reportPath}")

        sys.stdout = originalStdout
        sys.stderr = originalStderr
        closeCommandLogger(logger)

        if exitCode is not None:
            raise typer.Exit(code=exitCode)

def openEntityCache(settings: Settings) -> tuple[SqliteEngine, SqliteEntityCache]:
    engine = SqliteEngine(openCacheDb(getCacheDbPath(settings.cache_dir)))
    ensure_cache_ready(engine)
    return engine, SqliteEntityCache(engine)

def buildRegistry(settings: Settings) -> ResourceRegistry:
    return build_registry(settings.resources)

def buildDataStore(
    settings: Settings,
    registry: ResourceRegistry,
    cache: SqliteEntityCache,
    logger: logging.Logger,
    runId: str,
) -> tuple[DataStore, StoreApiClient]:
    client = StoreApiClient(
        baseUrl=settings.base_url or "",
        apiToken=settings.api_token,
        timeoutSeconds=settings.timeout_seconds,
        tlsSkipVerify=settings.tls_skip_verify,
        caFile=settings.ca_file,
        retries=settings.retries,
        retryBackoffSeconds=settings.retry_backoff_seconds,
    )
    store = DataStore(registry, HttpResourceAdapter(client), cache, logger=logger, run_id=runId)
    return store, client


def runEntityCommand(
    ctx: typer.Context,
    commandName: str,
    resource: str,
    entityId: str,
    bypassCache: bool = False,
) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]

    def execute(logger, report) -> int:
        report.meta.resource = resource
        try:
            registry = buildRegistry(settings)
        except ValueError as exc:
            logEvent(logger, logging.ERROR, runId, "config", f"Invalid resources config: {exc}")
            typer.echo(f"ERROR: {exc}", err=True)
            return 2
        try:
            engine, cache = openEntityCache(settings)
        except sqlite3.Error as exc:
            logEvent(logger, logging.ERROR, runId, "cache", f"Failed to open cache DB: {exc}")
            typer.echo("ERROR: failed to open cache DB (see logs/report)", err=True)
            return 2

        store, client = buildDataStore(settings, registry, cache, logger, runId)
        try:
            try:
                if commandName == "refresh":
                    future = store.refresh(resource, entityId)
                else:
                    future = store.find(resource, entityId, {"bypassCache": bypassCache})
            except (UnregisteredResourceError, InvalidArgumentError) as exc:
                logEvent(logger, logging.ERROR, runId, "store", str(exc))
                report.add_item(status="rejected", resource=resource, entity_id=entityId, error=exc.to_dict())
                report.add_op(commandName, failed=1, count=1)
                typer.echo(f"ERROR: {exc.describe()}", err=True)
                return 2

            try:
                entity = future.result()
            except AppError as exc:
                logEvent(logger, logging.ERROR, runId, "store", f"{commandName} failed: {exc}")
                report.add_item(status="failed", resource=resource, entity_id=entityId, error=exc.to_dict())
                report.add_op(commandName, failed=1, count=1)
                typer.echo(f"ERROR: {commandName} failed: {exc.describe()}", err=True)
                return 1
            except sqlite3.Error as exc:
                logEvent(logger, logging.ERROR, runId, "cache", f"{commandName} failed on cache write: {exc}")
                error = AppError(category="cache", code=ErrorCode.CACHE_ERROR.value, message=str(exc))
                report.add_item(status="failed", resource=resource, entity_id=entityId, error=error.to_dict())
                report.add_op(commandName, failed=1, count=1)
                typer.echo(f"ERROR: {commandName} failed: {error.describe()}", err=True)
                return 1

            report.add_op(commandName, ok=1, count=1)
            if entity is None:
                report.add_item(status="not_cached", resource=resource, entity_id=entityId)
                typer.echo("not cached")
                return 0
            report.add_item(status="ok", resource=resource, entity_id=entityId, payload=entity)
            echoEntity(entity)
            return 0
        finally:
            client.close()
            engine.close()

    runWithReport(ctx=ctx, commandName=commandName, requiresApiAccess=True, runner=execute)

def runResourcesCommand(ctx: typer.Context) -> None:
    settings: Settings = ctx.obj["settings"]

    def execute(logger, report) -> int:
        try:
            registry = buildRegistry(settings)
        except ValueError as exc:
            typer.echo(f"ERROR: {exc}", err=True)
            return 2
        for name in registry.list_names():
            definition = registry.get(name)
            typer.echo(f"{definition.name} endpoint={definition.endpoint} id_attribute={definition.id_attribute}")
        report.add_op("resources", ok=1, count=len(registry.list_names()))
        return 0

    runWithReport(ctx=ctx, commandName="resources", requiresApiAccess=False, runner=execute)

def runCacheCommand(ctx: typer.Context, commandName: str, resource: str | None) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]

    def execute(logger, report) -> int:
        report.meta.resource = resource
        try:
            engine, cache = openEntityCache(settings)
        except sqlite3.Error as exc:
            logEvent(logger, logging.ERROR, runId, "cache", f"Failed to open cache DB: {exc}")
            typer.echo("ERROR: failed to open cache DB (see logs/report)", err=True)
            return 2
        try:
            known = buildRegistry(settings).list_names()
            service = CacheCommandService(cache, known)
            if commandName == "cache-status":
                exitCode, data = service.status(logger, report, runId, resource=resource)
            else:
                exitCode, data = service.clear(logger, report, runId, resource=resource)
            if exitCode != 0:
                typer.echo(f"ERROR: {commandName} failed (see logs/report)", err=True)
                return exitCode
            typer.echo(json.dumps(data, ensure_ascii=False, sort_keys=True))
            return 0
        except ValueError as exc:
            typer.echo(f"ERROR: {exc}", err=True)
            return 2
        finally:
            engine.close()

    runWithReport(ctx=ctx, commandName=commandName, requiresApiAccess=False, runner=execute)

@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier. If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    reportDir: str | None = typer.Option(None, "--report-dir", help="Directory for reports."),
    cacheDir: str | None = typer.Option(None, "--cache-dir", help="Directory for the SQLite entity cache."),
    baseUrl: str | None = typer.Option(None, "--base-url", help="Base URL of the source API"),
    apiToken: str | None = typer.Option(None, "--api-token", help="Bearer token (avoid; use env/config)"),
    tlsSkipVerify: bool | None = typer.Option(None, "--tls-skip-verify", help="Disable TLS verification"),
    caFile: str | None = typer.Option(None, "--ca-file", help="CA file path"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
    retries: int | None = typer.Option(None, "--retries", help="Retry attempts for API calls"),
    retryBackoffSeconds: float | None = typer.Option(None, "--retry-backoff-seconds", help="Base backoff for retries"),
):
    """
    Клиентский кэш сущностей: find/refresh поверх SQLite-кэша и HTTP-источника.

    Настройки и run_id собираются здесь и передаются подкомандам через ctx.obj.
    """
    if not runId:
        runId = generate_run_id()

    cliOverrides = {
        "base_url": baseUrl,
        "api_token": apiToken,
        "log_level": logLevel,
        "log_dir": logDir,
        "report_dir": reportDir,
        "cache_dir": cacheDir,
        "tls_skip_verify": tlsSkipVerify,
        "ca_file": caFile,
        "timeout_seconds": timeoutSeconds,
        "retries": retries,
        "retry_backoff_seconds": retryBackoffSeconds,
    }
    try:
        loaded = loadSettings(config_path=config, cli_overrides=cliOverrides)
        mapLogLevel(loaded.settings.log_level)
    except ValueError as exc:
        typer.echo(f"ERROR: invalid settings: {exc}", err=True)
        raise typer.Exit(code=2)

    ensureDir(loaded.settings.log_dir)
    ensureDir(loaded.settings.report_dir)
    ensureDir(loaded.settings.cache_dir)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
    }

@app.command("find")
def find(
    ctx: typer.Context,
    resource: str = typer.Argument(..., help="Resource name, e.g. document"),
    entityId: str = typer.Argument(..., metavar="ID", help="Primary key of the entity"),
    bypassCache: bool = typer.Option(False, "--bypass-cache/--no-bypass-cache", help="Skip the cache read"),
):
    runEntityCommand(ctx, "find", resource, entityId, bypassCache=bypassCache)

@app.command("refresh")
def refresh(
    ctx: typer.Context,
    resource: str = typer.Argument(..., help="Resource name, e.g. document"),
    entityId: str = typer.Argument(..., metavar="ID", help="Primary key of the entity"),
):
    """
    Reload an entity from the source only if it is already cached.
    """
    runEntityCommand(ctx, "refresh", resource, entityId)

@app.command("resources")
def resources(ctx: typer.Context):
    runResourcesCommand(ctx)

@cacheApp.command("status")
def cacheStatus(
    ctx: typer.Context,
    resource: str | None = typer.Option(None, "--resource", help="Show status for a specific resource"),
):
    runCacheCommand(ctx, "cache-status", resource)

@cacheApp.command("clear")
def cacheClear(
    ctx: typer.Context,
    resource: str | None = typer.Option(None, "--resource", help="Clear a specific resource"),
):
    runCacheCommand(ctx, "cache-clear", resource)

app.add_typer(cacheApp, name="cache")
