from __future__ import annotations

import logging
from pathlib import Path

LIBRARY_LOGGER_NAME = "entitystore"
LOG_FORMAT = "%(asctime)s %(levelname)s runId=%(runId)s comp=%(component)s msg=%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_LEVELS = {
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class EnsureFieldsFilter(logging.Filter):
    """
    Подставляет runId/component в записи, пришедшие не через logEvent
    (например, из httpx), иначе LOG_FORMAT упадёт на KeyError.
    """

    def __init__(self, runId: str, defaultComponent: str = "core"):
        super().__init__()
        self.runId = runId
        self.defaultComponent = defaultComponent

    def filter(self, record: logging.LogRecord) -> bool:
        record.runId = getattr(record, "runId", self.runId)
        record.component = getattr(record, "component", self.defaultComponent)
        return True


class StdStreamToLogger:
    """
    Назначение:
        File-like приёмник: собирает текст до перевода строки и пишет
        каждую непустую строку в логгер с component=stdout|stderr.
    """

    def __init__(self, logger: logging.Logger, level: int, runId: str, component: str):
        self.logger = logger
        self.level = level
        self.runId = runId
        self.component = component
        self._pending = ""

    def write(self, s: str) -> int:
        if not s:
            return 0
        *lines, self._pending = (self._pending + s).split("\n")
        for line in lines:
            self._emit(line)
        return len(s)

    def flush(self) -> None:
        self._emit(self._pending)
        self._pending = ""

    def _emit(self, line: str) -> None:
        if line.strip():
            logEvent(self.logger, self.level, self.runId, self.component, line.rstrip())


class TeeStream:
    """Пишет в исходный поток и в StdStreamToLogger."""

    def __init__(self, primary, secondary):
        self.primary = primary
        self.secondary = secondary

    def write(self, s: str) -> int:
        written = self.primary.write(s)
        self.secondary.write(s)
        return written

    def flush(self) -> None:
        self.primary.flush()
        self.secondary.flush()


def mapLogLevel(levelName: str) -> int:
    """ERROR|WARN|INFO|DEBUG -> logging level; иначе ValueError."""
    try:
        return _LEVELS[(levelName or "").strip().upper()]
    except KeyError:
        raise ValueError(f"Unsupported log level: {levelName}") from None


def getLibraryLogger() -> logging.Logger:
    """
    Логгер по умолчанию для DataStore и use case'ов вне CLI.
    Без настроенных хендлеров сообщения никуда не пишутся.
    """
    logger = logging.getLogger(LIBRARY_LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger


def createCommandLogger(commandName: str, logDir: str, runId: str, logLevel: str) -> tuple[logging.Logger, str]:
    """
    Назначение:
        Логгер одного запуска команды CLI с файлом <logDir>/<command>_<runId>.log.

    Контракт:
        - Логгер не пропагирует записи в root.
        - Повторный вызов с тем же runId заменяет хендлеры, а не дублирует их.
        - Невалидный logLevel -> ValueError до создания файла.
    """
    level = mapLogLevel(logLevel)
    logPath = Path(logDir) / f"{commandName}_{runId}.log"
    logPath.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(f"{LIBRARY_LOGGER_NAME}.{commandName}.{runId}")
    closeCommandLogger(logger)
    logger.propagate = False
    logger.setLevel(level)

    handler = logging.FileHandler(logPath, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(EnsureFieldsFilter(runId=runId))
    logger.addHandler(handler)
    return logger, str(logPath)


def closeCommandLogger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def logEvent(logger: logging.Logger, level: int, runId: str, component: str, message: str) -> None:
    logger.log(level, message, extra={"runId": runId, "component": component})
