from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable

import yaml

ENV_PREFIX = "ENTITYSTORE_"


@dataclass(frozen=True)
class Settings:
    # API
    base_url: str | None = None
    api_token: str | None = None
    timeout_seconds: float = 20.0
    retries: int = 3
    retry_backoff_seconds: float = 0.5
    tls_skip_verify: bool = False
    ca_file: str | None = None

    # Paths
    cache_dir: str = "./cache"
    log_dir: str = "./logs"
    report_dir: str = "./reports"

    log_level: str = "INFO"

    # name -> {endpoint, id_attribute}; только из YAML
    resources: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


def parse_bool(v: str | bool) -> bool:
    if isinstance(v, bool):
        return v
    vv = str(v).strip().lower()
    if vv in ("1", "true", "yes", "y"):
        return True
    if vv in ("0", "false", "no", "n"):
        return False
    raise ValueError(f"Invalid boolean value: {v}")


_COERCERS: dict[str, Callable[[Any], Any]] = {
    "timeout_seconds": float,
    "retries": int,
    "retry_backoff_seconds": float,
    "tls_skip_verify": parse_bool,
}

SCALAR_FIELDS = tuple(f.name for f in fields(Settings) if f.name != "resources")


def envName(fieldName: str) -> str:
    return ENV_PREFIX + fieldName.upper()


def _read_yaml_config(path: Path) -> dict:
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _env_get(name: str) -> str | None:
    v = os.getenv(name, "").strip()
    return v or None


def _coerce(name: str, value: Any) -> Any:
    coercer = _COERCERS.get(name)
    return coercer(value) if coercer is not None else value


def loadSettings(config_path: str | None, cli_overrides: dict) -> LoadedSettings:
    """
    Назначение:
        Собирает Settings из слоёв с приоритетом CLI > ENV > config > defaults.

    Контракт:
        - ENV: ENTITYSTORE_<FIELD> (например ENTITYSTORE_BASE_URL); пустое значение
          равно отсутствующему.
        - В cli_overrides учитываются только ключи со значением не None.
        - resources читается только из YAML и должен быть mapping, иначе ValueError.
        - Невалидные числа/булевы значения -> ValueError.
        - sources_used перечисляет реально сработавшие слои: config, env, cli.
    """
    sources: list[str] = []
    merged: dict[str, Any] = {}

    cfg = _read_yaml_config(Path(config_path)) if config_path else {}
    if cfg:
        sources.append("config")
        merged.update({name: cfg[name] for name in SCALAR_FIELDS if cfg.get(name) is not None})

    resources = cfg.get("resources") or {}
    if not isinstance(resources, dict):
        raise ValueError("config: 'resources' must be a mapping of name -> definition")

    env = {name: _env_get(envName(name)) for name in SCALAR_FIELDS}
    envSet = {name: value for name, value in env.items() if value is not None}
    if envSet:
        sources.append("env")
        merged.update(envSet)

    cliSet = {name: value for name, value in cli_overrides.items() if value is not None}
    if cliSet:
        sources.append("cli")
        merged.update(cliSet)

    values = {name: _coerce(name, value) for name, value in merged.items()}
    settings = Settings(**values, resources=dict(resources))
    return LoadedSettings(settings=settings, sources_used=sources)
