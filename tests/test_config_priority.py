import pytest

from entitystore.config.config import Settings, loadSettings


def _write_config(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "\n".join([
            'base_url: "https://cfg.local"',
            'api_token: "cfg_token"',
            "retries: 5",
            "resources:",
            "  document:",
            '    endpoint: "/documents"',
        ]),
        encoding="utf-8",
    )
    return cfg


def test_priority_cli_over_env_over_config(tmp_path, monkeypatch):
    cfg = _write_config(tmp_path)

    # ENV overrides config
    monkeypatch.setenv("ENTITYSTORE_BASE_URL", "https://env.local")
    monkeypatch.setenv("ENTITYSTORE_API_TOKEN", "env_token")
    monkeypatch.setenv("ENTITYSTORE_RETRIES", "7")

    # CLI overrides env
    loaded = loadSettings(str(cfg), {"base_url": "https://cli.local", "api_token": None})

    assert loaded.settings.base_url == "https://cli.local"
    assert loaded.settings.api_token == "env_token"
    assert loaded.settings.retries == 7
    assert loaded.settings.resources == {"document": {"endpoint": "/documents"}}
    assert loaded.sources_used == ["config", "env", "cli"]


def test_defaults_without_sources(monkeypatch):
    for name in ("ENTITYSTORE_BASE_URL", "ENTITYSTORE_CACHE_DIR", "ENTITYSTORE_TLS_SKIP_VERIFY"):
        monkeypatch.delenv(name, raising=False)

    loaded = loadSettings(None, {})

    assert loaded.settings == Settings()
    assert loaded.sources_used == []


def test_invalid_bool_env_rejected(monkeypatch):
    monkeypatch.setenv("ENTITYSTORE_TLS_SKIP_VERIFY", "maybe")

    with pytest.raises(ValueError):
        loadSettings(None, {})


def test_resources_must_be_mapping(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("resources:\n  - document\n", encoding="utf-8")

    with pytest.raises(ValueError):
        loadSettings(str(cfg), {})
