import json
from pathlib import Path
from typing import Callable

import httpx
from typer.testing import CliRunner

from entitystore.main import app

runner = CliRunner()


def patch_client_with_transport(monkeypatch, responder: Callable[[httpx.Request], httpx.Response]) -> list:
    import entitystore.main as cli_module
    from entitystore.infra.http.api_client import StoreApiClient

    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return responder(request)

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        kwargs["retries"] = 0
        return StoreApiClient(*args, **kwargs)

    monkeypatch.setattr(cli_module, "StoreApiClient", factory)
    return seen


def invoke(tmp_path: Path, runId: str, *args: str):
    cfg = tmp_path / "config.yml"
    if not cfg.exists():
        cfg.write_text('resources:\n  document:\n    endpoint: "/documents"\n', encoding="utf-8")
    return runner.invoke(
        app,
        [
            "--config",
            str(cfg),
            "--log-dir",
            str(tmp_path / "logs"),
            "--report-dir",
            str(tmp_path / "reports"),
            "--cache-dir",
            str(tmp_path / "cache"),
            "--base-url",
            "https://api.local",
            "--run-id",
            runId,
            *args,
        ],
    )


def read_report(tmp_path: Path, command: str, runId: str) -> dict:
    path = tmp_path / "reports" / f"report_{command}_{runId}.json"
    return json.loads(path.read_text(encoding="utf-8"))


def test_refresh_uncached_prints_not_cached_without_request(monkeypatch, tmp_path: Path):
    seen = patch_client_with_transport(monkeypatch, lambda request: httpx.Response(200, json={"id": "6"}))

    result = invoke(tmp_path, "r-miss", "refresh", "document", "6")

    assert result.exit_code == 0
    assert "not cached" in result.output
    assert seen == []
    report = read_report(tmp_path, "refresh", "r-miss")
    assert report["items"][0]["status"] == "not_cached"


def test_find_then_refresh_hits_source_again(monkeypatch, tmp_path: Path):
    titles = iter(["v1", "v2"])
    seen = patch_client_with_transport(
        monkeypatch,
        lambda request: httpx.Response(200, json={"id": "5", "title": next(titles)}),
    )

    found = invoke(tmp_path, "f-1", "find", "document", "5")
    assert found.exit_code == 0
    assert '"title": "v1"' in found.output

    refreshed = invoke(tmp_path, "r-1", "refresh", "document", "5")
    assert refreshed.exit_code == 0
    assert '"title": "v2"' in refreshed.output
    assert [request.url.path for request in seen] == ["/documents/5", "/documents/5"]

    status = invoke(tmp_path, "s-1", "cache", "status", "--resource", "document")
    assert status.exit_code == 0
    assert '"count": 1' in status.output


def test_refresh_unregistered_resource_exits_2(monkeypatch, tmp_path: Path):
    patch_client_with_transport(monkeypatch, lambda request: httpx.Response(200, json={}))

    result = invoke(tmp_path, "r-ghost", "refresh", "ghost", "1")

    assert result.exit_code == 2
    report = read_report(tmp_path, "refresh", "r-ghost")
    assert report["status"] == "FAILED"
    assert report["items"][0]["error"]["code"] == "UNREGISTERED_RESOURCE"


def test_refresh_upstream_404_exits_1(monkeypatch, tmp_path: Path):
    responses = iter([httpx.Response(200, json={"id": "5"}), httpx.Response(404, text="gone")])
    patch_client_with_transport(monkeypatch, lambda request: next(responses))

    assert invoke(tmp_path, "f-2", "find", "document", "5").exit_code == 0
    result = invoke(tmp_path, "r-2", "refresh", "document", "5")

    assert result.exit_code == 1
    report = read_report(tmp_path, "refresh", "r-2")
    assert report["items"][0]["error"]["code"] == "HTTP_404"


def test_cache_clear_and_resources(monkeypatch, tmp_path: Path):
    patch_client_with_transport(monkeypatch, lambda request: httpx.Response(200, json={"id": "5"}))
    assert invoke(tmp_path, "f-3", "find", "document", "5").exit_code == 0

    cleared = invoke(tmp_path, "c-1", "cache", "clear")
    assert cleared.exit_code == 0
    assert '"deleted": 1' in cleared.output

    listed = invoke(tmp_path, "l-1", "resources")
    assert listed.exit_code == 0
    assert "document endpoint=/documents id_attribute=id" in listed.output


def test_find_cache_write_failure_exits_1_with_report_item(monkeypatch, tmp_path: Path):
    import sqlite3

    from entitystore.infra.cache.sqlite_entity_cache import SqliteEntityCache

    patch_client_with_transport(monkeypatch, lambda request: httpx.Response(200, json={"id": "5"}))

    def failing_inject(self, resource_name, entity_id, entity):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(SqliteEntityCache, "inject", failing_inject)

    result = invoke(tmp_path, "f-err", "find", "document", "5")

    assert result.exit_code == 1
    report = read_report(tmp_path, "find", "f-err")
    assert report["status"] == "FAILED"
    item = report["items"][0]
    assert item["status"] == "failed"
    assert item["error"]["code"] == "CACHE_ERROR"
    assert "disk I/O error" in item["error"]["message"]
