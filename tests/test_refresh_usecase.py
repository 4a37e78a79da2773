from __future__ import annotations

from concurrent.futures import Future

import pytest

from entitystore.common.futures import FutureFactory
from entitystore.domain.exceptions import InvalidArgumentError, UnregisteredResourceError
from entitystore.infra.http.api_client import ApiError
from entitystore.resources.registry import ResourceRegistry
from entitystore.usecases.refresh_usecase import RefreshUseCase


class StubCache:
    def __init__(self, items: dict | None = None) -> None:
        self.items = dict(items or {})
        self.get_calls: list[tuple] = []
        self.writes = 0

    def get(self, resource_name, entity_id):
        self.get_calls.append((resource_name, entity_id))
        return self.items.get((resource_name, entity_id))

    def inject(self, *_args, **_kwargs):
        self.writes += 1

    def eject(self, *_args, **_kwargs):
        self.writes += 1


class RecordingPipeline:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.calls: list[tuple] = []
        self.result = result
        self.error = error
        self.returned: list[Future] = []

    def find(self, resource_name, entity_id, options=None):
        self.calls.append((resource_name, entity_id, options))
        future: Future = Future()
        if self.error is not None:
            future.set_exception(self.error)
        else:
            future.set_result(self.result)
        self.returned.append(future)
        return future


def build(cache_items: dict | None = None, pipeline: RecordingPipeline | None = None):
    registry = ResourceRegistry()
    registry.define("document")
    cache = StubCache(cache_items)
    pipeline = pipeline or RecordingPipeline(result={"id": 5, "title": "fresh"})
    return RefreshUseCase(registry, cache, pipeline), cache, pipeline


def test_unregistered_resource_raises_synchronously():
    refresher, cache, pipeline = build()

    with pytest.raises(UnregisteredResourceError) as excinfo:
        refresher.refresh("ghost", 1)

    assert "ghost" in str(excinfo.value)
    assert "refresh(ghost, 1[, options])" in str(excinfo.value)
    assert cache.get_calls == []
    assert pipeline.calls == []


def test_unregistered_resource_wins_over_invalid_id_and_options():
    refresher, _, _ = build()

    with pytest.raises(UnregisteredResourceError):
        refresher.refresh("ghost", None, "not-a-mapping")


@pytest.mark.parametrize("bad_id", [None, True, False, {}, [], (1,), object()])
def test_invalid_id_raises_invalid_argument(bad_id):
    refresher, cache, pipeline = build()

    with pytest.raises(InvalidArgumentError) as excinfo:
        refresher.refresh("document", bad_id)

    assert excinfo.value.param == "id"
    assert "id: Must be a string or a number!" in str(excinfo.value)
    assert cache.get_calls == []
    assert pipeline.calls == []


def test_invalid_id_wins_over_invalid_options():
    refresher, _, _ = build()

    with pytest.raises(InvalidArgumentError) as excinfo:
        refresher.refresh("document", {}, 42)

    assert excinfo.value.param == "id"


@pytest.mark.parametrize("bad_options", ["bypass", 7, ["bypassCache"], True])
def test_invalid_options_raise_invalid_argument(bad_options):
    refresher, cache, pipeline = build()

    with pytest.raises(InvalidArgumentError) as excinfo:
        refresher.refresh("document", 5, bad_options)

    assert excinfo.value.param == "options"
    assert "options: Must be an object!" in str(excinfo.value)
    assert cache.get_calls == []
    assert pipeline.calls == []


def test_not_cached_resolves_none_without_pipeline_call():
    refresher, cache, pipeline = build()

    future = refresher.refresh("document", 6)

    assert future.done()
    assert future.exception() is None
    assert future.result() is None
    assert cache.get_calls == [("document", 6)]
    assert pipeline.calls == []


def test_cached_delegates_with_bypass_forced_and_returns_pipeline_future():
    refresher, _, pipeline = build({("document", 5): {"id": 5, "title": "stale"}})

    future = refresher.refresh("document", 5)

    assert len(pipeline.calls) == 1
    assert pipeline.calls[0] == ("document", 5, {"bypassCache": True})
    assert future is pipeline.returned[0]
    assert future.result() == {"id": 5, "title": "fresh"}


def test_empty_cached_entity_counts_as_cached():
    refresher, _, pipeline = build({("document", 5): {}})

    future = refresher.refresh("document", 5)

    assert len(pipeline.calls) == 1
    assert future is pipeline.returned[0]
    assert future.result() == {"id": 5, "title": "fresh"}


def test_caller_bypass_false_is_overwritten_and_other_keys_pass_through():
    refresher, _, pipeline = build({("document", "5"): {"id": "5"}})
    options = {"bypassCache": False, "params": {"expand": "owner"}}

    refresher.refresh("document", "5", options)

    forwarded = pipeline.calls[0][2]
    assert forwarded == {"bypassCache": True, "params": {"expand": "owner"}}
    assert options["bypassCache"] is False


def test_pipeline_failure_propagates_through_future_unchanged():
    error = ApiError("Resource not found on server", status_code=404)
    pipeline = RecordingPipeline(error=error)
    refresher, _, _ = build({("document", 5): {"id": 5}}, pipeline=pipeline)

    future = refresher.refresh("document", 5)

    assert future.exception() is error
    with pytest.raises(ApiError):
        future.result()


def test_refresher_never_writes_to_cache():
    refresher, cache, _ = build({("document", 5): {"id": 5}})

    refresher.refresh("document", 5).result()
    refresher.refresh("document", 6).result()

    assert cache.writes == 0


def test_short_circuit_uses_injected_future_factory():
    created: list[Future] = []

    class TrackingFutures(FutureFactory):
        def deferred(self) -> Future:
            future = super().deferred()
            created.append(future)
            return future

    registry = ResourceRegistry()
    registry.define("document")
    refresher = RefreshUseCase(registry, StubCache(), RecordingPipeline(), futures=TrackingFutures())

    future = refresher.refresh("document", 1)

    assert created == [future]
    assert future.result() is None
