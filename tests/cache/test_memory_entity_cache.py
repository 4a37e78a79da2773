from entitystore.domain.ports.cache import UpsertResult
from entitystore.infra.cache.memory_entity_cache import MemoryEntityCache


def test_inject_get_eject_roundtrip_by_normalized_key():
    cache = MemoryEntityCache()

    assert cache.inject("document", 5, {"id": 5}) == UpsertResult.INSERTED
    assert cache.inject("document", "5", {"id": 5, "v": 2}) == UpsertResult.UPDATED
    assert cache.get("document", 5.0) == {"id": 5, "v": 2}
    assert cache.count("document") == 1
    assert cache.eject("document", 5) == {"id": 5, "v": 2}
    assert cache.get("document", 5) is None
    assert cache.eject("document", 5) is None


def test_inject_stores_a_copy():
    cache = MemoryEntityCache()
    entity = {"id": 1, "tags": ["a"]}
    cache.inject("document", 1, entity)

    entity["tags"].append("b")

    assert cache.get("document", 1) == {"id": 1, "tags": ["a"]}


def test_reinject_updates_previously_returned_reference():
    cache = MemoryEntityCache()
    cache.inject("document", 1, {"id": 1, "title": "stale", "draft": True})
    held = cache.get("document", 1)

    assert cache.inject("document", 1, {"id": 1, "title": "fresh"}) == UpsertResult.UPDATED

    assert held == {"id": 1, "title": "fresh"}
    assert cache.get("document", 1) is held


def test_clear_by_resource_and_all():
    cache = MemoryEntityCache()
    cache.inject("document", 1, {"id": 1})
    cache.inject("document", 2, {"id": 2})
    cache.inject("comment", 1, {"id": 1})

    assert sorted(cache.list_resources()) == ["comment", "document"]
    assert cache.clear("document") == 2
    assert cache.list_resources() == ["comment"]
    assert cache.clear() == 1
    assert cache.count("comment") == 0
