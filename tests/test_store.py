import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from kvstore.core.store import DELETE, GET, POST, KeyValueStore, StatsSnapshot


@pytest.fixture
def store():
    return KeyValueStore()


def test_new_store_is_empty(store):
    snapshot = store.stats(record=False)
    assert snapshot == StatsSnapshot(total_requests=0, data_size=0, method_count={}, errors=0)


def test_put_many_counts_one_request_regardless_of_size(store):
    store.put_many({"a": "1", "b": "2", "c": "3"})
    snapshot = store.stats(record=False)
    assert snapshot.total_requests == 1
    assert snapshot.method_count == {POST: 1}
    assert snapshot.data_size == 3


def test_put_many_empty_mapping_still_counts(store):
    store.put_many({})
    assert store.stats(record=False).method_count == {POST: 1}


def test_put_many_is_idempotent_per_key(store):
    store.put_many({"k": "v"})
    store.put_many({"k": "v"})
    assert store.get_all() == {"k": "v"}


def test_get_all_returns_a_copy(store):
    store.put_many({"a": "1"})
    entries = store.get_all()
    entries["b"] = "2"
    entries.pop("a")
    assert store.get_all() == {"a": "1"}


def test_delete_one_hit_and_repeat_miss(store):
    store.put_many({"x": "1"})
    assert store.delete_one("x") is True
    assert store.delete_one("x") is False
    assert store.delete_one("x") is False

    snapshot = store.stats(record=False)
    assert snapshot.total_requests == 2
    assert snapshot.method_count == {POST: 1, DELETE: 1}
    # Misses are recorded by the caller, not by the store.
    assert snapshot.errors == 0


def test_increment_error_only_touches_error_count(store):
    store.increment_error()
    store.increment_error()
    snapshot = store.stats(record=False)
    assert snapshot.errors == 2
    assert snapshot.total_requests == 0


def test_stats_includes_its_own_request(store):
    first = store.stats()
    assert first.total_requests == 1
    assert first.method_count == {GET: 1}

    second = store.stats()
    assert second.total_requests == 2
    # earlier snapshots are unaffected
    assert first.method_count == {GET: 1}


def test_snapshot_is_immutable(store):
    snapshot = store.stats()
    with pytest.raises(AttributeError):
        snapshot.total_requests = 10  # type: ignore[misc]


def test_scenario_from_empty_store(store):
    store.put_many({"x": "1", "y": "2"})
    assert store.stats(record=False).total_requests == 1

    assert store.get_all() == {"x": "1", "y": "2"}
    assert store.stats(record=False).total_requests == 2

    assert store.delete_one("x") is True
    assert store.stats(record=False).total_requests == 3

    assert store.delete_one("x") is False
    store.increment_error()
    snapshot = store.stats(record=False)
    assert snapshot.total_requests == 3
    assert snapshot.errors == 1

    assert store.stats().as_dict() == {
        "total_requests": 4,
        "data_size": 1,
        "method_count": {"GET": 2, "POST": 1, "DELETE": 1},
        "errors": 1,
    }
    assert store.get_all() == {"y": "2"}


def test_concurrent_puts_and_deletes_keep_counters_consistent(store):
    workers = 8
    per_worker = 200

    def work(worker_id):
        hits = 0
        for i in range(per_worker):
            key = f"{worker_id}-{i}"
            store.put_many({key: str(i)})
            if i % 2 == 0 and store.delete_one(key):
                hits += 1
            if not store.delete_one(f"missing-{worker_id}"):
                store.increment_error()
        return hits

    with ThreadPoolExecutor(max_workers=workers) as pool:
        deleted = sum(pool.map(work, range(workers)))

    snapshot = store.stats(record=False)
    puts = workers * per_worker
    assert deleted == puts // 2
    assert snapshot.data_size == puts - deleted
    assert snapshot.total_requests == puts + deleted
    assert snapshot.method_count == {POST: puts, DELETE: deleted}
    assert sum(snapshot.method_count.values()) == snapshot.total_requests
    assert snapshot.errors == puts


def test_readers_never_observe_partial_put(store):
    store.put_many({"a": "0", "b": "0"})
    stop = threading.Event()
    torn = []

    def writer():
        for i in range(1, 2000):
            store.put_many({"a": str(i), "b": str(i)})
        stop.set()

    def reader():
        while not stop.is_set():
            entries = store.get_all()
            if entries["a"] != entries["b"]:
                torn.append(entries)

    threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert torn == []
    assert store.get_all() == {"a": "1999", "b": "1999"}


def test_stats_snapshot_matches_counters_under_contention(store):
    # Every snapshot must satisfy the per-method invariant, even mid-traffic.
    violations = []

    def mixed(worker_id):
        for i in range(300):
            store.put_many({f"{worker_id}": str(i)})
            store.get_all()
            snapshot = store.stats()
            if sum(snapshot.method_count.values()) != snapshot.total_requests:
                violations.append(snapshot)

    with ThreadPoolExecutor(max_workers=6) as pool:
        list(pool.map(mixed, range(6)))

    assert violations == []
    final = store.stats(record=False)
    assert final.total_requests == 6 * 300 * 3
    assert final.data_size == 6
