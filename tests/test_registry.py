import threading

import pytest

from blocker.errors import CapacityExceeded, InvalidInput
from blocker.services.registry import TargetRegistry

from conftest import FakeClock, START_MS


def make_registry(max_users=10, max_ttl=3600, clock=None, on_change=None):
    return TargetRegistry(max_users=max_users, max_ttl=max_ttl,
                          clock=clock or FakeClock(), on_change=on_change)


def test_add_then_list_shows_single_entry():
    registry = make_registry()
    result = registry.add(111111111, 60)
    assert result.created is True
    assert result.expires_at == START_MS + 60000
    targets = registry.list()
    assert [(t.id, t.expires_at) for t in targets] == [(111111111, START_MS + 60000)]


def test_add_existing_is_idempotent():
    clock = FakeClock()
    registry = make_registry(clock=clock)
    first = registry.add(111111111, 60)
    clock.advance(5)
    second = registry.add(111111111, 600)
    assert second.created is False
    assert second.expires_at == first.expires_at
    assert len(registry) == 1


@pytest.mark.parametrize('ttl', [0, -1, 3601, '60', 1.5, True])
def test_add_rejects_invalid_ttl(ttl):
    registry = make_registry()
    with pytest.raises(InvalidInput):
        registry.add(5, ttl)
    assert len(registry) == 0


def test_add_accepts_max_ttl():
    registry = make_registry(max_ttl=120)
    assert registry.add(5, 120).created is True


def test_capacity_exceeded_does_not_mutate():
    registry = make_registry(max_users=2)
    registry.add(1, 60)
    registry.add(2, 60)
    with pytest.raises(CapacityExceeded):
        registry.add(3, 60)
    assert [t.id for t in registry.list()] == [1, 2]


def test_expired_entries_are_evicted_without_remove():
    clock = FakeClock()
    registry = make_registry(clock=clock)
    registry.add(1, 10)
    registry.add(2, 20)
    clock.advance(10)
    # expires_at == now counts as expired
    assert [t.id for t in registry.list()] == [2]
    assert 1 not in registry


def test_eviction_frees_capacity():
    clock = FakeClock()
    registry = make_registry(max_users=1, clock=clock)
    registry.add(1, 10)
    clock.advance(11)
    assert registry.add(2, 10).created is True


def test_evict_returns_removed_count():
    clock = FakeClock()
    registry = make_registry(clock=clock)
    registry.add(1, 10)
    registry.add(2, 10)
    registry.add(3, 30)
    assert registry.evict(now=START_MS + 10000) == 2
    assert registry.evict(now=START_MS + 10000) == 0


def test_remove():
    registry = make_registry()
    registry.add(1, 60)
    assert registry.remove(1) is True
    assert registry.remove(1) is False
    assert registry.remove(999) is False
    assert len(registry) == 0


def test_on_change_called_for_mutations_only():
    changes = []
    clock = FakeClock()
    registry = make_registry(clock=clock, on_change=changes.append)
    registry.add(1, 10)
    registry.add(1, 10)
    registry.list()
    registry.remove(42)
    assert len(changes) == 1
    clock.advance(10)
    registry.list()
    assert len(changes) == 2
    assert changes[-1] == []


def test_on_change_runs_after_lock_is_released():
    lock_free = []
    registry = None

    def try_lock(result):
        acquired = registry._lock.acquire(blocking=False)
        if acquired:
            registry._lock.release()
        result.append(acquired)

    def on_change(targets):
        # The RLock is re-entrant for this thread, so check from another one
        result = []
        worker = threading.Thread(target=try_lock, args=(result,))
        worker.start()
        worker.join()
        lock_free.append(result[0])

    clock = FakeClock()
    registry = make_registry(clock=clock, on_change=on_change)
    registry.add(1, 10)
    registry.remove(1)
    registry.add(2, 10)
    clock.advance(10)
    registry.list()
    assert lock_free == [True, True, True, True]


def test_capacity_rejection_still_reports_eviction():
    changes = []
    clock = FakeClock()
    registry = make_registry(max_users=1, clock=clock, on_change=changes.append)
    registry.add(1, 10)
    clock.advance(10)
    registry.add(2, 60)
    assert [[t.id for t in c] for c in changes] == [[1], [2]]
