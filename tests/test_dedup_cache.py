import threading
import uuid

import pytest

from groupwork.services.notification_dispatcher import AssignmentDedupCache

pytestmark = pytest.mark.unit


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


def test_second_send_within_window_suppressed():
    clock = FakeClock()
    cache = AssignmentDedupCache(window_ms=300_000, clock=clock)
    task_id = uuid.uuid4()

    assert cache.should_send(task_id, "b") is True
    clock.advance_ms(299_999)
    assert cache.should_send(task_id, "b") is False


def test_send_allowed_again_after_window():
    clock = FakeClock()
    cache = AssignmentDedupCache(window_ms=300_000, clock=clock)
    task_id = uuid.uuid4()

    assert cache.should_send(task_id, "b")
    clock.advance_ms(300_000)
    assert cache.should_send(task_id, "b")


def test_suppressed_attempt_does_not_extend_window():
    clock = FakeClock()
    cache = AssignmentDedupCache(window_ms=1000, clock=clock)

    assert cache.should_send("t1", "b")
    clock.advance_ms(600)
    assert not cache.should_send("t1", "b")
    clock.advance_ms(400)
    assert cache.should_send("t1", "b")


def test_keys_are_independent():
    cache = AssignmentDedupCache(clock=FakeClock())

    assert cache.should_send("t1", "b")
    assert cache.should_send("t1", "c")
    assert cache.should_send("t2", "b")
    assert not cache.should_send("t1", "b")


def test_expired_entries_evicted_past_capacity():
    clock = FakeClock()
    cache = AssignmentDedupCache(window_ms=1000, max_entries=3, clock=clock)
    for i in range(3):
        cache.should_send(f"old-{i}", "b")
    clock.advance_ms(1500)

    cache.should_send("fresh", "b")

    assert len(cache) == 1


def test_live_entries_survive_eviction():
    clock = FakeClock()
    cache = AssignmentDedupCache(window_ms=1000, max_entries=2, clock=clock)
    cache.should_send("t1", "b")
    cache.should_send("t2", "b")
    cache.should_send("t3", "b")

    assert len(cache) == 3
    assert not cache.should_send("t1", "b")


def test_concurrent_callers_get_exactly_one_send():
    cache = AssignmentDedupCache()
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        results.append(cache.should_send("t1", "b"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1


def test_explicit_eviction_sweeps_only_expired_entries():
    clock = FakeClock()
    cache = AssignmentDedupCache(window_ms=1000, clock=clock)
    cache.should_send("t1", "b")
    clock.advance_ms(800)
    cache.should_send("t2", "b")
    clock.advance_ms(300)

    assert cache.evict_expired() == 1
    assert len(cache) == 1
