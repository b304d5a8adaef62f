from __future__ import annotations

import threading
import time

import pytest

from sirekap.common.errors import ConcurrencyLimitError
from sirekap.crawl.concurrency import BoundedConcurrencyGroup


def test_register_more_than_limit_is_a_precondition_failure():
    group = BoundedConcurrencyGroup(2)

    with pytest.raises(ConcurrencyLimitError):
        group.register(3)
    assert group.active == 0


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        BoundedConcurrencyGroup(0)


def test_release_without_registered_work_fails():
    group = BoundedConcurrencyGroup(1)

    with pytest.raises(ConcurrencyLimitError):
        group.release()


def test_await_all_returns_immediately_when_nothing_registered():
    group = BoundedConcurrencyGroup(1)
    group.await_all()
    assert group.active == 0


def test_register_blocks_until_a_slot_is_released():
    group = BoundedConcurrencyGroup(1)
    group.register(1)
    acquired = threading.Event()

    def second():
        group.register(1)
        acquired.set()
        group.release()

    worker = threading.Thread(target=second, daemon=True)
    worker.start()

    assert not acquired.wait(0.1)
    group.release()
    assert acquired.wait(2)
    worker.join(2)
    group.await_all()
    assert group.active == 0


def test_live_count_never_exceeds_limit_under_contention():
    group = BoundedConcurrencyGroup(3)
    lock = threading.Lock()
    running = 0
    observed: list[int] = []

    def task():
        nonlocal running
        try:
            with lock:
                running += 1
                observed.append(running)
            time.sleep(0.01)
            with lock:
                running -= 1
        finally:
            group.release()

    for _ in range(20):
        group.register(1)
        threading.Thread(target=task, daemon=True).start()
    group.await_all()

    assert max(observed) <= 3
    assert group.peak_active <= 3
    assert group.active == 0
