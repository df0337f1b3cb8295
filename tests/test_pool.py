# tests/test_pool.py
from __future__ import annotations

import threading

import pytest

from fibrace.pool import IntPool, load
from fibrace.utility import PoolError


def test_acquire_creates_lazily_and_reuses():
    pool = IntPool()
    cell = pool.acquire()
    assert pool.created == 1
    pool.release(cell)
    again = pool.acquire()
    assert again is cell
    assert pool.created == 1
    pool.release(again)
    assert pool.outstanding == 0
    assert pool.idle == 1


def test_double_release_is_an_error():
    pool = IntPool()
    cell = pool.acquire()
    pool.release(cell)
    with pytest.raises(PoolError):
        pool.release(cell)


def test_load_overwrites_in_place():
    pool = IntPool()
    cell = pool.acquire()
    cell += 12345
    same = load(cell, -7)
    assert same is cell
    assert cell == -7
    pool.release(cell)


def test_scoped_cells_are_released_on_error():
    pool = IntPool()
    with pytest.raises(RuntimeError):
        with pool.cells(3) as cells:
            assert len(cells) == 3
            assert pool.outstanding == 3
            raise RuntimeError("boom")
    assert pool.outstanding == 0
    assert pool.idle == 3


def test_concurrent_users_never_share_a_cell():
    pool = IntPool()
    errors: list[str] = []

    def worker(tag: int):
        for i in range(200):
            with pool.cells(2) as (a, b):
                load(a, tag)
                load(b, i)
                a *= 1000
                a += b
                if a != tag * 1000 + i:
                    errors.append(f"worker {tag}: cell clobbered at step {i}")

    threads = [threading.Thread(target=worker, args=(t,)) for t in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert pool.outstanding == 0
    assert pool.acquired == pool.released == 8 * 200 * 2
    assert pool.created <= 16
