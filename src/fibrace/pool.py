# src/fibrace/pool.py
"""
Scratch pool of mutable big integers (gmpy2.xmpz).

Every strategy call checks cells out with `pool.cells(k)` and gets them back
on scope exit, whatever the exit path. A checked-out cell belongs to exactly
one strategy invocation; its content is undefined until the caller loads it.
Results leaving a strategy are always detached `mpz` copies.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from gmpy2 import xmpz

from fibrace.utility import PoolError


def load(cell: xmpz, value) -> xmpz:
    """Overwrite `cell` in place with `value` (the cell object itself is kept)."""
    cell -= cell
    cell += value
    return cell


class IntPool:
    """Thread-safe reservoir of xmpz cells with acquire/release counters."""

    def __init__(self) -> None:
        self._free: list[xmpz] = []
        self._free_ids: set[int] = set()
        self._lock = threading.Lock()
        self.created = 0
        self.acquired = 0
        self.released = 0

    def acquire(self) -> xmpz:
        with self._lock:
            self.acquired += 1
            if self._free:
                cell = self._free.pop()
                self._free_ids.discard(id(cell))
                return cell
            self.created += 1
        return xmpz(0)

    def release(self, cell: xmpz) -> None:
        with self._lock:
            if id(cell) in self._free_ids:
                raise PoolError("cell released twice")
            self._free.append(cell)
            self._free_ids.add(id(cell))
            self.released += 1

    @contextmanager
    def cells(self, count: int) -> Iterator[list[xmpz]]:
        held = [self.acquire() for _ in range(count)]
        try:
            yield held
        finally:
            for cell in held:
                self.release(cell)

    @property
    def outstanding(self) -> int:
        with self._lock:
            return self.acquired - self.released

    @property
    def idle(self) -> int:
        with self._lock:
            return len(self._free)

    def __repr__(self) -> str:
        return (f"IntPool(created={self.created}, acquired={self.acquired}, "
                f"released={self.released}, idle={len(self._free)})")
