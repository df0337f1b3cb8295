"""
Fibonacci strategies. Every public module here is imported by
fibrace.registry.discover(); functions tagged with @algorithm become tasks.

All strategies share the call shape

    compute(cancel, progress, n, pool) -> gmpy2.mpz

and the same edge-case policy, implemented by the helpers below.
"""

from __future__ import annotations

from fibrace.utility import InvalidIndex


def check_index(n: int) -> int:
    if n < 0:
        raise InvalidIndex(n)
    return n


def is_trivial(n: int) -> bool:
    """F(0)=0 and F(1)=1 are returned as-is, without touching the pool."""
    return n <= 1
