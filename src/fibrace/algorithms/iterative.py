# -----------------------------------------------------------------------------
#  iterative.py
#  Textbook F(i) = F(i-1) + F(i-2), O(n) big additions
# -----------------------------------------------------------------------------

from __future__ import annotations

from gmpy2 import mpz

from fibrace.algorithms import check_index, is_trivial
from fibrace.pool import load
from fibrace.progress import ProgressReporter
from fibrace.registry import algorithm

LABEL = "Iterative"


@algorithm(
    label=LABEL,
    order=40,
    description="next = a + b; a = b; b = next",
    aliases=("iter", "iterative", "linear"),
)
def fib_iterative(cancel, progress, n: int, pool) -> mpz:
    check_index(n)
    report = ProgressReporter(progress, LABEL)
    if is_trivial(n):
        report.done()
        return mpz(n)

    steps = n - 1
    with pool.cells(3) as (a, b, nxt):
        load(a, 0)
        load(b, 1)
        for i in range(2, n + 1):
            cancel.check()
            load(nxt, a)
            nxt += b
            # rotate the three cells instead of copying values around
            a, b, nxt = b, nxt, a
            report.update((i - 1) * 100.0 / steps)

        report.done()
        return mpz(b)
