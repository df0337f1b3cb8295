# -----------------------------------------------------------------------------
#  fast_doubling.py
#  F(n) from the doubling identities, O(log n) multiplications
# -----------------------------------------------------------------------------

from __future__ import annotations

from gmpy2 import mpz

from fibrace.algorithms import check_index, is_trivial
from fibrace.pool import load
from fibrace.progress import ProgressReporter
from fibrace.registry import algorithm

LABEL = "Fast Doubling"


@algorithm(
    label=LABEL,
    order=10,
    description="F(2k) = F(k)(2F(k+1) - F(k)), F(2k+1) = F(k)^2 + F(k+1)^2, MSB first",
    aliases=("fast", "doubling", "fd"),
)
def fib_fast_doubling(cancel, progress, n: int, pool) -> mpz:
    """
    Walk the bits of n from the most significant one down, keeping
    (a, b) = (F(k), F(k+1)). Each bit doubles k; a set bit adds one more step.
    Exactly n.bit_length() iterations.
    """
    check_index(n)
    report = ProgressReporter(progress, LABEL)
    if is_trivial(n):
        report.done()
        return mpz(n)

    total = n.bit_length()
    with pool.cells(4) as (a, b, t1, t2):
        load(a, 0)
        load(b, 1)
        for i in range(total - 1, -1, -1):
            cancel.check()

            load(t1, b)
            t1 <<= 1
            t1 -= a          # 2F(k+1) - F(k)
            load(t2, a)
            t2 *= a          # F(k)^2
            a *= t1          # F(2k)
            b *= b
            b += t2          # F(2k+1)

            if (n >> i) & 1:
                # (F(2k), F(2k+1)) -> (F(2k+1), F(2k+2)); swap the cells, no copy
                a, b = b, a
                b += a

            report.update((total - i) * 100.0 / total)

        report.done()
        return mpz(a)
