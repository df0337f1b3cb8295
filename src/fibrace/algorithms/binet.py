# -----------------------------------------------------------------------------
#  binet.py
#  F(n) = round(phi^n / sqrt(5)) in mpfr arithmetic
# -----------------------------------------------------------------------------

from __future__ import annotations

import math

import gmpy2
from gmpy2 import mpfr, mpz

from fibrace.algorithms import check_index, is_trivial
from fibrace.progress import ProgressReporter
from fibrace.registry import algorithm
from fibrace.runtime import CFG

LABEL = "Binet"
LOG2_PHI = math.log2((1 + math.sqrt(5)) / 2)
DEFAULT_GUARD_BITS = 20


def binet_precision(n: int, guard_bits: int = DEFAULT_GUARD_BITS) -> int:
    """Working precision in bits: enough for phi^n plus `guard_bits`."""
    return math.ceil(n * LOG2_PHI) + max(2, int(guard_bits))


@algorithm(
    label=LABEL,
    order=30,
    exact=False,
    description="round(phi^n / sqrt(5)) with precision sized from n",
    aliases=("binet", "closed", "closed-form"),
)
def fib_binet(cancel, progress, n: int, pool=None) -> mpz:
    """
    Binet's closed form. Does not use the integer pool.

    The precision is a heuristic; at very large n the result may be off in
    the last units, which is why reconciliation treats this strategy as
    inexact above the configured threshold.
    """
    check_index(n)
    report = ProgressReporter(progress, LABEL)
    if is_trivial(n):
        report.done()
        return mpz(n)

    guard = int(CFG("ALGORITHMS.BINET_GUARD_BITS", DEFAULT_GUARD_BITS))
    total = n.bit_length()

    # gmpy2 contexts are per thread; this one only lives for the block
    with gmpy2.context(precision=binet_precision(n, guard)):
        sqrt5 = gmpy2.sqrt(mpfr(5))
        phi = (1 + sqrt5) / 2

        phi_n = mpfr(1)
        base = phi
        for i in range(total):
            cancel.check()
            if (n >> i) & 1:
                phi_n *= base
            if i + 1 < total:
                base *= base
            report.update((i + 1) * 100.0 / total)

        # add 1/2 and truncate toward zero: nearest integer for F(n) > 0
        value = mpz(gmpy2.trunc(phi_n / sqrt5 + mpfr("0.5")))

    report.done()
    return value
