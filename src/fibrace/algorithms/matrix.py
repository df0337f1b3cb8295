# -----------------------------------------------------------------------------
#  matrix.py
#  F(n) as the top-left entry of Q^(n-1), Q = [[1, 1], [1, 0]]
# -----------------------------------------------------------------------------

from __future__ import annotations

from gmpy2 import mpz, xmpz

from fibrace.algorithms import check_index, is_trivial
from fibrace.pool import IntPool, load
from fibrace.progress import ProgressReporter
from fibrace.registry import algorithm

LABEL = "Matrix 2x2"


class Mat2:
    """
    2x2 matrix over pooled cells:
        | a  b |
        | c  d |
    """

    __slots__ = ("a", "b", "c", "d")

    def __init__(self, a: xmpz, b: xmpz, c: xmpz, d: xmpz):
        self.a, self.b, self.c, self.d = a, b, c, d

    def load(self, a, b, c, d) -> Mat2:
        load(self.a, a)
        load(self.b, b)
        load(self.c, c)
        load(self.d, d)
        return self


def mul_into(dst: Mat2, m1: Mat2, m2: Mat2, pool: IntPool) -> Mat2:
    """
    dst = m1 * m2.

    dst may be m1 and/or m2: all four entries are computed into fresh
    temporaries and committed only at the end.
    """
    with pool.cells(5) as (p, va, vb, vc, vd):
        load(va, m1.a)
        va *= m2.a
        load(p, m1.b)
        p *= m2.c
        va += p

        load(vb, m1.a)
        vb *= m2.b
        load(p, m1.b)
        p *= m2.d
        vb += p

        load(vc, m1.c)
        vc *= m2.a
        load(p, m1.d)
        p *= m2.c
        vc += p

        load(vd, m1.c)
        vd *= m2.b
        load(p, m1.d)
        p *= m2.d
        vd += p

        return dst.load(va, vb, vc, vd)


@algorithm(
    label=LABEL,
    order=20,
    description="Q^(n-1) by square-and-multiply, Q = [[1,1],[1,0]]",
    aliases=("matrix", "mat", "mat2"),
)
def fib_matrix(cancel, progress, n: int, pool) -> mpz:
    check_index(n)
    report = ProgressReporter(progress, LABEL)
    if is_trivial(n):
        report.done()
        return mpz(n)

    exp = n - 1
    total = exp.bit_length()
    with pool.cells(8) as cells:
        acc = Mat2(*cells[:4]).load(1, 0, 0, 1)
        base = Mat2(*cells[4:]).load(1, 1, 1, 0)

        step = 0
        while exp:
            cancel.check()
            if exp & 1:
                mul_into(acc, acc, base, pool)
            exp >>= 1
            if exp:
                mul_into(base, base, base, pool)
            step += 1
            report.update(step * 100.0 / total)

        report.done()
        return mpz(acc.a)
