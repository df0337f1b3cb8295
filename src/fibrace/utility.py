# -----------------------------------------------------------------------------
#  Utility functions and error types
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import Mapping

import gmpy2

DEADLINE_EXCEEDED = "deadline exceeded"
CANCELLED = "cancelled"


class UserInputError(Exception):
    pass


# --- Error kinds ---------------------------------------------------------------

class FibraceError(Exception):
    """Base class for every error raised by the computation core."""


class InvalidIndex(FibraceError, ValueError):
    def __init__(self, n: int):
        super().__init__(f"negative index n is not supported: {n}")
        self.n = n


class Cancelled(FibraceError):
    """A strategy observed the shared cancellation token and unwound."""

    def __init__(self, reason: str = CANCELLED):
        super().__init__(reason)
        self.reason = reason

    @property
    def timed_out(self) -> bool:
        return self.reason == DEADLINE_EXCEEDED


class ValidationMismatch(FibraceError):
    """Two successful strategies produced different values for the same n."""

    def __init__(self, n: int, pairs: list[tuple[str, str]]):
        listed = ", ".join(f"{a} vs {b}" for a, b in pairs)
        super().__init__(f"results for F({n}) differ: {listed}")
        self.n = n
        self.pairs = pairs


class PoolError(FibraceError, RuntimeError):
    pass


class ChannelClosed(FibraceError, RuntimeError):
    pass


# --- Numbers -------------------------------------------------------------------

def dec_digits(n) -> int:
    """Decimal digit count of |n| without building the decimal string."""
    a = gmpy2.mpz(n)
    if a < 0:
        a = -a
    # num_digits is exact or one too large
    d = gmpy2.num_digits(a, 10)
    if d > 1 and a < gmpy2.mpz(10) ** (d - 1):
        d -= 1
    return d


# --- Settings helpers ----------------------------------------------------------

def typename(v: object) -> str:
    return type(v).__name__


def flatten_dotted(table: Mapping, prefix: str = "") -> dict[str, object]:
    """{'RUN': {'N': 5}} → {'RUN.N': 5}"""
    flat: dict[str, object] = {}
    for key, value in table.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten_dotted(value, dotted + "."))
        else:
            flat[dotted] = value
    return flat
