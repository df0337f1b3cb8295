# src/fibrace/fmt.py
from __future__ import annotations

import re

import gmpy2

from fibrace.utility import dec_digits

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(s: str | None) -> str:
    """Drop colour codes (for width maths and tests)."""
    return ANSI_RE.sub("", s or "")


def abbr_int_fast(n, head: int = 5, tail: int = 5, threshold: int = 15, ellipsis: str = "...") -> str:
    """
    12345678901234567890 → '12345...67890'.

    Values with at most `threshold` digits are printed whole. The head and
    tail blocks come from integer division, so a 20 000-digit F(n) never
    goes through str().
    """
    v = gmpy2.mpz(n)
    sign, v = ("-", -v) if v < 0 else ("", v)
    digits = dec_digits(v)
    if digits <= max(threshold, head + tail):
        return f"{sign}{v}"
    first = v // gmpy2.mpz(10) ** (digits - head)
    last = v % gmpy2.mpz(10) ** tail
    return f"{sign}{first}{ellipsis}{int(last):0{tail}d}"


def format_scientific(n, digits: int = 8) -> str:
    """n in scientific notation with `digits` digits after the point, e.g. 4.34665577e+208."""
    bits = max(64, int(digits * 3.33) + 16)
    with gmpy2.context(precision=bits):
        return f"{gmpy2.mpfr(n):.{digits}e}"


def format_duration(seconds: float) -> str:
    """'12 µs', '250.000 ms', '1.500 s', then m:ss.mmm and h:mm:ss.mmm."""
    if seconds < 1e-3:
        return f"{seconds * 1e6:.0f} µs"
    if seconds < 1:
        return f"{seconds * 1e3:.3f} ms"
    if seconds < 60:
        return f"{seconds:.3f} s"
    whole_minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(whole_minutes), 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:06.3f}"
    return f"{minutes}:{secs:06.3f}"
