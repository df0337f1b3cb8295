# src/fibrace/reconcile.py
"""
Ranking and cross-validation of race outcomes.

Order: successes first, then failures; each group fastest first. The first
success the validation policy trusts is the representative value. Trusted
values must agree; a disagreement is a ValidationMismatch, reported and
never voted away.

Closed-form strategies (exact=False) are trusted up to a configurable n.
Past that point their disagreements are listed as exempted discrepancies.
An exempt closed-form result is never the representative while a trusted
success exists, so the reported value always comes from a validated strategy.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fibrace.runtime import CFG
from fibrace.utility import ValidationMismatch

if TYPE_CHECKING:
    from gmpy2 import mpz

    from fibrace.orchestrator import Outcome

DEFAULT_CLOSED_FORM_STRICT_MAX_N = 10_000

COMPLETE = "complete"   # every task succeeded
PARTIAL = "partial"     # some succeeded, some failed or timed out
TIMEOUT = "timeout"     # nothing succeeded and the deadline was hit
FAILED = "failed"       # nothing succeeded, no deadline involved


@dataclass(frozen=True)
class ValidationPolicy:
    closed_form_strict_max_n: int = DEFAULT_CLOSED_FORM_STRICT_MAX_N   # < 0 → always strict

    @classmethod
    def from_config(cls) -> ValidationPolicy:
        return cls(int(CFG("VALIDATION.CLOSED_FORM_STRICT_MAX_N", DEFAULT_CLOSED_FORM_STRICT_MAX_N)))

    def exempts(self, outcome: Outcome, n: int) -> bool:
        if outcome.exact or self.closed_form_strict_max_n < 0:
            return False
        return n > self.closed_form_strict_max_n


@dataclass(frozen=True)
class Discrepancy:
    reference: str
    other: str


@dataclass
class Reconciliation:
    n: int
    outcomes: list[Outcome]                 # ranked
    winner: Outcome | None
    agreement: bool | None                  # None: fewer than two successes
    mismatches: list[Discrepancy] = field(default_factory=list)
    exempted: list[Discrepancy] = field(default_factory=list)

    @property
    def value(self) -> mpz | None:
        return self.winner.value if self.winner is not None else None

    @property
    def successes(self) -> list[Outcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failures(self) -> list[Outcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def verdict(self) -> str:
        if not self.successes:
            return TIMEOUT if any(o.timed_out for o in self.outcomes) else FAILED
        return PARTIAL if self.failures else COMPLETE

    @property
    def unanimous(self) -> bool:
        """True only when every success carries the very same value."""
        return self.agreement is True and not self.exempted

    def raise_for_mismatch(self) -> None:
        if self.mismatches:
            raise ValidationMismatch(self.n, [(d.reference, d.other) for d in self.mismatches])


def rank(outcomes: Iterable[Outcome]) -> list[Outcome]:
    # stable sort: equal durations keep arrival order
    return sorted(outcomes, key=lambda o: (not o.ok, o.duration))


def _representative(successes: list[Outcome], n: int, policy: ValidationPolicy) -> Outcome | None:
    """First success the policy trusts; the first success overall if none is trusted."""
    for o in successes:
        if not policy.exempts(o, n):
            return o
    return successes[0] if successes else None


def _cross_validate(
    successes: list[Outcome], ref: Outcome, n: int, policy: ValidationPolicy
) -> tuple[bool | None, list[Discrepancy], list[Discrepancy]]:
    if len(successes) < 2:
        return None, [], []

    mismatches = [
        Discrepancy(ref.name, o.name)
        for o in successes
        if o is not ref and not policy.exempts(o, n) and o.value != ref.value
    ]
    exempted = [
        Discrepancy(ref.name, o.name)
        for o in successes
        if o is not ref and policy.exempts(o, n) and o.value != ref.value
    ]
    return not mismatches, mismatches, exempted


def reconcile(
    outcomes: Iterable[Outcome],
    n: int,
    *,
    policy: ValidationPolicy | None = None,
) -> Reconciliation:
    """
    Drain `outcomes` (a list or a closed completion channel), rank them and
    cross-validate the successes.
    """
    if policy is None:
        policy = ValidationPolicy.from_config()

    ranked = rank(outcomes)
    successes = [o for o in ranked if o.ok]
    winner = _representative(successes, n, policy)
    agreement, mismatches, exempted = (
        _cross_validate(successes, winner, n, policy) if winner is not None else (None, [], [])
    )

    return Reconciliation(
        n=n,
        outcomes=ranked,
        winner=winner,
        agreement=agreement,
        mismatches=mismatches,
        exempted=exempted,
    )
