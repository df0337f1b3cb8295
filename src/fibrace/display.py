# src/fibrace/display.py
from __future__ import annotations

import sys
from typing import TextIO

from colorama import Fore, Style

from fibrace.fmt import abbr_int_fast, format_duration, format_scientific
from fibrace.reconcile import PARTIAL, TIMEOUT, Reconciliation
from fibrace.runtime import CFG
from fibrace.utility import dec_digits

_RULE_WIDTH = 72


def _status_colored(status: str) -> str:
    if status == "OK":
        return f"{Fore.GREEN}{Style.BRIGHT}{status}{Style.RESET_ALL}"
    if status in ("Timeout", "Cancelled"):
        return f"{Fore.YELLOW}{Style.BRIGHT}{status}{Style.RESET_ALL}"
    return f"{Fore.RED}{Style.BRIGHT}{status}{Style.RESET_ALL}"


def _abbr(value) -> str:
    return abbr_int_fast(
        int(value),
        int(CFG("FORMATTING.NUM_ABBR_HEAD", 5)),
        int(CFG("FORMATTING.NUM_ABBR_TAIL", 5)),
        15,
        str(CFG("FORMATTING.ELLIPSIS", "...")),
    )


def print_value_details(value, n: int, out: TextIO | None = None) -> None:
    """Digit count, then the value itself or its scientific notation."""
    out = out or sys.stdout
    digits = dec_digits(value)
    print(f"Number of digits in F({n}): {digits}", file=out)
    if digits > int(CFG("DISPLAY.VALUE_DIGITS", 20)):
        print(f"Value (scientific notation) ≈ {format_scientific(value)}", file=out)
    else:
        print(f"Value = {value}", file=out)


def print_results(report: Reconciliation, out: TextIO | None = None) -> None:
    """
    Ordered results table, winner, value details and cross-validation verdict:
      • successes first (fastest first), then failures
      • status OK / Timeout / Cancelled / Error: <msg>
      • exempted closed-form discrepancies are listed, never hidden
    """
    out = out or sys.stdout
    title = " ORDERED RESULTS "
    side = (_RULE_WIDTH - len(title)) // 2
    print("\n" + "-" * side + title + "-" * (_RULE_WIDTH - side - len(title)), file=out)

    for o in report.outcomes:
        val = _abbr(o.value) if o.ok else "N/A"
        dur = format_duration(o.duration)
        print(f"{o.name:<16} : {dur:<12} [{_status_colored(o.status)}] Result: {val}", file=out)

    print("-" * _RULE_WIDTH, file=out)

    winner = report.winner
    if winner is None:
        if report.verdict == TIMEOUT:
            print(f"\n{Fore.RED}No algorithm finished before the deadline.{Style.RESET_ALL}", file=out)
        else:
            print(f"\n{Fore.RED}No algorithm could complete the calculation successfully.{Style.RESET_ALL}",
                  file=out)
        return

    # an exempt closed form may have finished first without being the reported value
    heading = ("Fastest algorithm (that succeeded):" if winner is report.successes[0]
               else "Fastest validated algorithm:")
    print(f"\n{Fore.YELLOW}{Style.BRIGHT}{heading}{Style.RESET_ALL} "
          f"{winner.name} ({format_duration(winner.duration)})", file=out)
    print_value_details(winner.value, report.n, out)

    if report.agreement is None:
        print("Only one algorithm succeeded, no cross-validation possible.", file=out)
    elif report.agreement:
        print(f"{Fore.GREEN}All valid results produced are identical.{Style.RESET_ALL}", file=out)
    else:
        pairs = ", ".join(f"{d.reference} vs {d.other}" for d in report.mismatches)
        print(f"{Fore.RED}{Style.BRIGHT}DISCREPANCY!{Style.RESET_ALL} "
              f"Results from successful algorithms differ: {pairs}", file=out)

    for d in report.exempted:
        print(f"{Style.DIM}note: {d.other} differs from {d.reference} above the closed-form "
              f"trust threshold (exempt from validation){Style.RESET_ALL}", file=out)

    if report.verdict == PARTIAL:
        timed = [o.name for o in report.failures if o.timed_out]
        if timed:
            print(f"{Fore.YELLOW}Interrupted by the deadline:{Style.RESET_ALL} {', '.join(timed)}", file=out)
