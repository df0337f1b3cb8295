# src/fibrace/cli.py

"""
fibrace - race several Fibonacci algorithms against one deadline

Description:
    Computes F(n) concurrently with Fast Doubling, 2x2 matrix exponentiation,
    Binet's formula and plain iteration, shows their live progress on one
    line, then ranks the results and cross-validates them.

usage: see fibrace -h
"""

from __future__ import annotations

import argparse
import faulthandler
import os
import re
import sys
import threading
import traceback

from colorama import Fore, Style
from colorama import init as colorama_init

from fibrace import __version__ as _ver
from fibrace.display import print_results
from fibrace.fmt import format_duration
from fibrace.orchestrator import race
from fibrace.reconcile import ValidationPolicy
from fibrace.registry import discover
from fibrace.runtime import APPLY, CFG, ensure_runtime_deps
from fibrace.runtime import current as _rt_current
from fibrace.utility import UserInputError, ValidationMismatch, flatten_dotted, typename
from fibrace.workspace import ensure_workspace_seeded, workspace_dir

EXIT_OK = 0
EXIT_NO_RESULT = 1
EXIT_USAGE = 2
EXIT_MISMATCH = 3

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*(ms|s|m|h)?\s*$", re.IGNORECASE)
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def _install_loud_error_handlers(debug: bool) -> None:
    if not debug:
        return
    faulthandler.enable()

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook

    # worker threads must never fail silently
    def _thread_excepthook(args):
        sys.stderr.write(f"\n[UNCAUGHT THREAD EXCEPTION in {getattr(args.thread, 'name', '?')}]\n")
        traceback.print_exception(args.exc_type, args.exc_value, args.exc_traceback, file=sys.stderr)
        sys.stderr.flush()
    threading.excepthook = _thread_excepthook


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if not msg.startswith("Error:"):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _note(msg: str) -> None:
    print(f"{Style.DIM}[fibrace]{Style.RESET_ALL} {msg}", file=sys.stderr)


def _warn(msg: str) -> None:
    print(f"{Fore.YELLOW}{Style.BRIGHT}Warning:{Style.RESET_ALL} {msg}", file=sys.stderr)


def parse_duration(text: str | float | int) -> float:
    """'90', '1.5s', '500ms', '2m', '1h' → seconds."""
    if isinstance(text, (int, float)):
        seconds = float(text)
    else:
        m = _DURATION_RE.match(str(text))
        if not m:
            raise UserInputError(f"Invalid duration: {text!r} (use e.g. 30s, 500ms, 2m).")
        seconds = float(m.group(1)) * _UNIT_SECONDS[(m.group(2) or "s").lower()]
    if seconds < 0:
        raise UserInputError(f"Invalid duration: {text!r} must not be negative.")
    return seconds


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fibrace",
        description="Compute F(n) with competing algorithms and cross-validate the results",
    )
    p.add_argument("-n", "--n", type=int, default=None, dest="n",
                   help="index of the Fibonacci term (non-negative; profile RUN.N by default)")
    p.add_argument("--timeout", default=None,
                   help="global deadline, e.g. 30s, 2m, 500ms (profile RUN.TIMEOUT by default)")
    p.add_argument("--algorithms", default=None,
                   help="comma-separated list, e.g. fast,matrix,binet,iterative; 'all' runs all")
    p.add_argument("--profile", default=None, help="profile name from the workspace (default: 'default')")
    p.add_argument("--no-progress", action="store_true", help="do not draw the live progress line")
    p.add_argument("--list", action="store_true", help="list the available algorithms and exit")
    p.add_argument("--debug", action="store_true", help="per-algorithm trace and full tracebacks")
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")
    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return EXIT_USAGE
    except KeyboardInterrupt:
        print("\nAborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        debug = "--debug" in (argv if argv is not None else sys.argv)
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return EXIT_NO_RESULT


def _load_profile(name: str | None, debug: bool) -> None:
    import fibrace.config as CONFIG

    ensure_workspace_seeded()
    profile_name = name or "default"
    if not CONFIG.has_profile(profile_name):
        if name:
            raise UserInputError(
                f"Unknown profile: '{name}'. Available profiles: {', '.join(CONFIG.list_all_profiles())}"
            )
        return  # no default profile in the workspace: built-in defaults

    selected = CONFIG.load_settings(profile_name)
    APPLY(selected)

    if not os.environ.get("PYTHONINTMAXSTRDIGITS"):
        sys.set_int_max_str_digits(int(CFG("BEHAVIOUR.MAX_DIGITS", 1_000_000)))

    if debug:
        print(f"[debug] workspace: {workspace_dir()}", file=sys.stderr)
        print(f"[debug] active profile: {selected.name} ({selected._source})", file=sys.stderr)
        flat = flatten_dotted(_rt_current().settings)
        for k in sorted(flat, key=str.lower):
            v = flat[k]
            print(f"        {k:.<50} {v!r} ({typename(v)})", file=sys.stderr)
        print(file=sys.stderr)


def _report_failures(report) -> None:
    """One stderr line per failed algorithm, timeouts told apart from errors."""
    for o in report.failures:
        took = format_duration(o.duration)
        if o.timed_out:
            _warn(f"Task '{o.name}' was interrupted by the global timeout after {took}")
        elif o.cancelled:
            _warn(f"Task '{o.name}' was cancelled after {took}")
        else:
            print(f"{Fore.RED}Error{Style.RESET_ALL} for task '{o.name}': {o.error} (duration: {took})",
                  file=sys.stderr)


# ---- main ----
def _main_impl(argv=None) -> int:
    colorama_init()

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = _rt_current()
    rt.debug = bool(args.debug)
    _install_loud_error_handlers(args.debug)

    if not ensure_runtime_deps(strict=True):
        return EXIT_NO_RESULT

    _load_profile(args.profile, args.debug)
    debug = bool(args.debug or rt.debug)

    catalog = discover()
    if args.list:
        for name in catalog.names:
            exact = "" if catalog.funcs[name].exact else "  (closed form, inexact at large n)"
            print(f"  {name:<16} {catalog.descriptions.get(name, '')}{exact}")
        return EXIT_OK

    n = args.n if args.n is not None else int(CFG("RUN.N", 100_000))
    if n < 0:
        raise UserInputError(f"Index n must be greater than or equal to 0. Received: {n}")
    timeout = parse_duration(args.timeout if args.timeout is not None else CFG("RUN.TIMEOUT", 60.0))

    tasks, unknown = catalog.select(args.algorithms or CFG("RUN.ALGORITHMS", "all"))
    for name in unknown:
        _warn(f"Algorithm '{name}' not recognized. Skipping.")
    if not tasks:
        raise UserInputError("No algorithms selected or recognized to run. Check --algorithms.")

    _note(f"Calculating F({n}) with a timeout of {format_duration(timeout)}...")
    _note(f"Algorithms to run: {', '.join(t.name for t in tasks)}")

    show_progress = rt.show_progress and not args.no_progress
    report = race(
        n,
        tasks,
        timeout=timeout,
        show_progress=show_progress,
        refresh=float(CFG("DISPLAY.REFRESH_INTERVAL", 0.1)),
        policy=ValidationPolicy.from_config(),
    )
    _note("Calculations finished.")

    if debug:
        for o in report.outcomes:
            tag = "exact" if o.exact else "closed-form"
            print(f"[debug] {o.name:<16} {format_duration(o.duration):>12}  {o.status}  ({tag})",
                  file=sys.stderr)

    _report_failures(report)
    print_results(report)

    try:
        report.raise_for_mismatch()
    except ValidationMismatch as e:
        _print_user_error(f"validation failed: {e}")
        return EXIT_MISMATCH

    return EXIT_OK if report.winner is not None else EXIT_NO_RESULT


if __name__ == "__main__":
    raise SystemExit(main())
