# src/fibrace/orchestrator.py
from __future__ import annotations

import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from contextvars import copy_context
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

from fibrace.channel import Channel
from fibrace.context import CancelToken
from fibrace.pool import IntPool
from fibrace.progress import REFRESH_INTERVAL, ProgressEvent, ProgressMultiplexer
from fibrace.reconcile import Reconciliation, ValidationPolicy, reconcile
from fibrace.utility import Cancelled

if TYPE_CHECKING:
    from gmpy2 import mpz

    from fibrace.registry import Task


# ---------- Data models -------------------------------------------------------

@dataclass(frozen=True)
class Outcome:
    name: str
    value: mpz | None
    error: BaseException | None
    duration: float          # seconds, measured by the worker itself
    exact: bool = True       # False for strategies with a floating-point trust boundary

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @property
    def timed_out(self) -> bool:
        return isinstance(self.error, Cancelled) and self.error.timed_out

    @property
    def cancelled(self) -> bool:
        return isinstance(self.error, Cancelled)

    @property
    def status(self) -> str:
        if self.ok:
            return "OK"
        if self.timed_out:
            return "Timeout"
        if self.cancelled:
            return "Cancelled"
        return f"Error: {self.error}"


# ---------- Helpers -----------------------------------------------------------

def task_names(tasks: Sequence[Task]) -> list[str]:
    """Names in launch order; they must be unique within a run."""
    names = [t.name for t in tasks]
    if not names:
        raise ValueError("no tasks to run")
    dupes = sorted({nm for nm in names if names.count(nm) > 1})
    if dupes:
        raise ValueError(f"duplicate task names: {', '.join(dupes)}")
    return names


def _run_one(
    task: Task,
    n: int,
    cancel: CancelToken,
    pool: IntPool,
    progress: Channel[ProgressEvent] | None,
    results: Channel[Outcome],
) -> None:
    """Worker body: time one strategy call and emit exactly one Outcome."""
    value = None
    error: BaseException | None = None
    t0 = time.perf_counter()
    try:
        value = task.fn(cancel, progress, n, pool)
    except Exception as e:
        # confined to this task's outcome; siblings keep running
        error = e
    dt = time.perf_counter() - t0
    results.send(Outcome(task.name, value, error, dt, task.exact))


# ---------- Main API ----------------------------------------------------------

def run_tasks(
    tasks: Sequence[Task],
    n: int,
    *,
    cancel: CancelToken,
    pool: IntPool,
    progress: Channel[ProgressEvent] | None,
    results: Channel[Outcome],
) -> None:
    """
    Run every task on its own worker thread and block until all have exited.

    Workers run in a copy of the caller's context, so the active profile
    (CFG) is visible inside strategies.
    Both channels are closed here, exactly once, after the join barrier.
    An interrupt in the calling thread cancels the shared token first so the
    join still completes promptly.
    """
    task_names(tasks)
    executor = ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="fibrace-worker")
    try:
        futures = [
            executor.submit(copy_context().run, _run_one, t, n, cancel, pool, progress, results)
            for t in tasks
        ]
        wait(futures)
        for fut in futures:
            fut.result()  # surfaces internal errors (e.g. ChannelClosed), not strategy failures
    except BaseException:
        cancel.cancel()
        raise
    finally:
        executor.shutdown(wait=True)
        if progress is not None:
            progress.close()
        results.close()


def race(
    n: int,
    tasks: Sequence[Task],
    *,
    timeout: float | None = None,
    cancel: CancelToken | None = None,
    pool: IntPool | None = None,
    show_progress: bool = True,
    refresh: float = REFRESH_INTERVAL,
    stream: TextIO | None = None,
    policy: ValidationPolicy | None = None,
) -> Reconciliation:
    """
    Race `tasks` for F(n) under one deadline and reconcile the outcomes.

      * timeout=None and cancel=None → no deadline
      * a live status line is drawn on `stream` unless show_progress=False
      * the reconciler drains the completion channel after the join
    """
    names = task_names(tasks)
    if cancel is None:
        cancel = CancelToken.with_timeout(timeout) if timeout is not None else CancelToken()
    if pool is None:
        pool = IntPool()

    results: Channel[Outcome] = Channel()
    progress: Channel[ProgressEvent] | None = Channel() if show_progress else None
    mux: ProgressMultiplexer | None = None
    if progress is not None:
        mux = ProgressMultiplexer(progress, names, cancel=cancel, interval=refresh, stream=stream)
        mux.start()

    try:
        run_tasks(tasks, n, cancel=cancel, pool=pool, progress=progress, results=results)
    finally:
        if mux is not None:
            mux.join()

    return reconcile(results, n, policy=policy)
