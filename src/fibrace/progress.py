# src/fibrace/progress.py
from __future__ import annotations

import queue
import sys
import threading
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, NamedTuple, TextIO

from colorama import Fore, Style

if TYPE_CHECKING:
    from fibrace.channel import Channel
    from fibrace.context import CancelToken

REFRESH_INTERVAL = 0.1
_PAD = " " * 20


class ProgressEvent(NamedTuple):
    name: str
    pct: float


class ProgressReporter:
    """
    Per-task progress sender used inside strategies.

    Only whole-percent steps are forwarded so long linear loops do not flood
    the channel; values never decrease. A None channel makes it a no-op.
    """

    __slots__ = ("_channel", "_last", "name")

    def __init__(self, channel: Channel[ProgressEvent] | None, name: str):
        self._channel = channel
        self.name = name
        self._last = -1

    def update(self, pct: float) -> None:
        if self._channel is None:
            return
        step = int(pct)
        if step <= self._last:
            return
        self._last = step
        self._channel.send(ProgressEvent(self.name, min(float(pct), 100.0)))

    def done(self) -> None:
        if self._channel is not None:
            self._last = 100
            self._channel.send(ProgressEvent(self.name, 100.0))


def format_status(status: Mapping[str, float], names: Sequence[str]) -> str:
    """One overwritable line: every task side by side in fixed-width fields."""
    fields = []
    for name in names:
        pct = status.get(name, 0.0)
        field = f"{name + ':':<15} {pct:6.2f}%"
        if pct >= 100.0:
            field = f"{Fore.GREEN}{field}{Style.RESET_ALL}"
        fields.append(field)
    return "\r" + "   ".join(fields) + _PAD


class ProgressMultiplexer:
    """
    Single consumer of the shared progress channel.

    Re-renders on every event, on every tick (so the line stays alive during
    long multiplications) and once more before stopping. Stops when the
    channel is closed or the run is cancelled.
    """

    def __init__(
        self,
        channel: Channel[ProgressEvent],
        names: Sequence[str],
        *,
        cancel: CancelToken | None = None,
        interval: float = REFRESH_INTERVAL,
        stream: TextIO | None = None,
        enabled: bool = True,
    ):
        self._channel = channel
        self.names = list(names)
        self.status: dict[str, float] = {name: 0.0 for name in self.names}
        self._cancel = cancel
        self.interval = max(0.01, float(interval))
        self._stream = stream
        self.enabled = enabled
        self.renders = 0
        self._thread: threading.Thread | None = None

    # ---------- rendering ----------

    def _render(self) -> None:
        self.renders += 1
        if not self.enabled:
            return
        out = self._stream or sys.stdout
        out.write(format_status(self.status, self.names))
        out.flush()

    def _finish(self) -> None:
        self._render()
        if self.enabled:
            out = self._stream or sys.stdout
            out.write("\n")
            out.flush()

    # ---------- consumer loop ----------

    def run(self) -> None:
        while True:
            try:
                event, ok = self._channel.recv(timeout=self.interval)
            except queue.Empty:
                if self._cancel is not None and self._cancel.cancelled:
                    self._finish()
                    return
                self._render()
                continue

            if not ok:
                self._finish()
                return

            self.status[event.name] = event.pct
            self._render()

            if self._cancel is not None and self._cancel.cancelled:
                self._finish()
                return

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run, name="fibrace-progress", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
