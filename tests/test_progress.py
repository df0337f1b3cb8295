# tests/test_progress.py
from __future__ import annotations

import io

from fibrace.channel import Channel
from fibrace.context import CancelToken
from fibrace.fmt import strip_ansi
from fibrace.progress import ProgressEvent, ProgressMultiplexer, ProgressReporter, format_status


def test_reporter_forwards_whole_percent_steps_only():
    ch = Channel()
    rep = ProgressReporter(ch, "Iterative")
    for pct in (0.1, 0.5, 0.9, 1.2, 1.9, 2.0, 1.5):
        rep.update(pct)
    rep.done()
    ch.close()
    assert [e.pct for e in ch] == [0.1, 1.2, 2.0, 100.0]


def test_reporter_without_channel_is_a_no_op():
    rep = ProgressReporter(None, "Binet")
    rep.update(50)
    rep.done()


def test_format_status_fixed_width_fields():
    line = format_status({"Fast Doubling": 100.0, "Iterative": 42.5}, ["Fast Doubling", "Iterative"])
    plain = strip_ansi(line)
    assert plain.startswith("\r")
    assert plain == (
        "\r" + f"{'Fast Doubling:':<15} 100.00%" + "   " + f"{'Iterative:':<15}  42.50%" + " " * 20
    )
    # only the finished task is highlighted
    assert line.count("\x1b[32m") == 1


def test_format_status_defaults_missing_tasks_to_zero():
    assert "  0.00%" in strip_ansi(format_status({}, ["Binet"]))


def _mux(ch, names, **kw):
    out = io.StringIO()
    mux = ProgressMultiplexer(ch, names, interval=0.01, stream=out, **kw)
    return mux, out


def test_multiplexer_tracks_events_and_stops_on_close():
    ch = Channel()
    mux, out = _mux(ch, ["A", "B"])
    assert mux.status == {"A": 0.0, "B": 0.0}
    thread = mux.start()

    ch.send(ProgressEvent("A", 30.0))
    ch.send(ProgressEvent("B", 100.0))
    ch.send(ProgressEvent("A", 100.0))
    ch.close()
    mux.join(timeout=5)

    assert not thread.is_alive()
    assert mux.status == {"A": 100.0, "B": 100.0}
    text = strip_ansi(out.getvalue())
    assert text.endswith("\n")
    assert "A:" in text and "B:" in text
    assert mux.renders >= 4


def test_multiplexer_stops_on_cancellation():
    ch = Channel()
    token = CancelToken()
    mux, out = _mux(ch, ["A"], cancel=token)
    thread = mux.start()
    token.cancel()
    mux.join(timeout=5)
    assert not thread.is_alive()
    assert out.getvalue().endswith("\n")


def test_disabled_multiplexer_writes_nothing():
    ch = Channel()
    mux, out = _mux(ch, ["A"], enabled=False)
    mux.start()
    ch.send(ProgressEvent("A", 50.0))
    ch.close()
    mux.join(timeout=5)
    assert out.getvalue() == ""
    assert mux.status["A"] == 50.0
