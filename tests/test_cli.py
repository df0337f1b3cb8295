# tests/test_cli.py
from __future__ import annotations

import pytest
from gmpy2 import mpz

import fibrace.cli as cli
from fibrace.fmt import strip_ansi
from fibrace.registry import Catalog, algorithm, discover
from fibrace.utility import UserInputError


@pytest.fixture(autouse=True)
def no_stream_wrapping(monkeypatch):
    # colorama would replace sys.stdout underneath capsys
    monkeypatch.setattr(cli, "colorama_init", lambda *a, **k: None)


def _run(capsys, *argv):
    code = cli.main(list(argv))
    out, err = capsys.readouterr()
    return code, strip_ansi(out), strip_ansi(err)


def test_small_index_end_to_end(capsys):
    code, out, err = _run(capsys, "-n", "20", "--no-progress", "--timeout", "30s")
    assert code == cli.EXIT_OK
    assert "ORDERED RESULTS" in out
    assert "Value = 6765" in out
    assert "All valid results produced are identical." in out
    assert "Calculating F(20)" in err
    assert "Calculations finished." in err


def test_large_value_is_shown_in_scientific_notation(capsys):
    code, out, _ = _run(capsys, "-n", "1000", "--no-progress", "--algorithms", "fast,matrix")
    assert code == cli.EXIT_OK
    assert "Number of digits in F(1000): 209" in out
    assert "4.34665577e+208" in out


def test_list_algorithms(capsys):
    code, out, _ = _run(capsys, "--list")
    assert code == cli.EXIT_OK
    for label in ("Fast Doubling", "Matrix 2x2", "Binet", "Iterative"):
        assert label in out


def test_negative_index_is_a_usage_error(capsys):
    code, _, err = _run(capsys, "--n=-5", "--no-progress")
    assert code == cli.EXIT_USAGE
    assert "Index n must be greater than or equal to 0" in err


def test_unknown_algorithms_are_skipped(capsys):
    code, _, err = _run(capsys, "-n", "30", "--no-progress", "--algorithms", "fast,bogus")
    assert code == cli.EXIT_OK
    assert "Algorithm 'bogus' not recognized" in err
    assert "Algorithms to run: Fast Doubling" in err


def test_nothing_selected_is_a_usage_error(capsys):
    code, _, err = _run(capsys, "-n", "30", "--no-progress", "--algorithms", "bogus")
    assert code == cli.EXIT_USAGE
    assert "No algorithms selected" in err


def test_deadline_without_result_exits_nonzero(capsys):
    code, out, err = _run(capsys, "-n", "100000", "--no-progress", "--timeout", "0")
    assert code == cli.EXIT_NO_RESULT
    assert "No algorithm finished before the deadline." in out
    assert "interrupted by the global timeout" in err


def test_unknown_profile_is_a_usage_error(capsys):
    code, _, err = _run(capsys, "--profile", "nope", "--no-progress")
    assert code == cli.EXIT_USAGE
    assert "Unknown profile: 'nope'" in err


def test_debug_prints_trace(capsys, monkeypatch):
    # keep faulthandler and the global excepthooks out of the test process
    monkeypatch.setattr(cli, "_install_loud_error_handlers", lambda debug: None)
    code, _, err = _run(capsys, "-n", "10", "--no-progress", "--debug", "--algorithms", "iter")
    assert code == cli.EXIT_OK
    assert "[debug] active profile: default" in err
    assert "[debug] Iterative" in err


@pytest.mark.parametrize(
    "text,seconds",
    [("90", 90.0), ("1.5s", 1.5), ("500ms", 0.5), ("2m", 120.0), ("1h", 3600.0), (60.0, 60.0)],
    ids=["bare", "seconds", "millis", "minutes", "hours", "float"],
)
def test_parse_duration(text, seconds):
    assert cli.parse_duration(text) == pytest.approx(seconds)


@pytest.mark.parametrize("text", ["soon", "-3", "1d", ""], ids=["word", "negative", "unit", "empty"])
def test_parse_duration_rejects(text):
    with pytest.raises(UserInputError):
        cli.parse_duration(text)


def test_disagreeing_algorithms_exit_with_mismatch(capsys, monkeypatch):
    @algorithm(label="Liar", aliases=("liar",))
    def liar(cancel, progress, n, pool):
        return mpz(42)

    real = discover()
    rigged = Catalog({**real.funcs, "Liar": liar}, real.descriptions, {**real.aliases, "liar": "Liar"})
    monkeypatch.setattr(cli, "discover", lambda: rigged)

    code, out, err = _run(capsys, "-n", "20", "--no-progress", "--algorithms", "fast,liar")
    assert code == cli.EXIT_MISMATCH
    assert "DISCREPANCY!" in out
    assert "validation failed" in err
