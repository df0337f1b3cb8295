# tests/conftest.py
from __future__ import annotations

import pytest

from fibrace import runtime
from fibrace.registry import discover


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Every test gets its own FIBRACE_HOME and a profile-less runtime."""
    monkeypatch.setenv("FIBRACE_HOME", str(tmp_path / "workspace"))
    runtime.reset()
    yield tmp_path / "workspace"
    runtime.reset()


# ---------- session bootstrap -------------------------------------------------


@pytest.fixture(scope="session")
def catalog():
    """Discover the algorithm modules once."""
    return discover()
