# tests/test_config.py
from __future__ import annotations

import pytest

import fibrace.config as CONFIG
from fibrace.runtime import APPLY, CFG
from fibrace.runtime import current as rt_current
from fibrace.utility import UserInputError
from fibrace.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir


def test_workspace_follows_environment(isolated_workspace):
    assert workspace_dir() == isolated_workspace.resolve()


def test_seeding_copies_packaged_profiles_once():
    root, seeded, copied = ensure_workspace_seeded()
    assert seeded
    assert copied["profiles"] >= 2
    assert (root / "profiles" / "default.toml").is_file()

    _, seeded_again, _ = ensure_workspace_seeded()
    assert not seeded_again


def test_seeding_keeps_user_edits_unless_forced():
    root, _, _ = ensure_workspace_seeded()
    path = root / "profiles" / "default.toml"
    path.write_text('[RUN]\nN = 5\n', encoding="utf-8")

    ensure_workspace_seeded()
    assert CONFIG.load_settings("default").data["RUN"]["N"] == 5

    seed_workspace(overwrite=True)
    assert CONFIG.load_settings("default").data["RUN"]["N"] == 100000


def test_packaged_profiles_are_listed():
    names = CONFIG.list_all_profiles()
    assert "default" in names
    assert "strict" in names


def test_default_profile_values():
    ensure_workspace_seeded()
    settings = CONFIG.load_settings(None)
    assert settings.name == "default"
    assert "_PROFILE_" not in settings.data
    APPLY(settings)
    assert CFG("RUN.N") == 100000
    assert CFG("RUN.ALGORITHMS") == "all"
    assert CFG("VALIDATION.CLOSED_FORM_STRICT_MAX_N") == 10000
    assert CFG("ALGORITHMS.BINET_GUARD_BITS") == 20
    assert CFG("NO.SUCH.KEY", "fallback") == "fallback"


def test_strict_profile_syncs_runtime_flags():
    ensure_workspace_seeded()
    APPLY(CONFIG.load_settings("strict"))
    rt = rt_current()
    assert rt.profile_name == "strict"
    assert rt.show_progress is False
    assert CFG("VALIDATION.CLOSED_FORM_STRICT_MAX_N") == -1


def test_missing_profile():
    ensure_workspace_seeded()
    assert not CONFIG.has_profile("nope")
    with pytest.raises(FileNotFoundError):
        CONFIG.load_settings("nope")


def test_broken_toml_is_a_user_error():
    root, _, _ = ensure_workspace_seeded()
    (root / "profiles" / "bad.toml").write_text("[RUN\nN = 1\n", encoding="utf-8")
    with pytest.raises(UserInputError, match=r"bad\.toml.*line 1"):
        CONFIG.load_settings("bad")


def test_partial_profile_is_layered_over_default():
    ensure_workspace_seeded()
    data = CONFIG.load_settings("strict").data
    # strict.toml does not set these; they come from default.toml
    assert data["RUN"]["N"] == 100000
    assert data["DISPLAY"]["VALUE_DIGITS"] == 20
    # ...while its own keys win
    assert data["RUN"]["TIMEOUT"] == 300.0
    assert data["ALGORITHMS"]["BINET_GUARD_BITS"] == 64
