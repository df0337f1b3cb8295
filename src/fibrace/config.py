# config.py
"""
TOML profiles.

A profile lives in <workspace>/profiles/<name>.toml. Profiles may be partial:
every key they leave out is taken from the default profile, so strict.toml
only has to list what it changes. The optional [_PROFILE_] table carries
metadata (name, description) and never reaches the runtime.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib as toml
except ImportError:
    import tomli as toml  # type: ignore

from fibrace.utility import UserInputError
from fibrace.workspace import ensure_workspace_seeded, workspace_dir

DEFAULT_PROFILE = "default"
META_TABLE = "_PROFILE_"


@dataclass
class Settings:
    data: dict[str, Any]
    name: str
    description: str
    _source: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        return self.data


def profile_path(name: str) -> Path:
    return workspace_dir() / "profiles" / f"{name}.toml"


def _read(path: Path) -> dict[str, Any]:
    try:
        return toml.loads(path.read_text(encoding="utf-8"))
    except toml.TOMLDecodeError as e:
        # Python 3.14 exposes the position as attributes; older versions
        # only put it in the message
        where = ""
        if getattr(e, "lineno", None) is not None:
            where = f" (at line {e.lineno}, column {e.colno})"
        raise UserInputError(f"reading {path.name}: {getattr(e, 'msg', e)}{where}.") from None


def _layer(base: dict[str, Any], top: dict[str, Any]) -> dict[str, Any]:
    """Recursive merge; tables merge key by key, scalars in `top` win."""
    out = deepcopy(base)
    for key, value in top.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _layer(out[key], value)
        else:
            out[key] = deepcopy(value)
    return out


def list_all_profiles() -> list[str]:
    root, _, _ = ensure_workspace_seeded()
    return sorted(p.stem for p in (root / "profiles").glob("*.toml"))


def has_profile(name: str) -> bool:
    return profile_path(name).is_file()


def load_settings(name: str | None = None) -> Settings:
    """
    Load profile `name` (default 'default') layered over the default profile.
    Raises FileNotFoundError for an unknown name and UserInputError for
    malformed TOML.
    """
    name = name or DEFAULT_PROFILE
    path = profile_path(name)
    if not path.is_file():
        raise FileNotFoundError(f"Profile '{name}' not found at {path}")

    raw = _read(path)
    meta = raw.pop(META_TABLE, None) or {}

    base_path = profile_path(DEFAULT_PROFILE)
    if name != DEFAULT_PROFILE and base_path.is_file():
        base = _read(base_path)
        base.pop(META_TABLE, None)
        raw = _layer(base, raw)

    return Settings(
        data=raw,
        name=str(meta.get("name") or path.stem),
        description=" ".join(str(meta.get("description") or "").split()) or "(no description)",
        _source=path,
    )
