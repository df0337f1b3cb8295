from __future__ import annotations

import os
import shutil
from importlib.resources import as_file
from importlib.resources import files as pkg_files
from pathlib import Path

PROFILES = "profiles"


def workspace_dir() -> Path:
    """$FIBRACE_HOME, or ~/Documents/Fibrace."""
    env = os.environ.get("FIBRACE_HOME")
    base = Path(env).expanduser() if env else Path.home() / "Documents" / "Fibrace"
    return base.resolve()


def _packaged_profiles(src: Path) -> list[Path]:
    # editor backups and dotfiles never leave the package
    return sorted(
        p for p in src.glob("*.toml")
        if p.is_file() and not p.name.startswith(".") and not p.name.endswith("~")
    )


def seed_workspace(*, overwrite: bool = False) -> tuple[Path, dict[str, int]]:
    """
    Copy the packaged profiles into the user's workspace.

    overwrite=False → copy-if-missing, user edits survive
    overwrite=True  → restore the packaged versions

    Returns: (workspace_path, {"profiles": files_copied})
    """
    root = workspace_dir()
    dst = root / PROFILES
    dst.mkdir(parents=True, exist_ok=True)

    copied = 0
    with as_file(pkg_files("fibrace") / PROFILES) as real:
        for p in _packaged_profiles(Path(real)):
            target = dst / p.name
            if overwrite or not target.exists():
                shutil.copy2(p, target)
                copied += 1

    return root, {PROFILES: copied}


def ensure_workspace_seeded() -> tuple[Path, bool, dict[str, int]]:
    root, copied = seed_workspace(overwrite=False)
    return root, any(copied.values()), copied
