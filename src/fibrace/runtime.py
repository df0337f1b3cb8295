# runtime.py
from __future__ import annotations

import sys
from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import Any

from colorama import Fore, Style

_MISSING = object()


@dataclass
class Runtime:
    """Per-context state of one fibrace invocation: active profile plus flags."""

    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False          # per-task trace lines, loud tracebacks
    show_progress: bool = True   # live status line while racing

    def apply(self, settings: Any) -> None:
        """Install a loaded profile (config.Settings) or a plain nested dict."""
        if isinstance(settings, Mapping):
            self.settings = dict(settings)
            self.profile_name = "custom"
        else:
            self.settings = dict(settings.as_dict())
            self.profile_name = settings.name

        for key, attr in (("BEHAVIOUR.DEBUG", "debug"), ("DISPLAY.PROGRESS", "show_progress")):
            flag = self.get(key)
            if isinstance(flag, bool):
                setattr(self, attr, flag)

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup, e.g. 'VALIDATION.CLOSED_FORM_STRICT_MAX_N'."""
        node: Any = self.settings
        for part in key.split(".") if key else ():
            node = node.get(part, _MISSING) if isinstance(node, Mapping) else _MISSING
            if node is _MISSING:
                return default
        return default if node is self.settings else node


# --- Context management ---

_current_runtime: ContextVar[Runtime | None] = ContextVar("fibrace_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = reset()
    return rt


def reset() -> Runtime:
    """Install a fresh Runtime (profile-less defaults) in the current context."""
    rt = Runtime()
    _current_runtime.set(rt)
    return rt


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


# ---- Dependency check --------------------------------------------------------

def ensure_runtime_deps(strict: bool = True) -> bool:
    """
    Report missing third-party modules before anything imports them.
    Returns False (strict) or True (lenient) when something is missing.
    """
    required = {"gmpy2": "gmpy2"}
    if sys.version_info < (3, 11):
        required["tomli"] = "tomli"
    missing = sorted(dist for mod, dist in required.items() if find_spec(mod) is None)
    if not missing:
        return True

    print(
        f"{Fore.RED}{Style.BRIGHT}fibrace cannot start, missing: {', '.join(missing)}{Style.RESET_ALL}\n"
        f"Install with: {Fore.YELLOW}pip install {' '.join(missing)}{Style.RESET_ALL}",
        file=sys.stderr,
    )
    return not strict
