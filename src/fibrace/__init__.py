from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("fibrace")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .channel import Channel
from .context import CancelToken
from .orchestrator import Outcome, race, run_tasks
from .pool import IntPool
from .reconcile import Reconciliation, ValidationPolicy, reconcile
from .registry import Task, discover
from .runtime import APPLY, CFG
from .utility import Cancelled, InvalidIndex, ValidationMismatch

__all__ = [
    "APPLY",
    "CFG",
    "CancelToken",
    "Cancelled",
    "Channel",
    "IntPool",
    "InvalidIndex",
    "Outcome",
    "Reconciliation",
    "Task",
    "ValidationMismatch",
    "ValidationPolicy",
    "__version__",
    "discover",
    "race",
    "reconcile",
    "run_tasks",
]
