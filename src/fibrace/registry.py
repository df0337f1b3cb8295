# src/fibrace/registry.py
from __future__ import annotations

import inspect
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from importlib import import_module
from importlib.resources import as_file
from importlib.resources import files as pkg_files
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from gmpy2 import mpz

    from fibrace.channel import Channel
    from fibrace.context import CancelToken
    from fibrace.pool import IntPool
    from fibrace.progress import ProgressEvent

ALL = "all"


class Strategy(Protocol):
    def __call__(
        self,
        cancel: CancelToken,
        progress: Channel[ProgressEvent] | None,
        n: int,
        pool: IntPool | None,
    ) -> mpz: ...


@dataclass(frozen=True)
class Task:
    name: str
    fn: Strategy

    @property
    def exact(self) -> bool:
        return bool(getattr(self.fn, "exact", True))


# --------------------- Discovery → Catalog ----------------------

@dataclass
class Catalog:
    funcs: dict[str, Strategy]                 # label -> strategy, in default order
    descriptions: dict[str, str] = field(default_factory=dict)
    aliases: dict[str, str] = field(default_factory=dict)   # lowercase alias -> label

    @property
    def names(self) -> list[str]:
        return list(self.funcs)

    def lookup(self, name: str) -> str | None:
        """Case-insensitive match against labels and aliases."""
        key = " ".join(name.split()).casefold()
        if not key:
            return None
        for label in self.funcs:
            if label.casefold() == key:
                return label
        return self.aliases.get(key)

    def task(self, label: str) -> Task:
        return Task(label, self.funcs[label])

    def select(self, spec: str | None) -> tuple[list[Task], list[str]]:
        """
        Resolve a comma-separated selection (or "all") into tasks.
        Returns (tasks, unknown_names); duplicates are dropped, order kept.
        """
        if spec is None or spec.strip().casefold() == ALL:
            return [self.task(label) for label in self.funcs], []

        tasks: list[Task] = []
        unknown: list[str] = []
        seen: set[str] = set()
        for raw in spec.split(","):
            name = raw.strip()
            if not name:
                continue
            label = self.lookup(name)
            if label is None:
                unknown.append(name)
                continue
            if label in seen:
                continue
            seen.add(label)
            tasks.append(self.task(label))
        return tasks, unknown


def _is_algorithm(obj) -> bool:
    return callable(obj) and getattr(obj, "__is_algorithm__", False)


def _collect_from_module(mod) -> list[Callable[..., Any]]:
    return [o for _, o in inspect.getmembers(mod) if _is_algorithm(o)]


# ---------- Decorator (only tags the function; no side effects) ----------

def algorithm(*, label: str, order: int = 100, description: str = "",
              exact: bool = True, aliases: tuple[str, ...] = ()):
    def deco(fn):
        fn.__is_algorithm__ = True
        fn.label = label
        fn.order = int(order)
        fn.description = description
        fn.exact = bool(exact)
        fn.aliases = tuple(aliases)
        return fn
    return deco


def discover() -> Catalog:
    """Import every module under fibrace.algorithms and collect tagged strategies."""
    found: list[Callable[..., Any]] = []

    pkg_dir = pkg_files("fibrace") / "algorithms"
    with as_file(pkg_dir) as real:
        for file in sorted(Path(real).glob("*.py")):
            if file.name.startswith("_"):
                continue
            mod = import_module(f"fibrace.algorithms.{file.stem}")
            found.extend(_collect_from_module(mod))

    found.sort(key=lambda fn: (fn.order, fn.label.casefold()))

    funcs: OrderedDict[str, Strategy] = OrderedDict()
    desc: dict[str, str] = {}
    aliases: dict[str, str] = {}
    for fn in found:
        if fn.label in funcs:
            raise ValueError(f"duplicate algorithm label: {fn.label!r}")
        funcs[fn.label] = fn
        desc[fn.label] = fn.description
        for alias in fn.aliases:
            aliases[alias.casefold()] = fn.label

    return Catalog(funcs=funcs, descriptions=desc, aliases=aliases)
