"""Single-level filtering of an already materialized dependency list."""

from __future__ import annotations

from typing import Iterable, TypeVar

from depselect.formula import Dependable
from depselect.models import Category

D = TypeVar("D", bound=Dependable)


def select_includes(
    dependables: Iterable[D],
    ignores: Iterable[Category],
    includes: Iterable[Category],
    skip: Iterable[str] | None = None,
) -> list[D]:
    """Keep the dependables matching an include and no ignore, in input order."""
    ignores = tuple(ignores)
    includes = tuple(includes)
    skip = frozenset(skip or ())

    selected: list[D] = []
    for dep in dependables:
        if dep.name in skip:
            continue
        if any(dep.has_category(ignore) for ignore in ignores):
            continue
        if any(dep.has_category(include) for include in includes):
            selected.append(dep)
    return selected
