"""Recursive dependency selection with per-invocation memoization."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, Union

from depselect.formula import Dependable, Dependency, Dependent, Requirement
from depselect.models import Category, Decision, RuleSet

logger = logging.getLogger(__name__)

GraphKind = Union[type[Dependency], type[Requirement]]


@dataclass(frozen=True)
class CacheKey:
    kind: str
    includes: frozenset[Category]
    ignores: frozenset[Category]
    recursive_ignores: frozenset[Category]
    skip: frozenset[str]

    @classmethod
    def build(cls, kind: GraphKind, rules: RuleSet, skip: frozenset[str]) -> CacheKey:
        """Key for an already normalized rule set."""
        return cls(
            kind=kind.__name__,
            includes=frozenset(rules.includes),
            ignores=frozenset(rules.ignores),
            recursive_ignores=frozenset(rules.recursive_ignores),
            skip=skip,
        )


def _root_id(root: Dependent) -> tuple[str, str]:
    return type(root).__name__, root.full_name


class ExpansionCache:
    """Expansion results for one command invocation.

    Entries are never evicted; create a new cache (or call ``clear``) when the
    underlying graph changes. Only one expansion per key runs at a time.
    """

    def __init__(self):
        self._entries: dict[CacheKey, dict[tuple[str, str], tuple[Dependable, ...]]] = {}
        self._key_locks: dict[CacheKey, threading.Lock] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.traversals = 0

    def _key_lock(self, key: CacheKey) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())

    def fetch(
        self,
        key: CacheKey,
        root: Dependent,
        compute: Callable[[], list[Dependable]],
    ) -> list[Dependable]:
        root_id = _root_id(root)
        with self._key_lock(key):
            by_root = self._entries.setdefault(key, {})
            if root_id in by_root:
                self.hits += 1
                logger.debug("Expansion cache hit for %s", root.full_name)
                return list(by_root[root_id])

            self.misses += 1
            self.traversals += 1
            logger.debug("Expansion cache miss for %s", root.full_name)
            result = tuple(compute())
            by_root[root_id] = result
            return list(result)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._key_locks.clear()

    def __len__(self) -> int:
        return sum(len(by_root) for by_root in self._entries.values())


def recursive_includes(
    kind: GraphKind,
    root_dependent: Dependent,
    rules: RuleSet,
    skip: Iterable[str] | None = None,
    cache: ExpansionCache | None = None,
) -> list[Dependable]:
    """Select ``root_dependent``'s transitive dependencies or requirements.

    Every occurrence is evaluated against ``rules`` relative to the dependent
    declaring it. Categories in ``recursive_ignores`` only count for nodes
    declared by the root. Indirect test dependencies are always ignored.
    Dependencies from a tap that is not installed are listed but not
    expanded, since their own dependencies cannot be loaded.
    """
    if kind is not Dependency and kind is not Requirement:
        raise ValueError(f"Invalid class argument: {kind!r}")

    rules = rules.normalized()
    skip = frozenset(skip or ())

    def visit(dependent: Dependent, dep: Dependable) -> Decision:
        if dep.name in skip:
            return Decision.EXCLUDE
        if any(dep.has_category(ignore) for ignore in rules.ignores):
            return Decision.EXCLUDE
        if not any(
            dep.has_category(include)
            for include in rules.includes
            if include not in rules.recursive_ignores or dependent is root_dependent
        ):
            return Decision.EXCLUDE

        if kind is Dependency and dep.tap is not None and not dep.tap.installed:
            logger.debug("%s is from untapped %s, not expanding it", dep.name, dep.tap.name)
            return Decision.INCLUDE_LEAF
        return Decision.INCLUDE_AND_RECURSE

    def compute() -> list[Dependable]:
        return kind.expand(root_dependent, visit)

    if cache is None:
        return compute()
    return cache.fetch(CacheKey.build(kind, rules, skip), root_dependent, compute)
