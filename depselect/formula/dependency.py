"""Dependencies, requirements and the raw graph walks over them."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Callable, Iterable

from depselect.models import DECLARABLE_TAGS, Category, Decision

if TYPE_CHECKING:
    from depselect.formula.package import Dependent, Tap
    from depselect.formula.registry import FormulaRegistry


Visitor = Callable[["Dependent", "Dependable"], Decision]


def _parse_tags(tags: Iterable[Category | str] | None) -> tuple[Category, ...]:
    parsed: list[Category] = []
    for tag in tags or ():
        category = tag if isinstance(tag, Category) else Category(tag)
        if category not in DECLARABLE_TAGS:
            raise ValueError(f"{category.value!r} cannot be declared as a dependency tag")
        if category not in parsed:
            parsed.append(category)
    return tuple(parsed)


class Dependable(abc.ABC):
    """Tag predicates common to dependencies and requirements."""

    def __init__(self, name: str, tags: Iterable[Category | str] | None = None):
        self.name = name
        self.tags = _parse_tags(tags)

    @property
    def build(self) -> bool:
        return Category.BUILD in self.tags

    @property
    def test(self) -> bool:
        return Category.TEST in self.tags

    @property
    def optional(self) -> bool:
        return Category.OPTIONAL in self.tags

    @property
    def recommended(self) -> bool:
        return Category.RECOMMENDED in self.tags

    @property
    def required(self) -> bool:
        return not any(tag in DECLARABLE_TAGS for tag in self.tags)

    @abc.abstractmethod
    def satisfied(self) -> bool:
        """Whether the need is already met on this system."""

    def has_category(self, category: Category) -> bool:
        if category is Category.SATISFIED:
            return self.satisfied()
        if category is Category.REQUIRED:
            return self.required
        return category in self.tags

    def __eq__(self, other):
        return type(other) is type(self) and (other.name, other.tags) == (self.name, self.tags)

    def __hash__(self):
        return hash((type(self).__name__, self.name, self.tags))

    def __repr__(self):
        tags = ", ".join(t.value for t in self.tags)
        return f"{type(self).__name__}({self.name!r}, [{tags}])"


def _untapped(node: Dependable) -> bool:
    tap = node.tap if isinstance(node, Dependency) else None
    return tap is not None and not tap.installed


def default_visitor(root: Dependent) -> Visitor:
    """Skip optional nodes and test nodes below the root."""

    def visit(parent: Dependent, node: Dependable) -> Decision:
        if node.optional:
            return Decision.EXCLUDE
        if node.test and parent is not root:
            return Decision.EXCLUDE
        if _untapped(node):
            return Decision.INCLUDE_LEAF
        return Decision.INCLUDE_AND_RECURSE

    return visit


def runtime_visitor(parent: Dependent, node: Dependable) -> Decision:
    if node.build or node.test or node.optional:
        return Decision.EXCLUDE
    if _untapped(node):
        return Decision.INCLUDE_LEAF
    return Decision.INCLUDE_AND_RECURSE


class Dependency(Dependable):
    """A dependency on another formula, by short or fully qualified name."""

    def __init__(
        self,
        name: str,
        tags: Iterable[Category | str] | None = None,
        registry: FormulaRegistry | None = None,
    ):
        super().__init__(name, tags)
        self.registry = registry

    @property
    def tap(self) -> Tap | None:
        """Origin tap for ``owner/repo/formula`` names, None otherwise."""
        parts = self.name.split("/")
        if len(parts) != 3:
            return None
        tap_name = "/".join(parts[:2])
        if self.registry is None:
            from depselect.formula.package import Tap
            return Tap(tap_name, installed=False)
        return self.registry.tap(tap_name)

    def to_formula(self):
        if self.registry is None:
            from depselect.formula.registry import FormulaUnavailableError
            raise FormulaUnavailableError(self.name)
        return self.registry.get(self.name)

    def satisfied(self) -> bool:
        """Installed formula; dependencies that cannot be loaded are missing."""
        from depselect.formula.registry import FormulaUnavailableError

        if _untapped(self):
            return False
        try:
            return self.to_formula().any_version_installed()
        except FormulaUnavailableError:
            return False

    @property
    def key(self) -> str:
        """Full name of the formula this resolves to, else the declared name."""
        from depselect.formula.registry import FormulaUnavailableError

        if _untapped(self):
            return self.name
        try:
            return self.to_formula().full_name
        except FormulaUnavailableError:
            return self.name

    @classmethod
    def expand(cls, dependent: Dependent, visitor: Visitor | None = None) -> list[Dependency]:
        """Depth-first walk of ``dependent``'s dependency graph.

        ``visitor(parent, dep)`` decides for every occurrence of a dependency.
        A formula is listed once, however it is named, at the position it was
        first included. Occurrences that were excluded do not count, so the
        same formula can still be included through another parent.
        """
        from depselect.formula.package import Formula

        visit = visitor or default_visitor(dependent)
        expanded: list[Dependency] = []
        seen: set[str] = set()
        if isinstance(dependent, Formula):
            seen.update({dependent.name, dependent.full_name})

        def walk(parent: Dependent) -> None:
            for dep in parent.deps:
                key = dep.key
                if key in seen:
                    continue
                decision = visit(parent, dep)
                if decision is Decision.EXCLUDE:
                    continue
                seen.add(key)
                expanded.append(dep)
                if decision is Decision.INCLUDE_AND_RECURSE:
                    walk(dep.to_formula())

        walk(dependent)
        return expanded


class Requirement(Dependable):
    """A non-formula need such as a toolchain, OS version or architecture."""

    def __init__(
        self,
        name: str,
        tags: Iterable[Category | str] | None = None,
        satisfied: bool = False,
    ):
        super().__init__(name, tags)
        self._satisfied = satisfied

    def satisfied(self) -> bool:
        return self._satisfied

    @classmethod
    def expand(cls, dependent: Dependent, visitor: Visitor | None = None) -> list[Requirement]:
        """Requirements of ``dependent`` and of its recursive dependencies.

        Each requirement is offered to ``visitor`` with the dependent that
        declares it; the first included requirement of a name wins.
        """
        visit = visitor or default_visitor(dependent)
        owners: list[Dependent] = [dependent]
        for dep in dependent.recursive_dependencies():
            if _untapped(dep):
                continue
            owners.append(dep.to_formula())

        requirements: list[Requirement] = []
        seen: set[str] = set()
        for owner in owners:
            for req in owner.requirements:
                if req.name in seen:
                    continue
                if visit(owner, req) is Decision.EXCLUDE:
                    continue
                seen.add(req.name)
                requirements.append(req)
        return requirements
