"""Value types shared by the classifier, the expander and the flat selector."""

from __future__ import annotations

import enum
from dataclasses import dataclass, fields
from typing import Any


class Category(enum.Enum):
    REQUIRED = "required"
    RECOMMENDED = "recommended"
    OPTIONAL = "optional"
    BUILD = "build"
    TEST = "test"
    # Status predicate, never a declared tag. Only meaningful in ignores.
    SATISFIED = "satisfied"


# Tags a dependency may declare.
DECLARABLE_TAGS = frozenset({
    Category.RECOMMENDED,
    Category.OPTIONAL,
    Category.BUILD,
    Category.TEST,
})


class Decision(enum.Enum):
    """What the expansion walker does with a visited node."""
    EXCLUDE = "exclude"
    INCLUDE_LEAF = "include_leaf"
    INCLUDE_AND_RECURSE = "include_and_recurse"


def _as_categories(values) -> tuple[Category, ...]:
    return tuple(Category(v) if not isinstance(v, Category) else v for v in values or ())


@dataclass(frozen=True)
class RuleSet:
    """The (includes, ignores, recursive_ignores) triple governing selection."""
    includes: tuple[Category, ...] = (Category.REQUIRED, Category.RECOMMENDED)
    ignores: tuple[Category, ...] = ()
    recursive_ignores: tuple[Category, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "includes", _as_categories(self.includes))
        object.__setattr__(self, "ignores", _as_categories(self.ignores))
        object.__setattr__(self, "recursive_ignores", _as_categories(self.recursive_ignores))

    def normalized(self) -> RuleSet:
        """Copy with indirect test dependencies always ignored."""
        if Category.TEST in self.recursive_ignores:
            return self
        return RuleSet(
            includes=self.includes,
            ignores=self.ignores,
            recursive_ignores=self.recursive_ignores + (Category.TEST,),
        )


@dataclass
class SelectionFlags:
    """Caller flags, usually straight from the command line."""
    include_build: bool = False
    include_test: bool = False
    include_optional: bool = False
    skip_recommended: bool = False
    only_missing: bool = False
    # Build/test dependencies of the root only, not of its dependencies.
    direct_build: bool = False
    direct_test: bool = False

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> SelectionFlags:
        valid_fields = {f.name for f in fields(cls)}
        return cls(**{k: bool(v) for k, v in (data or {}).items() if k in valid_fields})

    def merged(self, other: SelectionFlags) -> SelectionFlags:
        """Flags set in either bundle."""
        return SelectionFlags(**{
            f.name: getattr(self, f.name) or getattr(other, f.name) for f in fields(self)
        })

