"""Select the parts of a package's dependency graph that matter for an operation."""

from __future__ import annotations

__version__ = "0.1.0"

from depselect.dependents import CaskDependent, dependents
from depselect.expansion import CacheKey, ExpansionCache, recursive_includes
from depselect.models import Category, Decision, RuleSet, SelectionFlags
from depselect.rules import classify
from depselect.selection import select_includes

__all__ = [
    "CacheKey",
    "CaskDependent",
    "Category",
    "Decision",
    "ExpansionCache",
    "RuleSet",
    "SelectionFlags",
    "classify",
    "dependents",
    "recursive_includes",
    "select_includes",
]
