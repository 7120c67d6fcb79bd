"""In-process package model: taps, formulae, casks, dependencies and requirements."""

from __future__ import annotations

from depselect.formula.dependency import Dependable, Dependency, Requirement
from depselect.formula.package import CORE_TAP, Cask, Dependent, Formula, Tap
from depselect.formula.registry import (
    CaskUnavailableError,
    FormulaRegistry,
    FormulaUnavailableError,
)

__all__ = [
    "CORE_TAP",
    "Cask",
    "CaskUnavailableError",
    "Dependable",
    "Dependency",
    "Dependent",
    "Formula",
    "FormulaRegistry",
    "FormulaUnavailableError",
    "Requirement",
    "Tap",
]
