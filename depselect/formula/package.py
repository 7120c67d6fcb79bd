"""Taps, formulae, casks and the Dependent capability set."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from depselect.formula.dependency import Dependency, Requirement, runtime_visitor

if TYPE_CHECKING:
    from depselect.formula.registry import FormulaRegistry

CORE_TAP = "homebrew/core"


@dataclass
class Tap:
    """A package repository, ``owner/repo``."""
    name: str
    installed: bool = True

    @property
    def core(self) -> bool:
        return self.name == CORE_TAP


def _qualified(name: str, tap: Tap | None) -> str:
    if tap is None or tap.core:
        return name
    return f"{tap.name}/{name}"


class Dependent(abc.ABC):
    """Anything whose dependencies and requirements can be introspected."""

    name: str

    @property
    @abc.abstractmethod
    def full_name(self) -> str:
        """Name qualified with its tap, unless it comes from the core tap."""

    @property
    @abc.abstractmethod
    def deps(self) -> list[Dependency]:
        """Directly declared dependencies."""

    @property
    @abc.abstractmethod
    def requirements(self) -> list[Requirement]:
        """Directly declared requirements."""

    @abc.abstractmethod
    def any_version_installed(self) -> bool:
        """Whether some version is present on the system."""

    def recursive_dependencies(self) -> list[Dependency]:
        return Dependency.expand(self)

    def recursive_requirements(self) -> list[Requirement]:
        return Requirement.expand(self)

    def runtime_dependencies(self) -> list[Dependency]:
        return Dependency.expand(self, runtime_visitor)


class Formula(Dependent):
    """A buildable package."""

    def __init__(
        self,
        name: str,
        tap: Tap | None = None,
        deps: Iterable[Dependency] = (),
        requirements: Iterable[Requirement] = (),
        installed: bool = False,
    ):
        self.name = name
        self.tap = tap
        self._deps = list(deps)
        self._requirements = list(requirements)
        self.installed = installed

    @property
    def full_name(self) -> str:
        return _qualified(self.name, self.tap)

    @property
    def deps(self) -> list[Dependency]:
        return self._deps

    @property
    def requirements(self) -> list[Requirement]:
        return self._requirements

    def any_version_installed(self) -> bool:
        return self.installed

    def __repr__(self):
        return f"Formula({self.full_name!r})"


class Cask:
    """A prebuilt application; it has no native dependency semantics."""

    def __init__(
        self,
        token: str,
        tap: Tap | None = None,
        depends_on_formulae: Iterable[str] = (),
        depends_on_macos: str | None = None,
        depends_on_arch: str | None = None,
        installed: bool = False,
    ):
        self.token = token
        self.tap = tap
        self.depends_on_formulae = list(depends_on_formulae)
        self.depends_on_macos = depends_on_macos
        self.depends_on_arch = depends_on_arch
        self.installed = installed
        self.registry: FormulaRegistry | None = None

    @property
    def full_name(self) -> str:
        return _qualified(self.token, self.tap)

    def __repr__(self):
        return f"Cask({self.full_name!r})"
