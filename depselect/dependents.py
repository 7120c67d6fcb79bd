"""Present formulae and casks through the same Dependent interface."""

from __future__ import annotations

from typing import Iterable

from depselect.formula import Cask, Dependency, Dependent, Requirement


class CaskDependent(Dependent):
    """A cask, seen as something with dependencies and requirements."""

    def __init__(self, cask: Cask):
        self.cask = cask
        self.name = cask.token

    @property
    def full_name(self) -> str:
        return self.cask.full_name

    @property
    def deps(self) -> list[Dependency]:
        return [
            Dependency(name, registry=self.cask.registry)
            for name in self.cask.depends_on_formulae
        ]

    @property
    def requirements(self) -> list[Requirement]:
        requirements: list[Requirement] = []
        if self.cask.depends_on_macos:
            requirements.append(Requirement(f"macos {self.cask.depends_on_macos}"))
        if self.cask.depends_on_arch:
            requirements.append(Requirement(f"arch {self.cask.depends_on_arch}"))
        return requirements

    def runtime_dependencies(self) -> list[Dependency]:
        # Casks are installed prebuilt, so everything they pull in is runtime.
        return self.recursive_dependencies()

    def any_version_installed(self) -> bool:
        return self.cask.installed

    def __repr__(self):
        return f"CaskDependent({self.full_name!r})"


def dependents(formulae_or_casks: Iterable[Dependent | Cask]) -> list[Dependent]:
    result: list[Dependent] = []
    for item in formulae_or_casks:
        if isinstance(item, Dependent):
            result.append(item)
        elif isinstance(item, Cask):
            result.append(CaskDependent(item))
        else:
            raise TypeError(f"Cannot treat {type(item).__name__} as a dependent")
    return result
