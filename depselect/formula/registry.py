"""Name lookup for formulae, casks and taps."""

from __future__ import annotations

import logging

from depselect.formula.package import Cask, Formula, Tap

logger = logging.getLogger(__name__)


class FormulaUnavailableError(LookupError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f'No available formula with the name "{name}".')


class CaskUnavailableError(LookupError):
    def __init__(self, token: str):
        self.token = token
        super().__init__(f'Cask "{token}" is unavailable.')


class FormulaRegistry:
    """Resolves names declared by dependencies to loaded formulae."""

    def __init__(self):
        self._formulae: dict[str, Formula] = {}
        self._casks: dict[str, Cask] = {}
        self._taps: dict[str, Tap] = {}

    def add_tap(self, tap: Tap) -> None:
        self._taps[tap.name] = tap

    def tap(self, name: str) -> Tap:
        """Known tap by name; unknown taps are reported as not installed."""
        return self._taps.get(name) or Tap(name, installed=False)

    def add_formula(self, formula: Formula) -> None:
        for dep in formula.deps:
            if dep.registry is None:
                dep.registry = self
        self._formulae[formula.full_name] = formula
        # Core formulae win short-name lookups.
        if formula.name not in self._formulae or formula.full_name == formula.name:
            self._formulae[formula.name] = formula
        logger.debug("Registered formula %s", formula.full_name)

    def add_cask(self, cask: Cask) -> None:
        cask.registry = self
        self._casks[cask.full_name] = cask
        self._casks.setdefault(cask.token, cask)

    def get(self, name: str) -> Formula:
        try:
            return self._formulae[name]
        except KeyError:
            raise FormulaUnavailableError(name) from None

    def get_cask(self, token: str) -> Cask:
        try:
            return self._casks[token]
        except KeyError:
            raise CaskUnavailableError(token) from None

    def resolve(self, name: str) -> Formula | Cask:
        """Formula by that name, else a cask with that token."""
        if name in self._formulae:
            return self._formulae[name]
        if name in self._casks:
            return self._casks[name]
        raise FormulaUnavailableError(name)

    @property
    def formulae(self) -> list[Formula]:
        return list({id(f): f for f in self._formulae.values()}.values())

    def __contains__(self, name: str) -> bool:
        return name in self._formulae or name in self._casks
