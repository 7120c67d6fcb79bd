"""Load a package graph from a YAML manifest."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from depselect.formula import (
    CORE_TAP,
    Cask,
    Dependency,
    Formula,
    FormulaRegistry,
    Requirement,
    Tap,
)
from depselect.models import Category

logger = logging.getLogger(__name__)


class ManifestError(ValueError):
    """The manifest could not be read or does not describe a valid graph."""


class TapSpec(BaseModel):
    name: str
    installed: bool = True


class DependencySpec(BaseModel):
    name: str
    tags: list[Category] = []


class RequirementSpec(BaseModel):
    name: str
    tags: list[Category] = []
    satisfied: bool = False


class FormulaSpec(BaseModel):
    name: str
    tap: str | None = None
    installed: bool = False
    dependencies: list[DependencySpec] = []
    requirements: list[RequirementSpec] = []

    @field_validator("dependencies", "requirements", mode="before")
    @classmethod
    def _expand_bare_names(cls, value: Any) -> Any:
        # ``- zlib`` is shorthand for ``- {name: zlib}``
        if isinstance(value, list):
            return [{"name": v} if isinstance(v, str) else v for v in value]
        return value


class CaskDependsOn(BaseModel):
    formula: list[str] = []
    macos: str | None = None
    arch: str | None = None


class CaskSpec(BaseModel):
    token: str
    tap: str | None = None
    installed: bool = False
    depends_on: CaskDependsOn = CaskDependsOn()


class Manifest(BaseModel):
    taps: list[TapSpec] = []
    formulae: list[FormulaSpec] = []
    casks: list[CaskSpec] = []

    def build_registry(self) -> FormulaRegistry:
        registry = FormulaRegistry()
        registry.add_tap(Tap(CORE_TAP))
        for spec in self.taps:
            registry.add_tap(Tap(spec.name, installed=spec.installed))

        for spec in self.formulae:
            registry.add_formula(Formula(
                spec.name,
                tap=registry.tap(spec.tap) if spec.tap else None,
                deps=[Dependency(d.name, d.tags) for d in spec.dependencies],
                requirements=[
                    Requirement(r.name, r.tags, satisfied=r.satisfied)
                    for r in spec.requirements
                ],
                installed=spec.installed,
            ))

        for spec in self.casks:
            registry.add_cask(Cask(
                spec.token,
                tap=registry.tap(spec.tap) if spec.tap else None,
                depends_on_formulae=spec.depends_on.formula,
                depends_on_macos=spec.depends_on.macos,
                depends_on_arch=spec.depends_on.arch,
                installed=spec.installed,
            ))
        return registry


def parse_manifest(data: dict[str, Any] | None) -> FormulaRegistry:
    try:
        manifest = Manifest.model_validate(data or {})
        return manifest.build_registry()
    except ValidationError as e:
        raise ManifestError(str(e)) from e
    except ValueError as e:
        # "required" and "satisfied" validate as categories but are not tags.
        raise ManifestError(str(e)) from e


def load_manifest(path: Path) -> FormulaRegistry:
    """Read ``path`` and build a registry from it."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML in {path}: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise ManifestError(f"Manifest {path} must be a mapping")

    registry = parse_manifest(data)
    logger.info("Loaded %d formulae from %s", len(registry.formulae), path)
    return registry
