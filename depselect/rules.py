"""Turn caller flags into the rule set used for dependency selection."""

from __future__ import annotations

from depselect.models import Category, RuleSet, SelectionFlags


def classify(flags: SelectionFlags | None = None) -> RuleSet:
    """Build ``(includes, ignores, recursive_ignores)`` from ``flags``.

    Required and recommended dependencies are always included. The
    ``direct_*`` flags restrict build/test dependencies to those declared by
    the root itself.
    """
    flags = flags or SelectionFlags()

    includes = [Category.REQUIRED, Category.RECOMMENDED]
    if flags.include_build:
        includes.append(Category.BUILD)
    if flags.include_test:
        includes.append(Category.TEST)
    if flags.include_optional:
        includes.append(Category.OPTIONAL)

    ignores = []
    if flags.skip_recommended:
        ignores.append(Category.RECOMMENDED)
    if flags.only_missing:
        ignores.append(Category.SATISFIED)

    recursive_ignores = []
    if flags.direct_build:
        recursive_ignores.append(Category.BUILD)
    if flags.direct_test:
        recursive_ignores.append(Category.TEST)

    return RuleSet(
        includes=tuple(includes),
        ignores=tuple(ignores),
        recursive_ignores=tuple(recursive_ignores),
    )
