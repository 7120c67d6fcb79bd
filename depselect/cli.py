"""Click CLI with deps and reqs subcommands."""

from __future__ import annotations

import functools
import logging
from pathlib import Path

import click
import yaml

from depselect import __version__
from depselect.config import DepselectConfig, load_config
from depselect.dependents import dependents
from depselect.expansion import ExpansionCache, recursive_includes
from depselect.formula import Dependency, Requirement
from depselect.manifest import ManifestError, load_manifest
from depselect.models import SelectionFlags
from depselect.rules import classify
from depselect.selection import select_includes

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Config file (default: ~/.depselect/config.yaml)")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool):
    """depselect: select the dependencies that matter for an operation."""
    try:
        config = load_config(config_path)
    except (ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid config: {e}")

    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


def selection_options(func):
    """Flags shared by deps and reqs."""

    @click.argument("names", nargs=-1, required=True)
    @click.option("--manifest", "-m", "manifest_path", type=click.Path(dir_okay=False, path_type=Path),
                  help="YAML manifest describing formulae, casks and taps")
    @click.option("--include-build", is_flag=True, help="Include build dependencies")
    @click.option("--include-test", is_flag=True, help="Include test dependencies")
    @click.option("--include-optional", is_flag=True, help="Include optional dependencies")
    @click.option("--skip-recommended", is_flag=True, help="Skip recommended dependencies")
    @click.option("--missing", "only_missing", is_flag=True, help="Only list dependencies that are not installed")
    @click.option("--direct-build", is_flag=True, help="Build dependencies of the named packages only")
    @click.option("--direct-test", is_flag=True, help="Test dependencies of the named packages only")
    @click.option("--skip", "skip", multiple=True, help="Never list or expand this name (repeatable)")
    @click.option("--direct", "direct_only", is_flag=True, help="Only consider declared dependencies")
    @click.pass_obj
    @functools.wraps(func)
    def wrapper(config: DepselectConfig, names, manifest_path, skip, direct_only, **flag_values):
        flags = config.flags.merged(SelectionFlags(**flag_values))
        path = manifest_path or (Path(config.manifest).expanduser() if config.manifest else None)
        if path is None:
            raise click.UsageError("Specify --manifest or set 'manifest' in the config file")

        try:
            registry = load_manifest(path)
            roots = dependents(registry.resolve(name) for name in names)
        except (ManifestError, LookupError) as e:
            raise click.ClickException(str(e))

        return func(roots=roots, flags=flags, skip=skip, direct_only=direct_only)

    return wrapper


def _report(sections: list[tuple[str, list[str]]]) -> None:
    for i, (heading, names) in enumerate(sections):
        if len(sections) > 1:
            if i:
                click.echo()
            click.echo(click.style(f"{heading}:", fg="cyan"))
        for name in names:
            click.echo(name)


@cli.command()
@selection_options
def deps(roots, flags: SelectionFlags, skip, direct_only: bool):
    """Show the dependencies of formulae or casks."""
    rules = classify(flags)
    cache = ExpansionCache()
    sections: list[tuple[str, list[str]]] = []

    try:
        for root in roots:
            if direct_only:
                selected = select_includes(root.deps, rules.ignores, rules.includes, skip=skip)
            else:
                selected = recursive_includes(Dependency, root, rules, skip=skip, cache=cache)
            sections.append((root.full_name, [dep.name for dep in selected]))
    except LookupError as e:
        raise click.ClickException(str(e))

    logger.debug("%d expansions computed, %d served from cache", cache.misses, cache.hits)
    _report(sections)


@cli.command()
@selection_options
def reqs(roots, flags: SelectionFlags, skip, direct_only: bool):
    """Show the requirements of formulae or casks."""
    rules = classify(flags)
    cache = ExpansionCache()
    sections: list[tuple[str, list[str]]] = []

    try:
        for root in roots:
            if direct_only:
                selected = select_includes(root.requirements, rules.ignores, rules.includes, skip=skip)
            else:
                selected = recursive_includes(Requirement, root, rules, skip=skip, cache=cache)
            sections.append((root.full_name, [req.name for req in selected]))
    except LookupError as e:
        raise click.ClickException(str(e))

    _report(sections)


if __name__ == "__main__":
    cli()
