"""Report outdated dependencies of a Cargo workspace."""

import sys
from pathlib import Path

import click

from cargodrift.ui import COLOR_MODES, get_console
from cargodrift.utils.error_handler import handle_exceptions
from cargodrift.utils.exit_codes import ExitCodes
from cargodrift.utils.logging import logger, set_verbosity


def _split_values(values: tuple[str, ...]) -> tuple[str, ...]:
    """Flatten repeated options that may also hold space or comma separated lists."""
    items = []
    for value in values:
        for item in value.replace(",", " ").split():
            if item not in items:
                items.append(item)
    return tuple(items)


def _check_exit_code(ctx, param, value):
    if not ExitCodes.is_valid_drift_code(value):
        raise click.BadParameter(
            f"must be between 0 and 255 and differ from {ExitCodes.FATAL_ERROR} "
            "(reserved for fatal errors)"
        )
    return value


@click.command("drift")
@handle_exceptions
@click.option(
    "-m",
    "--manifest-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the Cargo.toml to use (defaults to the nearest one upwards)",
)
@click.option("--features", multiple=True, metavar="FEATURE", help="Space-separated list of features")
@click.option("--all-features", is_flag=True, help="Check outdated packages with all features enabled")
@click.option("--no-default-features", is_flag=True, help="Do not include the `default` feature")
@click.option("-p", "--packages", multiple=True, metavar="PKG", help="Package to inspect for updates")
@click.option("-r", "--root", default=None, metavar="ROOT", help="Package to treat as the root package")
@click.option(
    "-d",
    "--depth",
    type=click.IntRange(min=0),
    default=None,
    metavar="NUM",
    help="How deep in the dependency chain to search (defaults to all dependencies)",
)
@click.option(
    "-R", "--root-deps-only", is_flag=True, help="Only check root dependencies (same as --depth=1)"
)
@click.option(
    "--exit-code",
    type=int,
    default=0,
    show_default=True,
    callback=_check_exit_code,
    metavar="NUM",
    help="The exit code to return when new versions are found",
)
@click.option(
    "--color", type=click.Choice(COLOR_MODES), default="auto", show_default=True, help="Coloring"
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
    help="Output format",
)
@click.option("-v", "--verbose", count=True, help="Use verbose output (-vv for debug)")
@click.option("-q", "--quiet", is_flag=True, help="Only log errors")
@click.pass_context
def drift(
    ctx,
    manifest_path,
    features,
    all_features,
    no_default_features,
    packages,
    root,
    depth,
    root_deps_only,
    exit_code,
    color,
    output_format,
    verbose,
    quiet,
):
    """Displays information about project dependency versions.

    Resolves the project three times in scratch copies of its manifests:
    as currently locked, with the newest versions the declared requirements
    allow (Compat), and with every requirement lifted (Latest). Only
    dependencies whose version differs in either resolution are listed.

    The project itself is never modified.

    \b
    Columns:
      Name      Package (parent->name for transitive dependencies)
      Project   Version currently locked
      Compat    Newest semver-compatible version, --- if unchanged
      Latest    Newest version regardless of requirements, --- if unchanged
      Kind      Normal, Development or Build dependency
      Platform  Target cfg the dependency is limited to

    \b
    Examples:
      cargo drift                          # Full tree of the current package
      cargo drift -R                       # Direct dependencies only
      cargo drift -p serde -p tokio        # Only report these packages
      cargo drift --root my-crate          # Start from a specific workspace member
      cargo drift --format json            # Machine-readable output

    \b
    Exit Codes:
      0   = Success (or outdated dependencies with the default --exit-code)
      NUM = Outdated dependencies found and --exit-code NUM given
      101 = Fatal error (malformed manifest, filesystem or cargo failure)"""
    from cargodrift.engine import run_comparison
    from cargodrift.report import determine_exit_code, render
    from cargodrift.resolvers import get_driver
    from cargodrift.structures import DriftOptions, FeatureSelection

    set_verbosity(verbose, quiet)

    feature_list = _split_values(features)
    if sum([bool(feature_list), all_features, no_default_features]) > 1:
        raise click.UsageError(
            "--features, --all-features and --no-default-features are mutually exclusive"
        )
    if root_deps_only and depth is not None:
        raise click.UsageError("--root-deps-only cannot be combined with --depth")

    options = DriftOptions(
        manifest_path=manifest_path,
        features=FeatureSelection(
            features=feature_list,
            all_features=all_features,
            no_default_features=no_default_features,
        ),
        packages=_split_values(packages),
        root=root,
        depth=1 if root_deps_only else depth,
        exit_code=exit_code,
        color=color,
        output_format=output_format,
    )
    logger.debug(f"Options: {options}")

    driver = ctx.obj.get("driver") if ctx.obj else None
    if driver is None:
        driver = get_driver("cargo")

    records = run_comparison(options, driver)

    render(records, get_console(color), output_format)

    code = determine_exit_code(records, options.exit_code)
    logger.debug(f"Exit {code}: {ExitCodes.get_description(code)}")
    if code != ExitCodes.SUCCESS:
        sys.exit(code)
