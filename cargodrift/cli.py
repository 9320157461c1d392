"""cargo-drift CLI - main entry point and command registration hub.

Installed as ``cargo-drift`` so Cargo picks it up as the ``cargo drift``
subcommand: Cargo runs ``cargo-drift drift <args>``.
"""
# ruff: noqa: E402 - Intentional lazy loading: commands imported after cli group definition

import click

from cargodrift import __version__


@click.group()
@click.version_option(version=__version__, prog_name="cargo-drift")
@click.help_option("-h", "--help")
@click.pass_context
def cli(ctx):
    """cargo-drift - Displays information about project dependency versions

    \b
    QUICK START:
      cargo drift                     # Whole dependency tree of the current project
      cargo drift -R                  # Direct dependencies only
      cargo drift --exit-code 1       # Fail CI when anything is outdated

    \b
    For detailed options: cargo drift --help"""
    ctx.ensure_object(dict)


from cargodrift.commands.drift import drift

cli.add_command(drift)


def main():
    """Main entry point for console script."""
    cli()


if __name__ == "__main__":
    main()
