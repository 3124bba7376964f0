# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys

import click
from click_help_colors import HelpColorsGroup

from be_lib.kill.cli import kill
from be_lib.release.cli import release
from be_lib.stat.cli import stat
from be_lib.submit.cli import submit

__version__ = "0.1.0"

# `beu -h` and `beu <command> -h`
_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(
    cls=HelpColorsGroup,
    help_options_color="bright_blue",
    invoke_without_command=True,
    context_settings=_CONTEXT_SETTINGS,
)
@click.option(
    "--version",
    is_flag=True,
    help="Print the version of batcheuphoria and exit.",
)
@click.pass_context
def cli(ctx: click.Context, version: bool):
    """
    Submit and track jobs on LSF, PBS, or directly on the current host.

    The backend is selected with `--backend`, the BE_BACKEND environment variable,
    or detected from the commands available on the host.
    """
    if version:
        print(__version__)
        sys.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        sys.exit(0)


for command in (submit, stat, kill, release):
    cli.add_command(command)
