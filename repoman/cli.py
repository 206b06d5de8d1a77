# -*- coding: utf-8 -*-
"""Command line interface.

Commands are collected in a :class:`CommandRegistry` built by :func:`main`
and turned into a click group by :func:`build_cli`.
"""

import logging
from typing import Callable, Iterator, Optional, Tuple

import click

from .__meta__ import __version__
from .errors import RepomanError
from .index import create_repository, make_channel, set_channel
from .publish import Publisher

LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


class CommandRegistry(object):
    """Ordered mapping of command names to click commands."""

    def __init__(self):
        self._commands = {}

    def register(self, name: str, command: click.Command) -> None:
        if name in self._commands:
            raise ValueError("Command {0!r} is already registered.".format(name))
        self._commands[name] = command

    def get(self, name: str) -> Optional[click.Command]:
        return self._commands.get(name)

    def items(self) -> Iterator[Tuple[str, click.Command]]:
        return iter(self._commands.items())

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def __iter__(self) -> Iterator[str]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)


def run_command(ctx: click.Context, func: Callable, *args, **kwargs):
    """Call `func` and turn a :class:`RepomanError` into its message on
    stderr and its exit code.
    """
    try:
        return func(*args, **kwargs)
    except RepomanError as error:
        click.echo(str(error), err=True)
        if error.show_usage:
            click.echo(ctx.get_usage(), err=True)
        ctx.exit(error.exit_code)


@click.command(short_help="Creates a new repository.")
@click.argument("repo_dir", type=click.Path())
@click.pass_context
def create_command(ctx, repo_dir):
    """Creates a new, blank repository at REPO_DIR. The directory must not
    already exist. It will be created.
    """
    run_command(ctx, create_repository, repo_dir)
    click.echo("Created repository {0}".format(repo_dir))


@click.command(short_help="Updates a repository with the files in a directory.")
@click.argument("repo_dir")
@click.argument("file_storage")
@click.argument("url_base")
@click.argument("update_dir")
@click.argument("version_name")
@click.argument("version_id", type=click.IntRange(min=0))
@click.option(
    "--exclude",
    multiple=True,
    metavar="PATTERN",
    help="Leave out files and directories whose name matches PATTERN.",
)
@click.pass_context
def update_command(ctx, repo_dir, file_storage, url_base, update_dir, version_name, version_id, exclude):
    """Publishes the files in UPDATE_DIR as a new version of the repository
    at REPO_DIR.

    \b
    REPO_DIR      The repository's directory.
    FILE_STORAGE  Directory where the update files are stored.
    URL_BASE      Base URL under which FILE_STORAGE is served.
    UPDATE_DIR    Directory containing the new version's files.
    VERSION_NAME  Version name, e.g. 4.3.0.42.
    VERSION_ID    The new version's integer ID.
    """
    publisher = Publisher(repo_dir, file_storage, url_base, exclude=exclude)
    result = run_command(ctx, publisher.publish, update_dir, version_name, version_id)
    click.echo(
        "Published version {0} ({1}): {2} files, {3} new blobs.".format(
            version_id, version_name, len(result.version.files), len(result.added)
        )
    )


@click.command(short_help="Creates a new release channel in a repository.")
@click.argument("repo_dir")
@click.argument("channel_id")
@click.pass_context
def mkchan_command(ctx, repo_dir, channel_id):
    """Creates channel CHANNEL_ID in the repository at REPO_DIR. Set its
    version with the 'setchan' command.
    """
    run_command(ctx, make_channel, repo_dir, channel_id)


@click.command(short_help="Sets or removes a channel's current version.")
@click.argument("repo_dir")
@click.argument("channel_id")
@click.argument("version_id", type=int, required=False)
@click.pass_context
def setchan_command(ctx, repo_dir, channel_id, version_id):
    """Sets the current version of CHANNEL_ID to VERSION_ID, creating the
    channel if needed. Without VERSION_ID the channel is removed.
    """
    run_command(ctx, set_channel, repo_dir, channel_id, version_id)


@click.command(short_help="Shows a list of available commands.")
@click.pass_context
def help_command(ctx):
    """Shows a list of available commands and information about them."""
    click.echo(ctx.parent.get_help())


def default_registry() -> CommandRegistry:
    registry = CommandRegistry()
    registry.register("help", help_command)
    registry.register("create", create_command)
    registry.register("update", update_command)
    registry.register("mkchan", mkchan_command)
    registry.register("setchan", setchan_command)
    return registry


def build_cli(registry: CommandRegistry) -> click.Group:
    """Return a click group dispatching to the commands in `registry`."""

    @click.group(name="repoman")
    @click.version_option(__version__, prog_name="repoman")
    @click.option("-v", "--verbose", count=True, help="Log more; repeat for debug output.")
    def cli(verbose):
        """Manage update repositories."""
        level = LOG_LEVELS[min(verbose, len(LOG_LEVELS) - 1)]
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    for name, command in registry.items():
        cli.add_command(command, name)

    return cli


def main(argv=None):
    registry = default_registry()
    cli = build_cli(registry)
    return cli.main(args=argv, prog_name="repoman", auto_envvar_prefix="REPOMAN")
