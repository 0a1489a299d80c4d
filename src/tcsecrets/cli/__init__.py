"""
tc-secrets CLI -- keep .env files in sync with a remote secret store.

The main Click group is defined here and every command module
registers its commands on it.

Entry point: tcsecrets.cli:main
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from .. import SECRETS_HOME, __version__


@click.group()
@click.version_option(version=__version__, prog_name="tc-secrets")
@click.option(
    "--home",
    default=SECRETS_HOME,
    type=click.Path(file_okay=False),
    help="tc-secrets home directory (holds config.yaml).",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx, home, verbose):
    """A CLI tool for synchronizing .env secret files with AWS Secrets Manager."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["home"] = Path(home).expanduser()


# ---------------------------------------------------------------------------
# Register all commands from modular files
# ---------------------------------------------------------------------------

from .auth import register_auth_commands
from .crypt import register_crypt_commands
from .sync_cmd import register_sync_commands

register_auth_commands(main)
register_sync_commands(main)
register_crypt_commands(main)
