"""Shared utilities for all CLI command modules.

Provides the Rich console instance, the common options, engine
construction and the error reporting used by every command.
"""

from __future__ import annotations

import functools
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from ..config import load_config
from ..errors import InvalidEnvFileError, SecretsError
from ..sync import Cipher, EnvDocument, SyncEngine, TcSecretsConfig, create_store

console = Console()
logger = logging.getLogger("tcsecrets.cli")

DEFAULT_PASSWORD = "secret"

filepath_option = click.option(
    "--filepath", "-f", required=True, help="Path to the local secret file."
)
password_option = click.option(
    "--password", "-p",
    default=DEFAULT_PASSWORD,
    envvar="TC_SECRETS_PASSWORD",
    show_default=True,
    help="Password for encrypting/decrypting the secret file.",
)


def report_errors(func):
    """Print tc-secrets errors in red and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SecretsError as exc:
            logger.debug("Command failed", exc_info=True)
            console.print(f"[bold red]{escape(str(exc))}[/]")
            sys.exit(1)

    return wrapper


def get_config(ctx: click.Context) -> TcSecretsConfig:
    return load_config(ctx.obj["home"])


def build_engine(ctx: click.Context, password: str) -> SyncEngine:
    """Create a SyncEngine for the configured store and a password."""
    store = create_store(get_config(ctx), ctx.obj["home"])
    return SyncEngine(store, Cipher(password))


def load_existing(filepath: str) -> EnvDocument:
    """Load a secrets file that must already exist."""
    path = Path(filepath)
    if not path.exists():
        raise InvalidEnvFileError(f"The file '{filepath}' does not exist.")
    return EnvDocument.from_path(path)


def ref(secret_id: str, field_id: str) -> str:
    """Format a secret/field reference for display."""
    return f"[cyan]{escape(secret_id)}/{escape(field_id)}[/]"


def choose(prompt: str, options: list[str]) -> str:
    """Ask the user to pick one option from a numbered list.

    Args:
        prompt: Question shown above the list.
        options: Non-empty list of choices.

    Returns:
        The chosen option.
    """
    console.print(prompt)
    for index, option in enumerate(options, start=1):
        console.print(f"  [cyan]{index}[/]) {escape(option)}")

    answer = Prompt.ask(
        "Selection",
        choices=[str(i) for i in range(1, len(options) + 1)],
        default="1",
        show_choices=False,
        console=console,
    )
    return options[int(answer) - 1]
