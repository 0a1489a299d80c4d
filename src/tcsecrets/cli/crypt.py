"""Cipher commands: encrypt a file to stdout, decrypt a token into a file."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape

from ..errors import SecretsIOError
from ..sync import Cipher
from ._common import console, filepath_option, password_option, report_errors


def register_crypt_commands(main: click.Group) -> None:
    """Register the encrypt/decrypt commands."""

    @main.command("encrypt")
    @filepath_option
    @password_option
    @report_errors
    def encrypt_cmd(filepath, password):
        """Print the encrypted contents of a file."""
        try:
            text = Path(filepath).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SecretsIOError(f"cannot read {filepath}: {exc}") from exc

        # Raw echo: rich would fold the long token across lines.
        click.echo(Cipher(password).encrypt(text))

    @main.command("decrypt")
    @filepath_option
    @password_option
    @click.option("--text", "-t", required=True, help="Encrypted text to decode.")
    @report_errors
    def decrypt_cmd(filepath, password, text):
        """Decrypt a token and write the plaintext to a file."""
        content = Cipher(password).decrypt(text)
        try:
            Path(filepath).write_text(content, encoding="utf-8")
        except OSError as exc:
            raise SecretsIOError(f"cannot write {filepath}: {exc}") from exc

        console.print(f"Decrypted text written to [magenta]{escape(filepath)}[/]")
