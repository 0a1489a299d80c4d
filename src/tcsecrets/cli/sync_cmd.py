"""Sync commands: sync, diff, update, reset."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape

from ..sync import EnvDocument, SyncAction, SyncEngine
from ._common import (
    build_engine,
    choose,
    console,
    filepath_option,
    get_config,
    load_existing,
    password_option,
    ref,
    report_errors,
)

_DIFF_STYLES = (
    ("+++", "bold"),
    ("---", "bold"),
    ("@@", "cyan"),
    ("+", "green"),
    ("-", "red"),
)


def _diff_style(line: str) -> Optional[str]:
    for prefix, style in _DIFF_STYLES:
        if line.startswith(prefix):
            return style
    return None


def register_sync_commands(main: click.Group) -> None:
    """Register the synchronization commands."""

    @main.command("sync")
    @filepath_option
    @password_option
    @click.option(
        "--create", is_flag=True,
        help="Push even if the remote field does not exist yet.",
    )
    @click.pass_context
    @report_errors
    def sync_cmd(ctx, filepath, password, create):
        """Synchronize local secret file with AWS Secrets Manager."""
        engine = build_engine(ctx, password)
        path = Path(filepath)

        if not path.exists():
            result = engine.download(
                path,
                select_secret=lambda ids: choose(
                    f"No local file found at [magenta]{escape(filepath)}[/]. "
                    "Please select a secret ID to download:",
                    ids,
                ),
                select_field=lambda secret_id, names: choose(
                    f"Please select a field ID to load from secret "
                    f"[cyan]{escape(secret_id)}[/]:",
                    names,
                ),
            )
            console.print(
                f"Downloaded and saved the secret "
                f"{ref(result.secret_id, result.field_id)} "
                f"to [magenta]{escape(filepath)}[/]"
            )
            return

        local = EnvDocument.from_path(path)
        if local.secret_id and local.field_id:
            console.print(
                f"Synchronizing with remote secret {ref(local.secret_id, local.field_id)}"
            )
        result = engine.sync(local, create_missing=create)

        if result.action == SyncAction.PULL:
            console.print(
                "The local secret file is outdated. Updated to version "
                f"[cyan]{result.remote_version}[/]"
            )
        elif result.action == SyncAction.PUSH:
            console.print(
                "The remote secret has been updated with the local secret "
                f"file version [cyan]{result.local_version}[/]"
            )
        elif result.action == SyncAction.CONFLICT:
            console.print(
                f"[bold yellow]Conflict:[/] local and remote are both at version "
                f"[cyan]{result.local_version}[/] but their contents differ."
            )
            console.print(
                f"  Inspect with [cyan]tc-secrets diff -f {escape(filepath)}[/], "
                f"then bump with [cyan]tc-secrets update -f {escape(filepath)}[/] "
                "to push, or [cyan]tc-secrets reset[/] to take the remote."
            )
            sys.exit(1)
        else:
            console.print("[green]The local secret file is up to date![/]")

    @main.command("diff")
    @filepath_option
    @password_option
    @click.pass_context
    @report_errors
    def diff_cmd(ctx, filepath, password):
        """Display differences between local and remote secret files."""
        engine = build_engine(ctx, password)
        local = load_existing(filepath)
        lines = engine.diff(local)

        console.print(
            f"Comparing local file [magenta]{escape(filepath)}[/] with remote secret "
            f"{ref(local.secret_id, local.field_id)}"
        )
        if not lines:
            console.print("[green]No differences.[/]")
            return
        for line in lines:
            console.print(line, style=_diff_style(line), markup=False, highlight=False)

    @main.command("update")
    @filepath_option
    @report_errors
    def update_cmd(filepath):
        """Increase the version of the local secret file."""
        local = load_existing(filepath)
        new_version = SyncEngine.bump(local)
        console.print(
            f"Updated the version of the secret file to [cyan]{new_version}[/]"
        )

    @main.command("reset")
    @filepath_option
    @password_option
    @click.option("--secret-id", default=None, help="Remote secret (defaults to the file header).")
    @click.option("--field-id", default=None, help="Remote field (defaults to the file header).")
    @click.option("--no-backup", is_flag=True, help="Do not keep a copy of the local file.")
    @click.pass_context
    @report_errors
    def reset_cmd(ctx, filepath, password, secret_id, field_id, no_backup):
        """Overwrite the local secret file with the remote version."""
        engine = build_engine(ctx, password)
        backup = get_config(ctx).backup_on_reset and not no_backup
        result = engine.reset(
            Path(filepath), secret_id=secret_id, field_id=field_id, backup=backup
        )

        if result.backup_path:
            console.print(f"  [dim]Backup: {escape(str(result.backup_path))}[/]")
        console.print(
            f"Reset [magenta]{escape(filepath)}[/] from "
            f"{ref(result.secret_id, result.field_id)} "
            f"(version [cyan]{result.remote_version}[/])"
        )
